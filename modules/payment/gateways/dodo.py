"""
Dodo Payments Gateway
======================
REST/JSON. Ad-hoc payments via `total_amount` + `payment_link: true`
(no pre-registered vendor products). Test vs live host from DODO_API_BASE.
"""

import httpx
import logging

from config.settings import DODO_PAYMENTS_API_KEY, DODO_API_BASE, PAYMENT_API_TIMEOUT
from modules.payment.gateways import (
    BaseGateway, GatewayPaymentRequest, GatewayCreateResult, register_gateway,
)

logger = logging.getLogger("digitalhub.gateway.dodo")

# The vendor requires a billing block; buyers of digital goods are not asked for one.
PLACEHOLDER_BILLING = {
    "city": "N/A",
    "country": "US",
    "state": "N/A",
    "street": "N/A",
    "zipcode": "00000",
}


class DodoGateway(BaseGateway):
    name = "dodo"
    label = "Dodo Payments"

    def is_configured(self) -> bool:
        return bool(DODO_PAYMENTS_API_KEY)

    def create_payment(self, req: GatewayPaymentRequest) -> GatewayCreateResult:
        try:
            resp = httpx.post(f"{DODO_API_BASE}/payments", json={
                "billing": PLACEHOLDER_BILLING,
                "customer": {
                    "email": req.customer_email,
                    "name": req.customer_name,
                },
                "payment_link": True,
                "total_amount": req.amount_minor,
                "return_url": req.return_url,
                "metadata": req.metadata,
            }, headers={
                "Authorization": f"Bearer {DODO_PAYMENTS_API_KEY}",
                "Content-Type": "application/json",
            }, timeout=PAYMENT_API_TIMEOUT)
        except httpx.TimeoutException:
            logger.error(f"Dodo create timed out after {PAYMENT_API_TIMEOUT}s")
            return GatewayCreateResult(success=False, error_message="Dodo API error: request timed out")
        except httpx.HTTPError as e:
            logger.error(f"Dodo create failed: {e}")
            return GatewayCreateResult(success=False, error_message=f"Dodo API error: {e}")

        if not resp.is_success:
            logger.error(f"Dodo API error: {resp.status_code} - {resp.text}")
            return GatewayCreateResult(
                success=False,
                error_message=f"Dodo API error: {resp.status_code} - {resp.text}",
                vendor_status=resp.status_code,
                vendor_body=resp.text,
            )

        data = resp.json()
        logger.info(f"Dodo checkout session created: {data.get('payment_id')}")
        return GatewayCreateResult(
            success=True,
            redirect_url=data.get("payment_link"),
            payment_id=data.get("payment_id"),
            raw=data,
        )


register_gateway(DodoGateway())
