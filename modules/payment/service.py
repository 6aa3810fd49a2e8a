"""
Payment Service
=================
Hosted checkout session creation and inbound webhook processing.

Checkout never writes to the database: orders are materialized only when
the vendor confirms the payment through the webhook.
"""

import json
import logging
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.exceptions import (
    ValidationError, ConfigurationError, UpstreamError,
)
from common.helpers import now_utc, safe_int, to_minor_units
from config.settings import (
    BASE_URL, DODO_WEBHOOK_KEY, WEBHOOK_EVENT_RETENTION_DAYS,
)
from modules.catalog.models import Product
from modules.catalog.service import visible_products
from modules.cart.service import cart_service
from modules.order.models import OrderStatus
from modules.order.service import order_service
from modules.payment.models import WebhookEvent
from modules.payment.webhook import verify_delivery
from modules.user.models import User

# Import gateway modules to trigger register_gateway() calls
from modules.payment.gateways import get_gateway, GatewayPaymentRequest  # noqa: F401
import modules.payment.gateways.dodo      # noqa: F401

logger = logging.getLogger("digitalhub.payment")
webhook_logger = logging.getLogger("digitalhub.webhook")

DEFAULT_GATEWAY = "dodo"
REQUIRED_WEBHOOK_HEADERS = ("webhook-id", "webhook-signature", "webhook-timestamp")


class PaymentService:

    # ==========================================
    # 🧮 Pricing
    # ==========================================

    def resolve_items(self, db: Session, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Attach authoritative product rows to requested cart lines.
        Any client-sent price/title/is_free is ignored.
        """
        lines = []
        ids = []
        for raw in items:
            product_id = safe_int(raw.get("product_id"))
            quantity = safe_int(raw.get("quantity"))
            if product_id is None:
                raise ValidationError("Each item needs a product_id")
            if quantity is None or quantity < 1:
                raise ValidationError("Quantity must be at least 1")
            lines.append({"product_id": product_id, "quantity": quantity})
            ids.append(product_id)

        products = {
            p.id: p for p in visible_products(db).filter(Product.id.in_(set(ids))).all()
        }
        for line in lines:
            product = products.get(line["product_id"])
            if not product:
                raise ValidationError(f"Product {line['product_id']} is not available")
            line["product"] = product
        return lines

    def total_minor(self, lines: List[Dict[str, Any]]) -> int:
        """Σ round(price × 100) × quantity over non-free lines, in integer minor units."""
        return sum(
            to_minor_units(line["product"].price) * line["quantity"]
            for line in lines
            if not line["product"].is_free
        )

    # ==========================================
    # 🏦 Checkout session
    # ==========================================

    def create_checkout_session(
        self,
        db: Session,
        user: User,
        items: List[Dict[str, Any]],
        customer_email: str = "",
        customer_name: str = "",
        return_url: str = "",
    ) -> Dict[str, Any]:
        if not items:
            raise ValidationError("No items in cart")

        gateway = get_gateway(DEFAULT_GATEWAY)
        if not gateway or not gateway.is_configured():
            raise ConfigurationError("DODO_PAYMENTS_API_KEY is not configured")

        lines = self.resolve_items(db, items)
        total = self.total_minor(lines)

        if total == 0:
            logger.info(f"Free checkout for user #{user.id} ({len(lines)} items)")
            return {
                "success": True,
                "free_checkout": True,
                "message": "All items are free. No payment required.",
            }

        snapshot = [
            {
                "id": line["product"].id,
                "title": line["product"].title,
                "price": float(line["product"].price),
                "qty": line["quantity"],
            }
            for line in lines
        ]
        result = gateway.create_payment(GatewayPaymentRequest(
            amount_minor=total,
            return_url=return_url or f"{BASE_URL}/checkout/success",
            customer_email=customer_email or user.email,
            customer_name=customer_name or user.display_name,
            metadata={
                "user_id": str(user.id),
                "cart_items": json.dumps(snapshot),
            },
        ))

        if not result.success:
            raise UpstreamError(
                result.error_message or "Dodo API error",
                vendor_status=result.vendor_status,
                vendor_body=result.vendor_body,
            )

        logger.info(f"Checkout session {result.payment_id} for user #{user.id}: {total} minor units")
        return {
            "success": True,
            "checkout_url": result.redirect_url,
            "payment_id": result.payment_id,
        }

    # ==========================================
    # 🔔 Webhook
    # ==========================================

    def handle_webhook(self, db: Session, headers: Mapping[str, str], body: bytes) -> Dict[str, Any]:
        """
        Verify and apply one vendor event. Returns {"success", "duplicate"};
        the route commits on success and rolls back otherwise.

        Raises (before anything is applied):
            ConfigurationError: webhook secret missing or invalid
            ValidationError: missing headers or malformed JSON
            WebhookAuthError: signature mismatch or stale timestamp

        Once verified, processing failures are logged and the vendor still
        gets 200, so retries don't storm.
        """
        if not DODO_WEBHOOK_KEY:
            raise ConfigurationError("DODO_WEBHOOK_KEY is not configured")

        webhook_id, signature, timestamp = (headers.get(h) for h in REQUIRED_WEBHOOK_HEADERS)
        if not webhook_id or not signature or not timestamp:
            webhook_logger.error("Missing webhook headers")
            raise ValidationError("Missing webhook headers")

        event = verify_delivery(DODO_WEBHOOK_KEY, headers, body)
        if not isinstance(event, dict):
            raise ValidationError("Invalid JSON payload")

        event_type = event.get("type") or ""
        webhook_logger.info(f"Received Dodo webhook event: {event_type} ({webhook_id})")

        if db.query(WebhookEvent.id).filter(WebhookEvent.webhook_id == webhook_id).first():
            webhook_logger.info(f"Duplicate webhook {webhook_id}, already processed")
            return {"success": False, "duplicate": True}

        try:
            db.add(WebhookEvent(webhook_id=webhook_id, event_type=event_type[:100]))
            db.flush()
            self.dispatch_event(db, event)
        except IntegrityError:
            webhook_logger.info(f"Webhook {webhook_id} processed concurrently")
            return {"success": False, "duplicate": True}
        except Exception as e:
            webhook_logger.exception(f"Error processing Dodo webhook {webhook_id}: {e}")
            return {"success": False, "duplicate": False}

        return {"success": True, "duplicate": False}

    def dispatch_event(self, db: Session, event: Dict[str, Any]):
        event_type = event.get("type")
        data = event.get("data") or {}
        payment_id = data.get("payment_id")

        if event_type == "payment.succeeded":
            self._on_payment_succeeded(db, event, data)
        elif event_type == "payment.failed":
            webhook_logger.info(f"Payment failed: {payment_id}")
            order_service.mark_status(
                db, payment_id, OrderStatus.FAILED.value, only_from=[OrderStatus.PENDING.value],
            )
        elif event_type == "refund.succeeded":
            webhook_logger.info(f"Refund succeeded: {payment_id}")
            order_service.mark_status(db, payment_id, OrderStatus.REFUNDED.value)
        else:
            webhook_logger.info(f"Unhandled event type: {event_type}")

    def _on_payment_succeeded(self, db: Session, event: Dict[str, Any], data: Dict[str, Any]):
        metadata = data.get("metadata") or event.get("metadata") or {}
        payment_id = data.get("payment_id")
        user_id = safe_int(metadata.get("user_id"))
        raw_items = metadata.get("cart_items")

        if user_id is None or not raw_items:
            webhook_logger.warning(f"Payment {payment_id} succeeded without usable metadata")
            return
        if not db.query(User.id).filter(User.id == user_id).first():
            webhook_logger.warning(f"Payment {payment_id} references unknown user #{user_id}")
            return

        cart_items = json.loads(raw_items) if isinstance(raw_items, str) else raw_items
        if not isinstance(cart_items, list):
            raise ValueError("cart_items metadata is not a list")

        total = data.get("total_amount")
        order = order_service.create_from_payment(
            db, user_id, payment_id, cart_items,
            total_minor=safe_int(total) if total is not None else None,
        )
        if order:
            purchased = [oi.product_id for oi in order.items if oi.product_id]
            cart_service.remove_products(db, user_id, purchased)

    # ==========================================
    # 🧹 Housekeeping
    # ==========================================

    def prune_webhook_events(self, db: Session, retention_days: Optional[int] = None) -> int:
        """Delete processed-event records older than the retention window."""
        days = WEBHOOK_EVENT_RETENTION_DAYS if retention_days is None else retention_days
        cutoff = now_utc() - timedelta(days=days)
        deleted = (
            db.query(WebhookEvent)
            .filter(WebhookEvent.received_at < cutoff)
            .delete(synchronize_session=False)
        )
        if deleted:
            db.commit()
            logger.info(f"Pruned {deleted} webhook events older than {days} days")
        return deleted


payment_service = PaymentService()
