"""
Payment Gateway Abstraction
=============================
Each gateway implements is_configured() and create_payment().
Registry pattern for gateway lookup by name.
"""

import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

logger = logging.getLogger("digitalhub.gateway")


@dataclass
class GatewayPaymentRequest:
    """Input for creating a hosted payment."""
    amount_minor: int                 # total in minor units (cents)
    return_url: str
    customer_email: str
    customer_name: str
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class GatewayCreateResult:
    """Result of create_payment()."""
    success: bool
    redirect_url: Optional[str] = None
    payment_id: Optional[str] = None
    error_message: Optional[str] = None
    vendor_status: Optional[int] = None
    vendor_body: str = ""
    raw: Dict[str, Any] = field(default_factory=dict)


class BaseGateway:
    """Abstract gateway interface."""
    name: str = ""
    label: str = ""

    def is_configured(self) -> bool:
        raise NotImplementedError

    def create_payment(self, req: GatewayPaymentRequest) -> GatewayCreateResult:
        raise NotImplementedError


# ── Registry ──

_GATEWAYS: Dict[str, BaseGateway] = {}


def register_gateway(gw: BaseGateway):
    _GATEWAYS[gw.name] = gw


def get_gateway(name: str) -> Optional[BaseGateway]:
    return _GATEWAYS.get(name)
