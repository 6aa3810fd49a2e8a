"""
Payment Routes
================
  POST /api/checkout        - Create a hosted checkout session (bearer auth)
  POST /api/webhooks/dodo   - Vendor webhook receiver (Standard Webhooks signed)
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_login
from modules.payment.service import payment_service

router = APIRouter(prefix="/api", tags=["payment"])


# ==========================================
# Schemas
# ==========================================

class CheckoutItem(BaseModel):
    product_id: int
    quantity: int = 1
    # Client copy of the product, accepted for compatibility and never trusted
    product: Optional[Dict[str, Any]] = None


class CheckoutRequest(BaseModel):
    items: List[CheckoutItem] = []
    customer_email: Optional[str] = ""
    customer_name: Optional[str] = ""
    return_url: Optional[str] = ""


# ==========================================
# 🏦 Checkout
# ==========================================

@router.post("/checkout")
async def create_checkout(
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    return payment_service.create_checkout_session(
        db,
        me,
        [item.model_dump() for item in body.items],
        customer_email=body.customer_email or "",
        customer_name=body.customer_name or "",
        return_url=body.return_url or "",
    )


# ==========================================
# 🔔 Webhook
# ==========================================

@router.post("/webhooks/dodo")
async def dodo_webhook(request: Request, db: Session = Depends(get_db)):
    """Raw body is read before parsing so the signature covers the exact bytes sent."""
    body = await request.body()
    result = payment_service.handle_webhook(db, request.headers, body)

    if result["success"]:
        db.commit()
    else:
        db.rollback()

    if result["duplicate"]:
        return {"received": True, "duplicate": True}
    return {"received": True}
