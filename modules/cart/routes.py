"""
Cart Module - Routes
=====================
Server-side cart for the logged-in user.

Endpoints:
  GET    /api/cart                       - Items + summary
  POST   /api/cart/items                 - Add product
  PATCH  /api/cart/items/{product_id}    - Set quantity
  DELETE /api/cart/items/{product_id}    - Remove product
  DELETE /api/cart                       - Clear cart
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_login
from modules.cart.service import cart_service

router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class QuantityRequest(BaseModel):
    quantity: int


def _cart_response(db: Session, user_id: int) -> dict:
    items = cart_service.list_items(db, user_id)
    return {"items": items, **cart_service.summary(items)}


@router.get("")
async def view_cart(db: Session = Depends(get_db), me=Depends(require_login)):
    response = _cart_response(db, me.id)
    db.commit()
    return response


@router.post("/items", status_code=201)
async def add_to_cart(body: AddItemRequest, db: Session = Depends(get_db), me=Depends(require_login)):
    cart_service.add_item(db, me.id, body.product_id, body.quantity)
    db.commit()
    return _cart_response(db, me.id)


@router.patch("/items/{product_id}")
async def update_quantity(
    product_id: int, body: QuantityRequest,
    db: Session = Depends(get_db), me=Depends(require_login),
):
    cart_service.update_quantity(db, me.id, product_id, body.quantity)
    db.commit()
    return _cart_response(db, me.id)


@router.delete("/items/{product_id}")
async def remove_from_cart(product_id: int, db: Session = Depends(get_db), me=Depends(require_login)):
    cart_service.remove_item(db, me.id, product_id)
    db.commit()
    return _cart_response(db, me.id)


@router.delete("")
async def clear_cart(db: Session = Depends(get_db), me=Depends(require_login)):
    cart_service.clear_cart(db, me.id)
    db.commit()
    return {"success": True, "items": [], "item_count": 0, "total": 0.0}
