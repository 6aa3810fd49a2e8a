"""
Coupon Routes - Seller Dashboard
==================================
  GET    /api/seller/coupons              - List own coupons
  POST   /api/seller/coupons              - Create coupon
  POST   /api/seller/coupons/{id}/toggle  - Activate / deactivate
  DELETE /api/seller/coupons/{id}         - Delete coupon
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_seller
from modules.coupon.service import coupon_service, serialize_coupon

router = APIRouter(prefix="/api/seller/coupons", tags=["coupon"])


class CouponCreate(BaseModel):
    code: str
    discount_percent: int


@router.get("")
async def list_coupons(db: Session = Depends(get_db), seller=Depends(require_seller)):
    return {"coupons": [serialize_coupon(c) for c in coupon_service.list_for_seller(db, seller.id)]}


@router.post("", status_code=201)
async def create_coupon(body: CouponCreate, db: Session = Depends(get_db), seller=Depends(require_seller)):
    coupon = coupon_service.create(db, seller.id, body.code, body.discount_percent)
    db.commit()
    db.refresh(coupon)
    return {"success": True, "coupon": serialize_coupon(coupon)}


@router.post("/{coupon_id}/toggle")
async def toggle_coupon(coupon_id: int, db: Session = Depends(get_db), seller=Depends(require_seller)):
    coupon = coupon_service.toggle(db, seller.id, coupon_id)
    db.commit()
    return {"success": True, "is_active": coupon.is_active}


@router.delete("/{coupon_id}")
async def delete_coupon(coupon_id: int, db: Session = Depends(get_db), seller=Depends(require_seller)):
    coupon_service.delete(db, seller.id, coupon_id)
    db.commit()
    return {"success": True}
