"""
Coupon Service
================
Seller-managed discount codes. Stored and listed for the seller dashboard;
checkout does not apply them yet.
"""

import logging
import re
from typing import List

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import desc

from common.exceptions import DuplicateError, NotFoundError, ValidationError
from modules.coupon.models import Coupon

logger = logging.getLogger("digitalhub.coupon")

CODE_PATTERN = re.compile(r"^[A-Z0-9_-]{3,50}$")


def serialize_coupon(coupon: Coupon) -> dict:
    return {
        "id": coupon.id,
        "code": coupon.code,
        "discount_percent": coupon.discount_percent,
        "discount_display": coupon.discount_display,
        "is_active": coupon.is_active,
        "created_at": coupon.created_at.isoformat() if coupon.created_at else None,
    }


class CouponService:

    def list_for_seller(self, db: Session, seller_id: int) -> List[Coupon]:
        return (
            db.query(Coupon)
            .filter(Coupon.seller_id == seller_id)
            .order_by(desc(Coupon.created_at), desc(Coupon.id))
            .all()
        )

    def create(self, db: Session, seller_id: int, code: str, discount_percent: int) -> Coupon:
        code = (code or "").strip().upper()
        if not CODE_PATTERN.match(code):
            raise ValidationError("Code must be 3-50 characters: letters, digits, '-' or '_'")
        if not 1 <= discount_percent <= 100:
            raise ValidationError("Discount must be between 1 and 100 percent")

        exists = db.query(Coupon.id).filter(Coupon.seller_id == seller_id, Coupon.code == code).first()
        if exists:
            raise DuplicateError("You already have a coupon with this code")

        coupon = Coupon(seller_id=seller_id, code=code, discount_percent=discount_percent)
        db.add(coupon)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise DuplicateError("You already have a coupon with this code")
        logger.info(f"Coupon {code} ({discount_percent}%) created by seller #{seller_id}")
        return coupon

    def toggle(self, db: Session, seller_id: int, coupon_id: int) -> Coupon:
        coupon = self._owned(db, seller_id, coupon_id)
        coupon.is_active = not coupon.is_active
        db.flush()
        return coupon

    def delete(self, db: Session, seller_id: int, coupon_id: int):
        coupon = self._owned(db, seller_id, coupon_id)
        db.delete(coupon)
        db.flush()

    def _owned(self, db: Session, seller_id: int, coupon_id: int) -> Coupon:
        coupon = db.query(Coupon).filter(Coupon.id == coupon_id, Coupon.seller_id == seller_id).first()
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon


coupon_service = CouponService()
