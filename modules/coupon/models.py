"""
Coupon Module - Models
========================
Seller discount coupons. Managed from the seller dashboard; not yet applied at checkout.
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.sql import func
from config.database import Base


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True)
    seller_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(50), nullable=False)
    discount_percent = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, server_default="true", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("seller_id", "code", name="uq_coupon_seller_code"),
        CheckConstraint("discount_percent >= 1 AND discount_percent <= 100", name="ck_coupon_percent"),
    )

    @property
    def discount_display(self) -> str:
        return f"{self.discount_percent}%"
