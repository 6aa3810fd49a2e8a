"""
Like Module - Models
=====================
One like per (product, user); the set of a user's likes is their wishlist.
"""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class ProductLike(Base):
    __tablename__ = "product_likes"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("product_id", "user_id", name="uq_product_like"),
    )
