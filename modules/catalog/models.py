"""
Catalog Module - Models
========================
Digital products listed by sellers. `price` is the authoritative checkout price.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, Text,
    ForeignKey, DateTime, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base


class ModerationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProductSort(str, enum.Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    POPULAR = "popular"


# ==========================================
# 📦 Product
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    seller_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), default=0, nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)   # strike-through price
    category = Column(String(100), nullable=False, index=True)

    # Storage object paths
    thumbnail_url = Column(String, nullable=True)   # bucket: product-thumbnails (public)
    file_url = Column(String, nullable=True)        # bucket: product-files (private)

    is_free = Column(Boolean, default=False, server_default="false", nullable=False)
    is_published = Column(Boolean, default=False, server_default="false", nullable=False)

    # Admin gate, independent of is_published
    moderation_status = Column(String(20), default=ModerationStatus.PENDING.value, nullable=False, index=True)
    moderation_notes = Column(Text, nullable=True)

    download_count = Column(Integer, default=0, server_default="0", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    seller = relationship("User", foreign_keys=[seller_id])

    __table_args__ = (
        Index("ix_products_visible", "is_published", "moderation_status"),
    )

    @property
    def is_visible(self) -> bool:
        """Listed on the storefront: published by the seller and approved by moderation."""
        return bool(self.is_published) and self.moderation_status == ModerationStatus.APPROVED.value

    def __repr__(self):
        return f"<Product {self.title} ({self.price})>"
