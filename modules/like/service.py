"""
Like Module - Service Layer
=============================
Toggle likes and read the wishlist.
"""

import logging
from typing import List, Tuple

from sqlalchemy.orm import Session
from sqlalchemy import func

from modules.like.models import ProductLike
from modules.catalog.service import catalog_service

logger = logging.getLogger("digitalhub.like")


class LikeService:

    def toggle(self, db: Session, user_id: int, product_id: int) -> Tuple[bool, int]:
        """
        Like or unlike a visible product.

        Returns:
            (liked_now, like_count)
        """
        catalog_service.get_visible_product(db, product_id)
        existing = db.query(ProductLike).filter(
            ProductLike.product_id == product_id,
            ProductLike.user_id == user_id,
        ).first()

        if existing:
            db.delete(existing)
            liked = False
        else:
            db.add(ProductLike(product_id=product_id, user_id=user_id))
            liked = True
        db.flush()
        return liked, self.like_count(db, product_id)

    def like_count(self, db: Session, product_id: int) -> int:
        return db.query(func.count(ProductLike.id)).filter(
            ProductLike.product_id == product_id
        ).scalar() or 0

    def is_liked(self, db: Session, user_id: int, product_id: int) -> bool:
        return db.query(ProductLike.id).filter(
            ProductLike.product_id == product_id,
            ProductLike.user_id == user_id,
        ).first() is not None

    def wishlist(self, db: Session, user_id: int) -> List[int]:
        """Product ids liked by the user, most recent first."""
        rows = (
            db.query(ProductLike.product_id)
            .filter(ProductLike.user_id == user_id)
            .order_by(ProductLike.created_at.desc(), ProductLike.id.desc())
            .all()
        )
        return [r[0] for r in rows]


like_service = LikeService()
