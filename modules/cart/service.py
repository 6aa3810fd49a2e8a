"""
Cart Module - Service Layer
==============================
Cart management: get/create, add/remove items, quantities, totals.

One cart per user, enforced by the uq_cart_user constraint. Creation is an
insert-ignore-on-conflict followed by an oldest-first read, so concurrent
first requests converge on the same row.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.dialects import postgresql, sqlite

from common.exceptions import DuplicateError, NotFoundError, ValidationError
from common.storage import public_url, THUMBNAILS_BUCKET
from modules.cart.models import Cart, CartItem
from modules.catalog.models import Product
from modules.catalog.service import visible_products

logger = logging.getLogger("digitalhub.cart")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class CartService:

    def get_or_create_cart(self, db: Session, user_id: int) -> Cart:
        """Return the user's cart, creating it on first use."""
        cart = self._oldest_cart(db, user_id)
        if cart:
            return cart

        dialect = db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is not None:
            stmt = insert(Cart.__table__).values(user_id=user_id)
            db.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))
        else:
            try:
                with db.begin_nested():
                    db.add(Cart(user_id=user_id))
            except IntegrityError:
                logger.debug(f"Cart for user #{user_id} created concurrently")

        return self._oldest_cart(db, user_id)

    def list_items(self, db: Session, user_id: int) -> List[Dict[str, Any]]:
        """Cart lines joined to their live product rows; orphaned lines are skipped."""
        cart = self.get_or_create_cart(db, user_id)
        rows = (
            db.query(CartItem, Product)
            .join(Product, Product.id == CartItem.product_id)
            .filter(CartItem.cart_id == cart.id)
            .order_by(CartItem.created_at, CartItem.id)
            .all()
        )
        return [
            {
                "id": item.id,
                "product_id": product.id,
                "quantity": item.quantity,
                "product": {
                    "id": product.id,
                    "title": product.title,
                    "price": float(product.price or 0),
                    "thumbnail_url": public_url(THUMBNAILS_BUCKET, product.thumbnail_url),
                    "is_free": product.is_free,
                    "category": product.category,
                },
            }
            for item, product in rows
        ]

    def add_item(self, db: Session, user_id: int, product_id: int, quantity: int = 1) -> CartItem:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        product = visible_products(db).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")

        cart = self.get_or_create_cart(db, user_id)
        if self._find_item(db, cart.id, product_id):
            raise DuplicateError("Already in cart")

        item = CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity)
        db.add(item)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise DuplicateError("Already in cart")
        return item

    def remove_item(self, db: Session, user_id: int, product_id: int):
        cart = self.get_or_create_cart(db, user_id)
        deleted = db.query(CartItem).filter(
            CartItem.cart_id == cart.id,
            CartItem.product_id == product_id,
        ).delete(synchronize_session=False)
        if not deleted:
            raise NotFoundError("Item is not in your cart")
        db.flush()

    def update_quantity(self, db: Session, user_id: int, product_id: int, quantity: int) -> CartItem:
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        cart = self.get_or_create_cart(db, user_id)
        item = self._find_item(db, cart.id, product_id)
        if not item:
            raise NotFoundError("Item is not in your cart")
        item.quantity = quantity
        db.flush()
        return item

    def clear_cart(self, db: Session, user_id: int):
        """Remove all items from the user's cart."""
        cart = self._oldest_cart(db, user_id)
        if cart:
            db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)
            db.flush()

    def remove_products(self, db: Session, user_id: int, product_ids: Iterable[int]) -> int:
        """Drop the given products from the user's cart (after a confirmed purchase)."""
        ids = list(set(product_ids))
        cart = self._oldest_cart(db, user_id)
        if not cart or not ids:
            return 0
        removed = db.query(CartItem).filter(
            CartItem.cart_id == cart.id,
            CartItem.product_id.in_(ids),
        ).delete(synchronize_session=False)
        db.flush()
        return removed

    def is_in_cart(self, db: Session, user_id: int, product_id: int) -> bool:
        cart = self._oldest_cart(db, user_id)
        return bool(cart and self._find_item(db, cart.id, product_id))

    def summary(self, items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """item_count = total quantity; total = paid lines only."""
        total = Decimal("0")
        for it in items:
            if not it["product"]["is_free"]:
                total += Decimal(str(it["product"]["price"])) * it["quantity"]
        return {
            "item_count": sum(it["quantity"] for it in items),
            "total": float(total),
        }

    # ==========================================
    # Private helpers
    # ==========================================

    def _oldest_cart(self, db: Session, user_id: int):
        return (
            db.query(Cart)
            .filter(Cart.user_id == user_id)
            .order_by(Cart.created_at, Cart.id)
            .first()
        )

    def _find_item(self, db: Session, cart_id: int, product_id: int):
        return db.query(CartItem).filter(
            CartItem.cart_id == cart_id,
            CartItem.product_id == product_id,
        ).first()


# Singleton
cart_service = CartService()
