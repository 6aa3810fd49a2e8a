"""
Order Module - Service Layer
===============================
Order materialization from confirmed payments, buyer purchases and
downloads, seller sales views, and admin order management.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload
from sqlalchemy import desc, func

from common.exceptions import NotFoundError, PermissionDeniedError
from common.helpers import now_utc, safe_int, from_minor_units
from common.storage import create_signed_url, public_url, PRODUCT_FILES_BUCKET, THUMBNAILS_BUCKET
from modules.order.models import Order, OrderItem, OrderStatus
from modules.catalog.models import Product
from modules.user.models import User
from modules.user.service import profile_service

logger = logging.getLogger("digitalhub.order")


def _money(value) -> float:
    return float(Decimal(str(value or 0)))


def serialize_order(order: Order) -> Dict[str, Any]:
    items = []
    for oi in order.items:
        product = oi.product
        items.append({
            "id": oi.id,
            "product_id": oi.product_id,
            "price": _money(oi.price),
            "quantity": oi.quantity,
            "product": {
                "id": product.id,
                "title": product.title,
                "thumbnail_url": public_url(THUMBNAILS_BUCKET, product.thumbnail_url),
                "category": product.category,
                "has_file": bool(product.file_url),
            } if product else None,
        })
    return {
        "id": order.id,
        "payment_id": order.payment_id,
        "status": order.status,
        "total_amount": _money(order.total_amount),
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "items": items,
    }


class OrderService:

    # ==========================================
    # Materialize from payment
    # ==========================================

    def create_from_payment(
        self,
        db: Session,
        user_id: int,
        payment_id: Optional[str],
        cart_items: List[Dict[str, Any]],
        total_minor: Optional[int] = None,
    ) -> Optional[Order]:
        """
        Create a completed order and its items from the checkout metadata snapshot.
        Returns None when an order for this payment already exists.

        cart_items: [{"id": product_id, "title": ..., "price": major units, "qty": n}, ...]
        """
        if payment_id and self.get_by_payment_id(db, payment_id):
            logger.info(f"Order for payment {payment_id} already exists, skipping")
            return None

        product_ids = [pid for pid in (safe_int(ci.get("id")) for ci in cart_items) if pid is not None]
        existing = {
            pid for (pid,) in db.query(Product.id).filter(Product.id.in_(product_ids)).all()
        } if product_ids else set()

        order = Order(
            user_id=user_id,
            payment_id=payment_id or None,
            status=OrderStatus.COMPLETED.value,
        )
        computed_total = Decimal("0")
        for ci in cart_items:
            pid = safe_int(ci.get("id"))
            price = Decimal(str(ci.get("price") or 0)).quantize(Decimal("0.01"))
            qty = safe_int(ci.get("qty")) or 1
            computed_total += price * qty
            order.items.append(OrderItem(
                product_id=pid if pid in existing else None,
                price=price,
                quantity=qty,
            ))

        order.total_amount = from_minor_units(total_minor) if total_minor is not None else computed_total
        db.add(order)
        db.flush()
        logger.info(f"Order #{order.id} completed with {len(order.items)} items (payment {payment_id})")
        return order

    def mark_status(
        self, db: Session, payment_id: str, status: str, only_from: Optional[List[str]] = None,
    ) -> Optional[Order]:
        """Move the order for `payment_id` to `status`; None if no matching order."""
        if not payment_id:
            return None
        order = self.get_by_payment_id(db, payment_id)
        if not order:
            return None
        if only_from and order.status not in only_from:
            return None
        order.status = status
        db.flush()
        logger.info(f"Order #{order.id} marked {status} (payment {payment_id})")
        return order

    def get_by_payment_id(self, db: Session, payment_id: str) -> Optional[Order]:
        return db.query(Order).filter(Order.payment_id == payment_id).first()

    # ==========================================
    # Buyer purchases
    # ==========================================

    def _completed_orders(self, db: Session, user_id: int):
        return (
            db.query(Order)
            .options(selectinload(Order.items).joinedload(OrderItem.product))
            .filter(Order.user_id == user_id, Order.status == OrderStatus.COMPLETED.value)
            .order_by(desc(Order.created_at), desc(Order.id))
        )

    def get_purchases(self, db: Session, user_id: int) -> List[Dict[str, Any]]:
        return [serialize_order(o) for o in self._completed_orders(db, user_id).all()]

    def get_latest_purchase(self, db: Session, user_id: int) -> Optional[Dict[str, Any]]:
        order = self._completed_orders(db, user_id).first()
        return serialize_order(order) if order else None

    def user_owns_product(self, db: Session, user_id: int, product_id: int) -> bool:
        return db.query(OrderItem.id).join(Order).filter(
            Order.user_id == user_id,
            Order.status == OrderStatus.COMPLETED.value,
            OrderItem.product_id == product_id,
        ).first() is not None

    def create_download_url(self, db: Session, user_id: int, product_id: int) -> Dict[str, Any]:
        """
        Signed, short-lived URL for a product file. Free products are open to
        every logged-in user; paid ones require a completed purchase.
        """
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        if not product.is_free and not self.user_owns_product(db, user_id, product_id):
            raise PermissionDeniedError("You have not purchased this product")
        if not product.file_url:
            raise NotFoundError("Download unavailable")

        db.query(Product).filter(Product.id == product_id).update(
            {Product.download_count: Product.download_count + 1},
            synchronize_session=False,
        )
        db.flush()
        logger.info(f"Download issued: product #{product_id} for user #{user_id}")
        return {
            "url": create_signed_url(PRODUCT_FILES_BUCKET, product.file_url),
            "title": product.title,
        }

    def download_purchase_item(self, db: Session, user_id: int, order_item_id: int) -> Dict[str, Any]:
        item = (
            db.query(OrderItem)
            .join(Order)
            .filter(
                OrderItem.id == order_item_id,
                Order.user_id == user_id,
                Order.status == OrderStatus.COMPLETED.value,
            )
            .first()
        )
        if not item:
            raise NotFoundError("Purchase not found")
        if item.product_id is None:
            raise NotFoundError("Download unavailable")
        return self.create_download_url(db, user_id, item.product_id)

    # ==========================================
    # Seller views
    # ==========================================

    def _seller_sales(self, db: Session, seller_id: int):
        return (
            db.query(OrderItem, Order, Product)
            .join(Order, Order.id == OrderItem.order_id)
            .join(Product, Product.id == OrderItem.product_id)
            .filter(Product.seller_id == seller_id, Order.status == OrderStatus.COMPLETED.value)
        )

    def get_seller_orders(self, db: Session, seller_id: int) -> List[Dict[str, Any]]:
        rows = self._seller_sales(db, seller_id).order_by(desc(Order.created_at), desc(OrderItem.id)).all()
        names = profile_service.display_names(db, [o.user_id for _, o, _ in rows])
        return [
            {
                "order_item_id": oi.id,
                "order_id": o.id,
                "product_id": p.id,
                "product_title": p.title,
                "buyer": names.get(o.user_id, "Customer"),
                "price": _money(oi.price),
                "quantity": oi.quantity,
                "status": o.status,
                "created_at": o.created_at.isoformat() if o.created_at else None,
            }
            for oi, o, p in rows
        ]

    def get_seller_earnings(self, db: Session, seller_id: int, days: int = 30) -> Dict[str, Any]:
        rows = self._seller_sales(db, seller_id).all()
        total = sum((Decimal(str(oi.price)) * oi.quantity for oi, _, _ in rows), Decimal("0"))
        sales = sum(oi.quantity for oi, _, _ in rows)

        start = (now_utc() - timedelta(days=days)).date()
        by_day: Dict[str, Decimal] = {}
        for oi, o, _ in rows:
            if not o.created_at or o.created_at.date() < start:
                continue
            key = o.created_at.date().isoformat()
            by_day[key] = by_day.get(key, Decimal("0")) + Decimal(str(oi.price)) * oi.quantity

        return {
            "total_revenue": float(total),
            "sales_count": sales,
            "daily": [{"date": d, "revenue": float(v)} for d, v in sorted(by_day.items())],
        }

    # ==========================================
    # Admin
    # ==========================================

    def get_all_orders(self, db: Session, status: Optional[str] = None) -> List[Dict[str, Any]]:
        q = (
            db.query(Order, User.email)
            .join(User, User.id == Order.user_id)
            .options(selectinload(Order.items).joinedload(OrderItem.product))
            .order_by(desc(Order.created_at), desc(Order.id))
        )
        if status and status != "all":
            q = q.filter(Order.status == status)
        results = []
        for order, email in q.all():
            data = serialize_order(order)
            data["user_id"] = order.user_id
            data["customer_email"] = email
            results.append(data)
        return results

    def delete_order(self, db: Session, order_id: int):
        """Delete an order and its items; both deletes share the caller's transaction."""
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order not found")
        db.query(OrderItem).filter(OrderItem.order_id == order_id).delete(synchronize_session=False)
        db.delete(order)
        db.flush()
        logger.info(f"Order #{order_id} deleted")

    def get_revenue_stats(self, db: Session) -> Dict[str, Any]:
        revenue, count = (
            db.query(func.coalesce(func.sum(Order.total_amount), 0), func.count(Order.id))
            .filter(Order.status == OrderStatus.COMPLETED.value)
            .one()
        )
        return {"total_revenue": _money(revenue), "completed_orders": count}

    def get_daily_revenue(self, db: Session, days: int = 30) -> List[Dict[str, Any]]:
        """Completed-order revenue and count per day for the last N days."""
        start = now_utc() - timedelta(days=days)
        day = func.date(Order.created_at)
        rows = (
            db.query(
                day.label("day"),
                func.count(Order.id).label("count"),
                func.coalesce(func.sum(Order.total_amount), 0).label("revenue"),
            )
            .filter(Order.status == OrderStatus.COMPLETED.value, Order.created_at >= start)
            .group_by(day)
            .order_by(day)
            .all()
        )
        return [
            {"date": str(r.day), "count": r.count, "revenue": _money(r.revenue)}
            for r in rows
        ]


order_service = OrderService()
