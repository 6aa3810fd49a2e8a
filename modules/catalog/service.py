"""
Catalog Module - Service Layer
================================
Storefront browsing, seller product management, and admin moderation.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.orm import Session
from sqlalchemy import asc, desc, func

from common.exceptions import NotFoundError, ValidationError, PermissionDeniedError
from common.helpers import safe_decimal
from common.storage import (
    save_image, save_file, delete_file, public_url,
    THUMBNAILS_BUCKET, PRODUCT_FILES_BUCKET,
)
from config.settings import PRODUCTS_PER_PAGE, DEFAULT_MODERATION_STATUS
from modules.catalog.models import Product, ModerationStatus, ProductSort
from modules.user.service import profile_service

logger = logging.getLogger("digitalhub.catalog")

UNKNOWN_CREATOR = "Unknown Creator"
UNKNOWN_SELLER = "Unknown Seller"


def serialize_product(product: Product, private: bool = False) -> Dict[str, Any]:
    """
    Product as JSON. `private=True` adds seller/admin-only fields
    (moderation notes, stored file path).
    """
    data = {
        "id": product.id,
        "seller_id": product.seller_id,
        "title": product.title,
        "description": product.description,
        "price": float(product.price or 0),
        "original_price": float(product.original_price) if product.original_price is not None else None,
        "category": product.category,
        "thumbnail_url": public_url(THUMBNAILS_BUCKET, product.thumbnail_url),
        "is_free": product.is_free,
        "is_published": product.is_published,
        "moderation_status": product.moderation_status,
        "download_count": product.download_count,
        "has_file": bool(product.file_url),
        "created_at": product.created_at.isoformat() if product.created_at else None,
    }
    if private:
        data["moderation_notes"] = product.moderation_notes
        data["file_url"] = product.file_url
    return data


def visible_products(db: Session):
    """Base query for products shown on the storefront."""
    return db.query(Product).filter(
        Product.is_published == True,
        Product.moderation_status == ModerationStatus.APPROVED.value,
    )


class CatalogService:

    # ==========================================
    # 🛍️ Storefront
    # ==========================================

    def browse(
        self,
        db: Session,
        search: str = "",
        category: str = "",
        free_only: bool = False,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        sort: str = ProductSort.NEWEST.value,
        page: int = 1,
        per_page: int = PRODUCTS_PER_PAGE,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Paginated visible products with seller display names.

        Returns:
            (products, total_count)
        """
        query = visible_products(db)

        if search:
            query = query.filter(Product.title.ilike(f"%{search.strip()}%"))
        if category and category != "All":
            query = query.filter(Product.category == category)
        if free_only:
            query = query.filter(Product.is_free == True)
        if min_price is not None:
            query = query.filter(Product.price >= min_price)
        if max_price is not None:
            query = query.filter(Product.price <= max_price)

        total = query.count()

        if sort == ProductSort.OLDEST.value:
            query = query.order_by(asc(Product.created_at), asc(Product.id))
        elif sort == ProductSort.PRICE_LOW.value:
            query = query.order_by(asc(Product.price), desc(Product.id))
        elif sort == ProductSort.PRICE_HIGH.value:
            query = query.order_by(desc(Product.price), desc(Product.id))
        elif sort == ProductSort.POPULAR.value:
            query = query.order_by(desc(Product.download_count), desc(Product.id))
        else:
            query = query.order_by(desc(Product.created_at), desc(Product.id))

        page = max(1, page)
        products = query.offset((page - 1) * per_page).limit(per_page).all()

        names = profile_service.display_names(db, [p.seller_id for p in products])
        results = []
        for p in products:
            item = serialize_product(p)
            item["creator"] = names.get(p.seller_id, UNKNOWN_CREATOR)
            results.append(item)
        return results, total

    def list_categories(self, db: Session) -> List[str]:
        rows = (
            visible_products(db)
            .with_entities(Product.category)
            .distinct()
            .order_by(Product.category)
            .all()
        )
        return [r[0] for r in rows]

    def get_visible_product(self, db: Session, product_id: int) -> Product:
        product = visible_products(db).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        return product

    def get_product_detail(self, db: Session, product_id: int) -> Dict[str, Any]:
        """Visible product with its seller's public profile."""
        from modules.like.service import like_service

        product = self.get_visible_product(db, product_id)
        profile = profile_service.get_profile(db, product.seller_id)
        data = serialize_product(product)
        data["seller"] = {
            "display_name": profile.display_name or UNKNOWN_SELLER,
            "avatar_url": public_url("avatars", profile.avatar_url),
            "bio": profile.bio,
        }
        data["like_count"] = like_service.like_count(db, product_id)
        return data

    def get_products_by_ids(self, db: Session, product_ids) -> Dict[int, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        return {p.id: p for p in db.query(Product).filter(Product.id.in_(ids)).all()}

    # ==========================================
    # 🧑‍💼 Seller products
    # ==========================================

    def list_seller_products(self, db: Session, seller_id: int) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.seller_id == seller_id)
            .order_by(desc(Product.created_at), desc(Product.id))
            .all()
        )

    def get_owned_product(self, db: Session, seller_id: int, product_id: int) -> Product:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        if product.seller_id != seller_id:
            raise PermissionDeniedError("This product does not belong to you")
        return product

    def _apply_fields(self, product: Product, data: Dict[str, Any]):
        title = (data.get("title") or "").strip()
        if not title:
            raise ValidationError("Please enter a product title.")
        category = (data.get("category") or "").strip()
        if not category:
            raise ValidationError("Please select a category.")

        is_free = bool(data.get("is_free", False))
        price = Decimal("0") if is_free else (safe_decimal(data.get("price")) or Decimal("0"))
        if price < 0:
            raise ValidationError("Price cannot be negative")
        original_price = safe_decimal(data.get("original_price"))

        product.title = title
        product.description = (data.get("description") or "").strip() or None
        product.category = category
        product.price = price
        product.original_price = original_price
        product.is_free = is_free
        if "is_published" in data:
            product.is_published = bool(data["is_published"])
        if "thumbnail_url" in data:
            product.thumbnail_url = self._owned_object_path(product.seller_id, data.get("thumbnail_url"))
        if "file_url" in data:
            product.file_url = self._owned_object_path(product.seller_id, data.get("file_url"))

    def _owned_object_path(self, seller_id: int, path: Optional[str]) -> Optional[str]:
        """Uploaded object paths are "{seller_id}/..."; anything else belongs to someone else."""
        path = (path or "").strip()
        if not path:
            return None
        if not path.startswith(f"{seller_id}/") or ".." in path.split("/"):
            raise ValidationError("File must be one of your own uploads")
        return path

    def create_product(self, db: Session, seller_id: int, data: Dict[str, Any]) -> Product:
        product = Product(seller_id=seller_id, moderation_status=DEFAULT_MODERATION_STATUS)
        self._apply_fields(product, data)
        db.add(product)
        db.flush()
        logger.info(f"Product #{product.id} created by seller #{seller_id}")
        return product

    def update_product(self, db: Session, seller_id: int, product_id: int, data: Dict[str, Any]) -> Product:
        product = self.get_owned_product(db, seller_id, product_id)
        self._apply_fields(product, data)
        db.flush()
        return product

    def toggle_publish(self, db: Session, seller_id: int, product_id: int) -> Product:
        product = self.get_owned_product(db, seller_id, product_id)
        product.is_published = not product.is_published
        db.flush()
        return product

    def delete_seller_product(self, db: Session, seller_id: int, product_id: int):
        product = self.get_owned_product(db, seller_id, product_id)
        self._delete(db, product)

    def upload_thumbnail(self, db: Session, seller_id: int, upload: UploadFile) -> str:
        path = save_image(upload, THUMBNAILS_BUCKET, seller_id)
        if not path:
            raise ValidationError("No file uploaded")
        return path

    def upload_product_file(self, db: Session, seller_id: int, upload: UploadFile) -> str:
        path = save_file(upload, PRODUCT_FILES_BUCKET, seller_id)
        if not path:
            raise ValidationError("No file uploaded")
        return path

    # ==========================================
    # 🛡️ Admin moderation
    # ==========================================

    def list_for_moderation(self, db: Session, status: str = "all") -> List[Dict[str, Any]]:
        query = db.query(Product).order_by(desc(Product.created_at), desc(Product.id))
        if status and status != "all":
            query = query.filter(Product.moderation_status == status)
        products = query.all()

        names = profile_service.display_names(db, [p.seller_id for p in products])
        results = []
        for p in products:
            item = serialize_product(p, private=True)
            item["seller_name"] = names.get(p.seller_id, UNKNOWN_SELLER)
            results.append(item)
        return results

    def moderate(self, db: Session, product_id: int, action: str, notes: str = "") -> Product:
        if action not in ("approve", "reject"):
            raise ValidationError("Action must be 'approve' or 'reject'")
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")

        product.moderation_status = (
            ModerationStatus.APPROVED.value if action == "approve" else ModerationStatus.REJECTED.value
        )
        product.moderation_notes = (notes or "").strip() or None
        db.flush()
        logger.info(f"Product #{product_id} {product.moderation_status} by moderation")
        return product

    def admin_delete_product(self, db: Session, product_id: int):
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        self._delete(db, product)

    def count_products(self, db: Session, moderation_status: Optional[str] = None) -> int:
        query = db.query(func.count(Product.id))
        if moderation_status:
            query = query.filter(Product.moderation_status == moderation_status)
        return query.scalar() or 0

    def _delete(self, db: Session, product: Product):
        product_id, thumb, file_path = product.id, product.thumbnail_url, product.file_url
        db.delete(product)
        db.flush()
        delete_file(THUMBNAILS_BUCKET, thumb)
        delete_file(PRODUCT_FILES_BUCKET, file_path)
        logger.info(f"Product #{product_id} deleted")


catalog_service = CatalogService()
