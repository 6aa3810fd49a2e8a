"""
Catalog Module - Seller Dashboard Routes
==========================================
Product management for approved sellers, plus storefront settings.
All routes require profile.is_seller.

Endpoints:
  GET    /api/seller/products                 - Own products
  POST   /api/seller/products                 - Create product
  PUT    /api/seller/products/{id}            - Update product
  POST   /api/seller/products/{id}/publish    - Toggle is_published
  DELETE /api/seller/products/{id}            - Delete product
  POST   /api/seller/uploads/thumbnail        - Upload thumbnail image
  POST   /api/seller/uploads/file             - Upload downloadable file
  PATCH  /api/seller/settings                 - Display name / bio
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.storage import public_url, THUMBNAILS_BUCKET
from modules.auth.deps import require_seller
from modules.catalog.service import catalog_service, serialize_product
from modules.user.service import profile_service, serialize_profile

router = APIRouter(prefix="/api/seller", tags=["seller"])


# ==========================================
# Schemas
# ==========================================

class ProductForm(BaseModel):
    title: str = Field(..., max_length=200)
    description: Optional[str] = ""
    price: Decimal = Field(Decimal("0"), ge=0)
    original_price: Optional[Decimal] = Field(None, ge=0)
    category: str = Field(..., max_length=100)
    is_free: bool = False
    is_published: bool = False
    thumbnail_url: Optional[str] = None
    file_url: Optional[str] = None


class SellerSettings(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None


# ==========================================
# 📦 Products
# ==========================================

@router.get("/products")
async def my_products(db: Session = Depends(get_db), seller=Depends(require_seller)):
    products = catalog_service.list_seller_products(db, seller.id)
    return {
        "products": [serialize_product(p, private=True) for p in products],
        "total_downloads": sum(p.download_count or 0 for p in products),
    }


@router.post("/products", status_code=201)
async def create_product(body: ProductForm, db: Session = Depends(get_db), seller=Depends(require_seller)):
    product = catalog_service.create_product(db, seller.id, body.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(product)
    return {"success": True, "product": serialize_product(product, private=True)}


@router.put("/products/{product_id}")
async def update_product(
    product_id: int, body: ProductForm,
    db: Session = Depends(get_db), seller=Depends(require_seller),
):
    product = catalog_service.update_product(db, seller.id, product_id, body.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(product)
    return {"success": True, "product": serialize_product(product, private=True)}


@router.post("/products/{product_id}/publish")
async def toggle_publish(product_id: int, db: Session = Depends(get_db), seller=Depends(require_seller)):
    product = catalog_service.toggle_publish(db, seller.id, product_id)
    db.commit()
    return {"success": True, "is_published": product.is_published}


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, db: Session = Depends(get_db), seller=Depends(require_seller)):
    catalog_service.delete_seller_product(db, seller.id, product_id)
    db.commit()
    return {"success": True}


# ==========================================
# 📤 Uploads
# ==========================================

@router.post("/uploads/thumbnail")
async def upload_thumbnail(
    file: UploadFile = File(...),
    db: Session = Depends(get_db), seller=Depends(require_seller),
):
    path = catalog_service.upload_thumbnail(db, seller.id, file)
    return {"path": path, "url": public_url(THUMBNAILS_BUCKET, path)}


@router.post("/uploads/file")
async def upload_product_file(
    file: UploadFile = File(...),
    db: Session = Depends(get_db), seller=Depends(require_seller),
):
    path = catalog_service.upload_product_file(db, seller.id, file)
    return {"path": path}


# ==========================================
# ⚙️ Settings
# ==========================================

@router.patch("/settings")
async def update_settings(body: SellerSettings, db: Session = Depends(get_db), seller=Depends(require_seller)):
    profile = profile_service.update_profile(db, seller.id, display_name=body.display_name, bio=body.bio)
    db.commit()
    return {"success": True, "profile": serialize_profile(profile)}
