"""
Catalog Module - Storefront Routes
====================================
Public JSON API for browsing the marketplace.

Endpoints:
  GET /api/products             - Filtered, sorted, paginated listing
  GET /api/products/categories  - Categories that have visible products
  GET /api/products/{id}        - Product detail with seller profile
"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import PRODUCTS_PER_PAGE
from common.helpers import total_pages
from modules.catalog.models import ProductSort
from modules.catalog.service import catalog_service

router = APIRouter(prefix="/api/products", tags=["storefront"])


@router.get("")
async def list_products(
    search: str = "",
    category: str = "",
    free: bool = False,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort: ProductSort = ProductSort.NEWEST,
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
):
    products, total = catalog_service.browse(
        db,
        search=search,
        category=category,
        free_only=free,
        min_price=min_price,
        max_price=max_price,
        sort=sort.value,
        page=page,
    )
    return {
        "products": products,
        "total": total,
        "page": page,
        "per_page": PRODUCTS_PER_PAGE,
        "total_pages": total_pages(total, PRODUCTS_PER_PAGE),
    }


@router.get("/categories")
async def list_categories(db: Session = Depends(get_db)):
    return {"categories": catalog_service.list_categories(db)}


@router.get("/{product_id}")
async def product_detail(product_id: int, db: Session = Depends(get_db)):
    return catalog_service.get_product_detail(db, product_id)
