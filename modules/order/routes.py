"""
Order Module - Buyer & Seller Routes
======================================
  GET  /api/profile/purchases                              - Completed orders with items
  GET  /api/profile/purchases/latest                       - Most recent completed order
  POST /api/profile/purchases/{order_item_id}/download     - Signed URL for a purchased file
  POST /api/products/{product_id}/download                 - Signed URL (free or owned product)
  GET  /api/seller/orders                                  - Sales of the seller's products
  GET  /api/seller/earnings                                - Revenue totals + daily series
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_login, require_seller
from modules.order.service import order_service

router = APIRouter(tags=["orders"])


# ==========================================
# 🧾 Purchases
# ==========================================

@router.get("/api/profile/purchases")
async def my_purchases(db: Session = Depends(get_db), me=Depends(require_login)):
    return {"orders": order_service.get_purchases(db, me.id)}


@router.get("/api/profile/purchases/latest")
async def latest_purchase(db: Session = Depends(get_db), me=Depends(require_login)):
    return {"order": order_service.get_latest_purchase(db, me.id)}


@router.post("/api/profile/purchases/{order_item_id}/download")
async def download_purchase(order_item_id: int, db: Session = Depends(get_db), me=Depends(require_login)):
    result = order_service.download_purchase_item(db, me.id, order_item_id)
    db.commit()
    return result


@router.post("/api/products/{product_id}/download")
async def download_product(product_id: int, db: Session = Depends(get_db), me=Depends(require_login)):
    result = order_service.create_download_url(db, me.id, product_id)
    db.commit()
    return result


# ==========================================
# 💵 Seller sales
# ==========================================

@router.get("/api/seller/orders")
async def seller_orders(db: Session = Depends(get_db), seller=Depends(require_seller)):
    return {"orders": order_service.get_seller_orders(db, seller.id)}


@router.get("/api/seller/earnings")
async def seller_earnings(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    seller=Depends(require_seller),
):
    return order_service.get_seller_earnings(db, seller.id, days=days)
