"""
Order Module - Admin Routes
==============================
Order management for admin: list by status, delete.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.order.service import order_service

router = APIRouter(prefix="/api/admin/orders", tags=["order-admin"])


@router.get("")
async def admin_orders(
    status: str = Query("all"),
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    return {"orders": order_service.get_all_orders(db, status=status)}


@router.delete("/{order_id}")
async def delete_order(order_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    order_service.delete_order(db, order_id)
    db.commit()
    return {"success": True}
