"""
Catalog Module - Admin Routes
===============================
Product moderation. All routes require the admin role.

Endpoints:
  GET    /api/admin/products                  - List (filter by moderation status)
  POST   /api/admin/products/{id}/moderate    - Approve / reject with notes
  DELETE /api/admin/products/{id}             - Delete any product
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.catalog.service import catalog_service, serialize_product

router = APIRouter(prefix="/api/admin/products", tags=["catalog-admin"])


class ModerationRequest(BaseModel):
    action: str               # "approve" | "reject"
    notes: Optional[str] = ""


@router.get("")
async def list_products(status: str = "all", db: Session = Depends(get_db), admin=Depends(require_admin)):
    return {"products": catalog_service.list_for_moderation(db, status)}


@router.post("/{product_id}/moderate")
async def moderate_product(
    product_id: int, body: ModerationRequest,
    db: Session = Depends(get_db), admin=Depends(require_admin),
):
    product = catalog_service.moderate(db, product_id, body.action, body.notes or "")
    db.commit()
    return {"success": True, "product": serialize_product(product, private=True)}


@router.delete("/{product_id}")
async def delete_product(product_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    catalog_service.admin_delete_product(db, product_id)
    db.commit()
    return {"success": True}
