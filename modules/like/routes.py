"""
Like Module - Routes
=====================
  POST /api/products/{id}/like   - Toggle like (login required)
  GET  /api/products/{id}/likes  - Like count (+ liked flag when logged in)
  GET  /api/wishlist             - Liked product ids
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_login, get_current_active_user
from modules.like.service import like_service

router = APIRouter(prefix="/api", tags=["likes"])


@router.post("/products/{product_id}/like")
async def toggle_like(product_id: int, db: Session = Depends(get_db), me=Depends(require_login)):
    liked, count = like_service.toggle(db, me.id, product_id)
    db.commit()
    return {"liked": liked, "like_count": count}


@router.get("/products/{product_id}/likes")
async def like_info(product_id: int, db: Session = Depends(get_db), user=Depends(get_current_active_user)):
    return {
        "like_count": like_service.like_count(db, product_id),
        "liked": bool(user and like_service.is_liked(db, user.id, product_id)),
    }


@router.get("/wishlist")
async def wishlist(db: Session = Depends(get_db), me=Depends(require_login)):
    return {"product_ids": like_service.wishlist(db, me.id)}
