"""
Admin Module - Console Routes
===============================
Overview, analytics, users, seller requests, and roles.
All routes require the admin role.

Endpoints:
  GET  /api/admin/overview
  GET  /api/admin/analytics?days=30
  GET  /api/admin/users
  GET  /api/admin/seller-requests
  GET  /api/admin/sellers
  POST /api/admin/profiles/{profile_id}/approve-seller
  POST /api/admin/profiles/{profile_id}/reject-seller
  POST /api/admin/profiles/{profile_id}/revoke-seller
  POST /api/admin/users/{user_id}/roles          body: {"role": "..."}
  DELETE /api/admin/users/{user_id}/roles/{role}
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.admin.dashboard_service import dashboard_service
from modules.user.service import profile_service, serialize_profile

router = APIRouter(prefix="/api/admin", tags=["admin"])


class RoleRequest(BaseModel):
    role: str


# ==========================================
# 📊 Dashboard
# ==========================================

@router.get("/overview")
async def overview(db: Session = Depends(get_db), admin=Depends(require_admin)):
    return dashboard_service.get_overview_stats(db)


@router.get("/analytics")
async def analytics(
    days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    return dashboard_service.get_analytics(db, days=days)


# ==========================================
# 👥 Users & sellers
# ==========================================

@router.get("/users")
async def list_users(db: Session = Depends(get_db), admin=Depends(require_admin)):
    return {"users": profile_service.list_users(db)}


@router.get("/seller-requests")
async def seller_requests(db: Session = Depends(get_db), admin=Depends(require_admin)):
    return {"profiles": [serialize_profile(p) for p in profile_service.list_seller_requests(db)]}


@router.get("/sellers")
async def sellers(db: Session = Depends(get_db), admin=Depends(require_admin)):
    return {"profiles": [serialize_profile(p) for p in profile_service.list_sellers(db)]}


@router.post("/profiles/{profile_id}/approve-seller")
async def approve_seller(profile_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    profile = profile_service.approve_seller(db, profile_id)
    db.commit()
    return {"success": True, "profile": serialize_profile(profile)}


@router.post("/profiles/{profile_id}/reject-seller")
async def reject_seller(profile_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    profile = profile_service.reject_seller_request(db, profile_id)
    db.commit()
    return {"success": True, "profile": serialize_profile(profile)}


@router.post("/profiles/{profile_id}/revoke-seller")
async def revoke_seller(profile_id: int, db: Session = Depends(get_db), admin=Depends(require_admin)):
    profile = profile_service.revoke_seller(db, profile_id)
    db.commit()
    return {"success": True, "profile": serialize_profile(profile)}


# ==========================================
# 🔑 Roles
# ==========================================

@router.post("/users/{user_id}/roles")
async def grant_role(user_id: int, body: RoleRequest, db: Session = Depends(get_db), admin=Depends(require_admin)):
    user = profile_service.grant_role(db, user_id, body.role)
    db.commit()
    return {"success": True, "roles": user.role_names}


@router.delete("/users/{user_id}/roles/{role}")
async def revoke_role(user_id: int, role: str, db: Session = Depends(get_db), admin=Depends(require_admin)):
    user = profile_service.revoke_role(db, user_id, role)
    db.commit()
    return {"success": True, "roles": user.role_names}
