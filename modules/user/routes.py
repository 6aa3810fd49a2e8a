"""
User Module - Profile Routes
==============================
  GET   /api/profile                  - Own profile
  PATCH /api/profile                  - Display name / bio
  POST  /api/profile/avatar           - Upload avatar
  POST  /api/profile/seller-request   - Ask to become a seller
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_login
from modules.user.service import profile_service, serialize_profile

router = APIRouter(prefix="/api/profile", tags=["profile"])


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None


@router.get("")
async def get_profile(db: Session = Depends(get_db), me=Depends(require_login)):
    profile = profile_service.get_profile(db, me.id)
    db.commit()
    return {"email": me.email, "roles": me.role_names, "profile": serialize_profile(profile)}


@router.patch("")
async def update_profile(body: ProfileUpdate, db: Session = Depends(get_db), me=Depends(require_login)):
    profile = profile_service.update_profile(db, me.id, display_name=body.display_name, bio=body.bio)
    db.commit()
    return {"success": True, "profile": serialize_profile(profile)}


@router.post("/avatar")
async def upload_avatar(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    profile = profile_service.update_avatar(db, me.id, file)
    db.commit()
    return {"success": True, "profile": serialize_profile(profile)}


@router.post("/seller-request")
async def request_seller(db: Session = Depends(get_db), me=Depends(require_login)):
    profile = profile_service.request_seller(db, me.id)
    db.commit()
    return {"success": True, "profile": serialize_profile(profile)}
