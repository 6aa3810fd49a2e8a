"""
Auth Module - Routes
=====================
Sign-up, sign-in (bearer token issue), current user.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.service import auth_service
from modules.auth.deps import require_login
from modules.user.service import serialize_profile

router = APIRouter(prefix="/auth", tags=["auth"])


# ==========================================
# Schemas
# ==========================================

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    display_name: Optional[str] = ""


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


def _token_response(user, token: str) -> dict:
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": {"id": user.id, "email": user.email, "roles": user.role_names},
    }


# ==========================================
# Sign up
# ==========================================

@router.post("/signup", status_code=201)
async def signup(body: SignupRequest, db: Session = Depends(get_db)):
    user = auth_service.signup(db, body.email, body.password, body.display_name or "")
    db.commit()
    db.refresh(user)
    return _token_response(user, auth_service.issue_token(user))


# ==========================================
# Sign in
# ==========================================

@router.post("/login")
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    user, token = auth_service.login(db, body.email, body.password)
    return _token_response(user, token)


# ==========================================
# Current user
# ==========================================

@router.get("/me")
async def me(user=Depends(require_login)):
    return {
        "id": user.id,
        "email": user.email,
        "roles": user.role_names,
        "is_admin": user.is_admin,
        "is_seller": user.is_seller,
        "profile": serialize_profile(user.profile),
    }
