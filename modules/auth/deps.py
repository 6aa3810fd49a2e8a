"""
Auth Module - Dependencies
===========================
FastAPI dependencies for user authentication and authorization.
These are injected into route handlers via Depends().

NOTE: Unified auth: one bearer JWT ("Authorization: Bearer <token>") for every user type.
"""

from typing import Optional

from fastapi import Request, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import AuthError, PermissionDeniedError
from common.security import decode_token, extract_bearer_token
from modules.user.models import User


def get_current_active_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """
    Identify the current user from the Authorization header.
    Returns User object or None.
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        return None

    return db.query(User).filter(User.id == int(user_id), User.is_active == True).first()


def require_login(user=Depends(get_current_active_user)) -> User:
    """Require any authenticated active user. Raises 401 if not logged in."""
    if not user:
        raise AuthError()
    return user


def require_seller(user=Depends(get_current_active_user)) -> User:
    """Only allow approved sellers. Raises 401/403 otherwise."""
    if not user:
        raise AuthError()
    if not user.is_seller:
        raise PermissionDeniedError("Seller account required")
    return user


def require_admin(user=Depends(get_current_active_user)) -> User:
    """Only allow users holding the admin role. Raises 401/403 otherwise."""
    if not user:
        raise AuthError()
    if not user.is_admin:
        raise PermissionDeniedError("You don't have permission to access the admin panel.")
    return user
