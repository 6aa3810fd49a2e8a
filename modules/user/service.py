"""
User Module - Service Layer
============================
Profile editing, avatars, seller requests, and admin user/role management.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from sqlalchemy.orm import Session, joinedload

from common.exceptions import NotFoundError, ValidationError, DuplicateError
from common.storage import save_image, delete_file, public_url, AVATARS_BUCKET
from config.settings import PROFILE_BIO_MAX_LENGTH, AVATAR_MAX_SIZE
from modules.user.models import User, Profile, UserRole, AppRole

logger = logging.getLogger("digitalhub.user")


def serialize_profile(profile: Optional[Profile]) -> Optional[Dict[str, Any]]:
    if not profile:
        return None
    return {
        "id": profile.id,
        "user_id": profile.user_id,
        "display_name": profile.display_name,
        "bio": profile.bio,
        "avatar_url": public_url(AVATARS_BUCKET, profile.avatar_url),
        "is_seller": profile.is_seller,
        "seller_request_pending": profile.seller_request_pending,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
    }


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ProfileService:

    # ==========================================
    # Own profile
    # ==========================================

    def get_profile(self, db: Session, user_id: int) -> Profile:
        profile = db.query(Profile).filter(Profile.user_id == user_id).first()
        if not profile:
            # Accounts created before profiles existed
            profile = Profile(user_id=user_id)
            db.add(profile)
            db.flush()
        return profile

    def update_profile(
        self, db: Session, user_id: int,
        display_name: Optional[str] = None, bio: Optional[str] = None,
    ) -> Profile:
        """Update display name / bio. Empty strings clear the field."""
        profile = self.get_profile(db, user_id)
        if bio is not None and len(bio.strip()) > PROFILE_BIO_MAX_LENGTH:
            raise ValidationError(f"Bio must be at most {PROFILE_BIO_MAX_LENGTH} characters")

        if display_name is not None:
            profile.display_name = _clean_text(display_name)
        if bio is not None:
            profile.bio = _clean_text(bio)
        db.flush()
        return profile

    def update_avatar(self, db: Session, user_id: int, upload: UploadFile) -> Profile:
        profile = self.get_profile(db, user_id)
        path = save_image(upload, AVATARS_BUCKET, user_id, max_size=AVATAR_MAX_SIZE)
        if not path:
            raise ValidationError("No file uploaded")
        old = profile.avatar_url
        profile.avatar_url = path
        db.flush()
        if old:
            delete_file(AVATARS_BUCKET, old)
        return profile

    def request_seller(self, db: Session, user_id: int) -> Profile:
        profile = self.get_profile(db, user_id)
        if profile.is_seller:
            raise DuplicateError("You are already a seller")
        profile.seller_request_pending = True
        db.flush()
        logger.info(f"Seller request submitted by user #{user_id}")
        return profile

    # ==========================================
    # Admin: users, sellers, roles
    # ==========================================

    def list_users(self, db: Session) -> List[Dict[str, Any]]:
        """All users with their profile and roles, newest profiles first."""
        users = (
            db.query(User)
            .options(joinedload(User.profile), joinedload(User.roles))
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )
        return [
            {
                "id": u.id,
                "email": u.email,
                "is_active": u.is_active,
                "roles": u.role_names,
                "profile": serialize_profile(u.profile),
            }
            for u in users
        ]

    def list_seller_requests(self, db: Session) -> List[Profile]:
        return (
            db.query(Profile)
            .filter(Profile.seller_request_pending == True)
            .order_by(Profile.created_at.desc())
            .all()
        )

    def list_sellers(self, db: Session) -> List[Profile]:
        return (
            db.query(Profile)
            .filter(Profile.is_seller == True)
            .order_by(Profile.created_at.desc())
            .all()
        )

    def _profile_by_id(self, db: Session, profile_id: int) -> Profile:
        profile = db.query(Profile).filter(Profile.id == profile_id).first()
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def approve_seller(self, db: Session, profile_id: int) -> Profile:
        profile = self._profile_by_id(db, profile_id)
        profile.is_seller = True
        profile.seller_request_pending = False
        db.flush()
        logger.info(f"Seller approved: profile #{profile_id}")
        return profile

    def reject_seller_request(self, db: Session, profile_id: int) -> Profile:
        profile = self._profile_by_id(db, profile_id)
        profile.seller_request_pending = False
        db.flush()
        return profile

    def revoke_seller(self, db: Session, profile_id: int) -> Profile:
        profile = self._profile_by_id(db, profile_id)
        profile.is_seller = False
        profile.seller_request_pending = False
        db.flush()
        logger.info(f"Seller status revoked: profile #{profile_id}")
        return profile

    def grant_role(self, db: Session, user_id: int, role: str) -> User:
        user = self._user_by_id(db, user_id)
        role = self._valid_role(role)
        if role not in user.role_names:
            user.roles.append(UserRole(role=role))
            db.flush()
            logger.info(f"Role '{role}' granted to user #{user_id}")
        return user

    def revoke_role(self, db: Session, user_id: int, role: str) -> User:
        user = self._user_by_id(db, user_id)
        role = self._valid_role(role)
        for r in list(user.roles):
            if r.role == role:
                user.roles.remove(r)
        db.flush()
        logger.info(f"Role '{role}' revoked from user #{user_id}")
        return user

    def _user_by_id(self, db: Session, user_id: int) -> User:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")
        return user

    def _valid_role(self, role: str) -> str:
        allowed = [r.value for r in AppRole]
        if role not in allowed:
            raise ValidationError(f"Unknown role. Allowed: {', '.join(allowed)}")
        return role

    def display_names(self, db: Session, user_ids) -> Dict[int, str]:
        """Map user_id → display name for a batch of users (seller names on listings)."""
        ids = list({uid for uid in user_ids if uid is not None})
        if not ids:
            return {}
        rows = db.query(Profile.user_id, Profile.display_name).filter(Profile.user_id.in_(ids)).all()
        return {uid: name for uid, name in rows if name}


profile_service = ProfileService()
