"""
Auth Module - Service Layer
=============================
Business logic for sign-up, sign-in, and access-token creation.
"""

import logging
from typing import Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.exceptions import AuthError, DuplicateError, ValidationError
from common.security import hash_password, verify_password, create_token
from config.settings import PASSWORD_MIN_LENGTH
from modules.user.models import User, Profile, UserRole, AppRole

logger = logging.getLogger("digitalhub.auth")


class AuthService:
    """Handles all authentication logic: registration, credential check, and token creation."""

    def signup(self, db: Session, email: str, password: str, display_name: str = "") -> User:
        """
        Create a user with an empty profile and the default 'user' role.

        Raises:
            ValidationError: password too short
            DuplicateError: e-mail already registered
        """
        email = email.strip().lower()
        if len(password or "") < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

        if db.query(User.id).filter(User.email == email).first():
            raise DuplicateError("An account with this email already exists")

        user = User(email=email, password_hash=hash_password(password))
        user.profile = Profile(display_name=display_name.strip() or None)
        user.roles.append(UserRole(role=AppRole.USER.value))
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            raise DuplicateError("An account with this email already exists")

        logger.info(f"New user registered: #{user.id}")
        return user

    def authenticate(self, db: Session, email: str, password: str) -> User:
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            raise AuthError("Invalid email or password")
        return user

    def login(self, db: Session, email: str, password: str) -> Tuple[User, str]:
        """Verify credentials and return (user, access_token)."""
        user = self.authenticate(db, email, password)
        return user, self.issue_token(user)

    def issue_token(self, user: User) -> str:
        return create_token({"sub": str(user.id), "email": user.email})


auth_service = AuthService()
