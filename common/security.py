"""
DigitalHub - Security Utilities
================================
JWT access tokens, password hashing, and signed storage tokens.

NOTE: Unified auth: single bearer JWT for buyers, sellers, and admins.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from datetime import timedelta
from typing import Optional

from jose import jwt, JWTError

from config.settings import (
    SECRET_KEY, STORAGE_SIGNING_KEY, ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES, PASSWORD_HASH_ITERATIONS,
    SIGNED_URL_EXPIRE_SECONDS,
)
from common.helpers import now_utc

logger = logging.getLogger("digitalhub.security")


# ==========================================
# Passwords
# ==========================================

def hash_password(password: str) -> str:
    """PBKDF2-SHA256 hash in the form 'pbkdf2_sha256$iterations$salt$hash'."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PASSWORD_HASH_ITERATIONS,
    )
    encoded = base64.b64encode(digest).decode("ascii")
    return f"pbkdf2_sha256${PASSWORD_HASH_ITERATIONS}${salt}${encoded}"


def verify_password(password: str, stored: str) -> bool:
    """Constant-time check of a password against a stored PBKDF2 hash."""
    try:
        algorithm, iterations, salt, encoded = stored.split("$", 3)
    except (ValueError, AttributeError):
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations),
    )
    return hmac.compare_digest(base64.b64encode(digest).decode("ascii"), encoded)


# ==========================================
# JWT Access Tokens
# ==========================================

def create_token(data: dict) -> str:
    """Create JWT access token for any user."""
    to_encode = data.copy()
    to_encode["exp"] = now_utc() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT token. Returns payload or None."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


# ==========================================
# Signed Storage Tokens
# ==========================================

def create_storage_token(bucket: str, path: str, expires_in: int = SIGNED_URL_EXPIRE_SECONDS) -> str:
    """Short-lived token granting read access to one stored object."""
    payload = {
        "bucket": bucket,
        "path": path,
        "exp": now_utc() + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, STORAGE_SIGNING_KEY, algorithm=ALGORITHM)


def verify_storage_token(token: str, bucket: str, path: str) -> bool:
    """Check that a storage token is unexpired and was issued for this exact object."""
    try:
        payload = jwt.decode(token, STORAGE_SIGNING_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return False
    return payload.get("bucket") == bucket and payload.get("path") == path
