"""
DigitalHub - File Storage
==========================
Bucketed file storage on local disk: public images (thumbnails, avatars)
and private product files served only through short-lived signed URLs.
"""

import logging
import os
import shutil
import uuid
from typing import Optional, Tuple

from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from config.settings import (
    STORAGE_DIR, PUBLIC_BUCKETS, PRIVATE_BUCKETS, ALLOWED_IMAGE_EXTENSIONS,
    MAX_FILE_SIZE, MAX_PRODUCT_FILE_SIZE, DEFAULT_IMAGE_MAX_SIZE,
    SIGNED_URL_EXPIRE_SECONDS, BASE_URL,
)
from common.exceptions import ValidationError, NotFoundError
from common.security import create_storage_token

logger = logging.getLogger("digitalhub.storage")

THUMBNAILS_BUCKET = "product-thumbnails"
AVATARS_BUCKET = "avatars"
PRODUCT_FILES_BUCKET = "product-files"


def _file_size(upload_file: UploadFile) -> int:
    upload_file.file.seek(0, 2)
    size = upload_file.file.tell()
    upload_file.file.seek(0)
    return size


def resolve_path(bucket: str, path: str) -> str:
    """Absolute disk path of an object. Rejects unknown buckets and path traversal."""
    if bucket not in PUBLIC_BUCKETS | PRIVATE_BUCKETS:
        raise NotFoundError("Unknown storage bucket")
    bucket_root = os.path.abspath(os.path.join(STORAGE_DIR, bucket))
    full = os.path.abspath(os.path.join(bucket_root, path))
    if not full.startswith(bucket_root + os.sep):
        raise NotFoundError("File not found")
    return full


def save_image(
    upload_file: UploadFile,
    bucket: str,
    owner_id: int,
    max_size: Tuple[int, int] = DEFAULT_IMAGE_MAX_SIZE,
) -> Optional[str]:
    """
    Save an uploaded image with validation and resizing.

    Returns:
        Object path inside the bucket ("<owner_id>/<uuid>.<ext>"), or None if upload is empty
    """
    if not upload_file or not upload_file.filename:
        return None

    if _file_size(upload_file) > MAX_FILE_SIZE:
        raise ValidationError(f"File too large (max {MAX_FILE_SIZE // (1024 * 1024)} MB)")

    ext = os.path.splitext(upload_file.filename)[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError(f"Unsupported image format. Allowed: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}")

    object_path = f"{owner_id}/{uuid.uuid4().hex}{ext}"
    full_path = resolve_path(bucket, object_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)

    try:
        img = Image.open(upload_file.file)
        img.thumbnail(max_size)
        if ext in [".jpg", ".jpeg"]:
            img.convert("RGB").save(full_path, optimize=True, quality=80)
        else:
            img.save(full_path)
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"Image save failed [{bucket}/{object_path}]: {e}")
        raise ValidationError("Invalid image file")

    return object_path


def save_file(upload_file: UploadFile, bucket: str, owner_id: int) -> Optional[str]:
    """Store an arbitrary uploaded file as-is (product downloads). Returns object path."""
    if not upload_file or not upload_file.filename:
        return None

    if _file_size(upload_file) > MAX_PRODUCT_FILE_SIZE:
        raise ValidationError(f"File too large (max {MAX_PRODUCT_FILE_SIZE // (1024 * 1024)} MB)")

    ext = os.path.splitext(upload_file.filename)[1].lower()
    object_path = f"{owner_id}/{uuid.uuid4().hex}{ext}"
    full_path = resolve_path(bucket, object_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)

    with open(full_path, "wb") as out:
        shutil.copyfileobj(upload_file.file, out)
    return object_path


def delete_file(bucket: str, path: Optional[str]) -> bool:
    """Safely delete a stored object. Returns True if deleted."""
    if not path:
        return False
    try:
        full_path = resolve_path(bucket, path)
        if os.path.exists(full_path):
            os.remove(full_path)
            return True
    except (OSError, NotFoundError) as e:
        logger.warning(f"Could not delete {bucket}/{path}: {e}")
    return False


def public_url(bucket: str, path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    return f"{BASE_URL}/files/{bucket}/{path}"


def create_signed_url(bucket: str, path: str, expires_in: int = SIGNED_URL_EXPIRE_SECONDS) -> str:
    """URL for a private object, valid for `expires_in` seconds."""
    token = create_storage_token(bucket, path, expires_in)
    return f"{BASE_URL}/files/{bucket}/{path}?token={token}"
