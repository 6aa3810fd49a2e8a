"""
Files Module - Routes
======================
  GET /files/{bucket}/{path}             - Public buckets (thumbnails, avatars)
  GET /files/{bucket}/{path}?token=...   - Private buckets, signed token required
"""

import os

from fastapi import APIRouter
from fastapi.responses import FileResponse

from config.settings import PRIVATE_BUCKETS
from common.exceptions import NotFoundError, PermissionDeniedError
from common.security import verify_storage_token
from common.storage import resolve_path

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{bucket}/{path:path}")
async def serve_file(bucket: str, path: str, token: str = ""):
    if bucket in PRIVATE_BUCKETS and not (token and verify_storage_token(token, bucket, path)):
        raise PermissionDeniedError("Invalid or expired download link")

    full_path = resolve_path(bucket, path)
    if not os.path.isfile(full_path):
        raise NotFoundError("File not found")
    return FileResponse(full_path, filename=os.path.basename(full_path))
