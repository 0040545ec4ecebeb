"""
Upload handling: size and type checks, then write under ``upload_dir``.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Iterable, Optional

import structlog
from fastapi import HTTPException, UploadFile

from app.core.config import get_settings

log = structlog.get_logger()
settings = get_settings()


async def read_upload(
    file: UploadFile,
    allowed_types: Optional[Iterable[str]] = None,
    allowed_prefix: Optional[str] = None,
) -> bytes:
    """Read an upload into memory, enforcing content type and size limit."""
    content_type = file.content_type or ""
    if allowed_types is not None and content_type not in set(allowed_types):
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {content_type or 'unknown'}")
    if allowed_prefix is not None and not content_type.startswith(allowed_prefix):
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {content_type or 'unknown'}")

    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="File exceeds the upload size limit")
    if not data:
        raise HTTPException(status_code=400, detail="Empty file")
    return data


def store_bytes(data: bytes, original_name: str, subdir: str) -> str:
    """Write bytes under ``upload_dir/subdir`` with a random name. Returns the relative path."""
    suffix = Path(original_name or "").suffix.lower()[:10]
    name = f"{uuid.uuid4().hex}{suffix}"
    target_dir = Path(settings.upload_dir) / subdir
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / name).write_bytes(data)
    relative = f"{subdir}/{name}"
    log.info("upload.stored", path=relative, size=len(data))
    return relative


def delete_stored(relative: str) -> None:
    """Remove a stored upload; a file that is already gone is not an error."""
    path = Path(settings.upload_dir) / relative
    path.unlink(missing_ok=True)
    log.info("upload.deleted", path=relative)
