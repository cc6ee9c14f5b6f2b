"""Local upload storage for video and thumbnail files.

Files are written under ``settings.upload_dir`` and served by the API at
``/uploads``; the public URL stored on a Video is ``/uploads/<name>``.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from fastapi import UploadFile

from mwarex.api.errors import ValidationError
from mwarex.config import settings
from mwarex.observability.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "PUBLIC_PREFIX",
    "StoredFile",
    "upload_root",
    "save_upload_async",
    "check_external_url",
    "resolve_local_path",
    "delete_stored_file",
]

PUBLIC_PREFIX = "/uploads/"
_CHUNK_BYTES = 1024 * 1024
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredFile:
    path: Path
    url: str
    size: int
    content_type: str | None


def upload_root() -> Path:
    root = Path(settings.upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


def _safe_name(filename: str | None) -> str:
    base = Path(filename or "upload").name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._") or "upload"
    return f"{uuid.uuid4().hex}_{cleaned[-80:]}"


def _write_stream(src: BinaryIO, dest: Path, limit: int) -> int:
    written = 0
    with dest.open("wb") as out:
        while True:
            chunk = src.read(_CHUNK_BYTES)
            if not chunk:
                break
            written += len(chunk)
            if written > limit:
                raise ValidationError(f"File exceeds the {limit} byte upload limit")
            out.write(chunk)
    return written


async def save_upload_async(upload: UploadFile, *, kind: str = "video") -> StoredFile:
    """Persist an uploaded file; rejects empty files and files over the size limit."""
    dest = upload_root() / _safe_name(upload.filename)
    try:
        size = await asyncio.to_thread(
            _write_stream, upload.file, dest, settings.max_upload_bytes
        )
    except Exception:
        dest.unlink(missing_ok=True)
        raise
    if size == 0:
        dest.unlink(missing_ok=True)
        raise ValidationError(f"Uploaded {kind} file is empty")

    logger.info("upload_saved", kind=kind, file=dest.name, size=size)
    return StoredFile(
        path=dest,
        url=f"{PUBLIC_PREFIX}{dest.name}",
        size=size,
        content_type=upload.content_type,
    )


def check_external_url(url: str | None, *, field: str = "thumbnail_url") -> str | None:
    """Accept a client-supplied URL unless it names a stored upload.

    ``/uploads/`` URLs are minted only by ``save_upload_async``.
    """
    if url is None or not url.strip():
        return None
    url = url.strip()
    if url.startswith(PUBLIC_PREFIX.rstrip("/")):
        raise ValidationError(f"{field} cannot point at an uploaded file; upload the file instead")
    return url


def resolve_local_path(url: str | None) -> Path | None:
    """Map a ``/uploads/...`` URL back to its file, or None for remote URLs."""
    if not url or not url.startswith(PUBLIC_PREFIX):
        return None
    name = Path(url[len(PUBLIC_PREFIX):]).name
    path = upload_root() / name
    return path if path.is_file() else None


def delete_stored_file(url: str | None) -> None:
    path = resolve_local_path(url)
    if path is None:
        return
    try:
        path.unlink()
        logger.info("upload_deleted", file=path.name)
    except OSError as exc:
        logger.warning("upload_delete_failed", file=path.name, error=str(exc))
