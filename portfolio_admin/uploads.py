from __future__ import annotations

import logging
import mimetypes
import re
import time
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import quote
from uuid import uuid4

from google.api_core.exceptions import GoogleAPIError

from portfolio_admin.gcs_storage import media_path, upload_bytes
from portfolio_admin.secrets import get_int_secret, get_secret

logger = logging.getLogger(__name__)
timing_logger = logging.getLogger("uvicorn.error")

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
UPLOAD_PREFIX = "uploads"
IMMUTABLE_CACHE_SECONDS = 31536000


class UploadError(RuntimeError):
    """The upload provider rejected a file or could not store it."""


def _safe_filename(name: str) -> str:
    base = Path(str(name or "")).name
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", base).strip("-.")
    return cleaned[:120] or "image"


def _upload_path(upload: Any) -> Path:
    # Gradio hands over either a temp-file path or a wrapper exposing `.name`
    if isinstance(upload, (str, Path)):
        return Path(upload)
    name = getattr(upload, "name", None) or getattr(upload, "path", None)
    if not name:
        raise UploadError("Upload did not include a file.")
    return Path(name)


def upload_paths(files: Any) -> List[Path]:
    """Normalize a single upload or a list of uploads to a list of file paths."""
    if not files:
        return []
    if isinstance(files, (list, tuple)):
        return [_upload_path(item) for item in files if item]
    return [_upload_path(files)]


def asset_reference_for(blob_name: str) -> str:
    base = get_secret("PUBLIC_MEDIA_BASE_URL", default="").strip().rstrip("/")
    if base:
        return f"{base}/{quote(blob_name, safe='/')}"
    return media_path(blob_name)


def store_image(upload: Any, *, max_bytes: Optional[int] = None) -> str:
    """
    Store one uploaded image and return its asset reference.

    Only `image/*` files are accepted. Raises UploadError for rejected files
    and for storage failures.
    """
    path = _upload_path(upload)
    content_type = mimetypes.guess_type(path.name)[0] or ""
    if not content_type.startswith("image/"):
        raise UploadError(f"{path.name} is not an image.")

    limit = max_bytes if max_bytes is not None else get_int_secret("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise UploadError(f"Could not read {path.name}.") from exc
    if not data:
        raise UploadError(f"{path.name} is empty.")
    if limit and len(data) > limit:
        raise UploadError(f"{path.name} is larger than {limit // (1024 * 1024) or 1} MB.")

    blob_name = f"{UPLOAD_PREFIX}/{uuid4().hex}/{_safe_filename(path.name)}"
    start = time.perf_counter()
    try:
        stored_name = upload_bytes(
            data,
            blob_name,
            content_type=content_type,
            cache_seconds=IMMUTABLE_CACHE_SECONDS,
        )
    except GoogleAPIError as exc:
        logger.exception("Failed to store upload %s", path.name)
        raise UploadError(f"Could not store {path.name}.") from exc
    timing_logger.info(
        "upload.timing blob=%s bytes=%d ms=%.2f",
        stored_name,
        len(data),
        (time.perf_counter() - start) * 1000.0,
    )
    return asset_reference_for(stored_name)
