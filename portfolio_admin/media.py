"""
`/media/<blob>`: uploaded images served from the media bucket.

Responses carry the blob's ETag and Last-Modified and must be revalidated, so
a replaced image shows up on the next page load while unchanged ones come back
as 304 without downloading the blob.
"""
from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from google.api_core.exceptions import GoogleAPIError

from portfolio_admin.gcs_storage import MEDIA_ROUTE, blob_http_metadata, download_bytes

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=0, must-revalidate"

router = APIRouter()


def _bare_etag(value: Optional[str]) -> str:
    return str(value or "").strip().removeprefix("W/").strip().strip('"')


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def is_not_modified(request: Request, etag: str, updated_at: Optional[datetime]) -> bool:
    """If-None-Match wins over If-Modified-Since when both are sent."""
    if_none_match = request.headers.get("if-none-match")
    if if_none_match:
        current = _bare_etag(etag)
        candidates = {_bare_etag(token) for token in if_none_match.split(",")}
        return "*" in candidates or (bool(current) and current in candidates)

    if_modified_since = request.headers.get("if-modified-since")
    updated_at = _as_utc(updated_at)
    if not if_modified_since or updated_at is None:
        return False
    try:
        since = _as_utc(parsedate_to_datetime(if_modified_since))
    except (TypeError, ValueError):
        return False
    return since is not None and updated_at <= since


@router.get(MEDIA_ROUTE + "/{blob_path:path}")
def media_blob(blob_path: str, request: Request) -> Response:
    blob_name = (blob_path or "").strip().lstrip("/")
    if not blob_name:
        raise HTTPException(status_code=404)

    try:
        content_type, etag, updated_at = blob_http_metadata(blob_name)
        headers = {"Cache-Control": CACHE_CONTROL}
        if _bare_etag(etag):
            headers["ETag"] = f'"{_bare_etag(etag)}"'
        if updated_at is not None:
            headers["Last-Modified"] = format_datetime(_as_utc(updated_at), usegmt=True)

        if is_not_modified(request, etag or "", updated_at):
            return Response(status_code=304, headers=headers)

        data = download_bytes(blob_name)
    except FileNotFoundError:
        raise HTTPException(status_code=404)
    except GoogleAPIError:
        logger.exception("Media fetch failed for %s", blob_name)
        raise HTTPException(status_code=502, detail="Media fetch failed")

    media_type = content_type or mimetypes.guess_type(blob_name)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type, headers=headers)
