from __future__ import annotations

import logging
import os
from datetime import datetime
from functools import lru_cache
from typing import Optional
from urllib.parse import quote

from google.api_core.exceptions import NotFound
from google.cloud import storage
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

# Defaults can be overridden via env vars without touching code
DEFAULT_BUCKET = os.getenv("BUCKET_NAME") or os.getenv("MEDIA_STORAGE_BUCKET", "portfolio_media")
DEFAULT_KEYFILE = os.getenv("API_BUCKET_KEY_FILE", "secrets/media_bucket_key.json")
MEDIA_ROUTE = "/media"


def _credentials():
    """
    Return credentials for the storage client. Prefer an explicit service-account
    key file; fall back to Application Default Credentials when it is missing.
    """
    path = DEFAULT_KEYFILE
    if path and os.path.exists(path):
        try:
            return service_account.Credentials.from_service_account_file(path)
        except ValueError as exc:
            logger.warning("Ignoring unreadable service account key %s: %s", path, exc)
    return None


@lru_cache(maxsize=1)
def storage_client() -> storage.Client:
    creds = _credentials()
    if creds is not None:
        return storage.Client(credentials=creds, project=creds.project_id)
    return storage.Client()  # ADC


def get_bucket(name: Optional[str] = None) -> storage.Bucket:
    client = storage_client()
    return client.bucket(name or DEFAULT_BUCKET)


def media_path(blob_name: str) -> str:
    normalized = str(blob_name or "").strip().lstrip("/")
    return f"{MEDIA_ROUTE}/{quote(normalized, safe='/')}"


def upload_bytes(data: bytes, blob_name: str, *, content_type: Optional[str] = None, cache_seconds: int = 0) -> str:
    bucket = get_bucket()
    blob = bucket.blob(blob_name)
    if cache_seconds:
        blob.cache_control = f"public, max-age={int(cache_seconds)}"
    blob.upload_from_string(data, content_type=content_type)
    return blob.name


def download_bytes(blob_name: str) -> bytes:
    client = storage_client()
    blob = client.bucket(DEFAULT_BUCKET).blob(blob_name)
    try:
        return blob.download_as_bytes(client=client)
    except NotFound:
        raise FileNotFoundError(blob_name)


def blob_http_metadata(blob_name: str) -> tuple[Optional[str], Optional[str], Optional[datetime]]:
    """
    Return (content_type, etag, updated_at_utc) for a blob without downloading payload bytes.
    Raises FileNotFoundError when the blob does not exist.
    """
    client = storage_client()
    blob = client.bucket(DEFAULT_BUCKET).blob(blob_name)
    try:
        blob.reload(client=client)
    except NotFound:
        raise FileNotFoundError(blob_name)
    return blob.content_type, blob.etag, blob.updated
