import json
from unittest.mock import MagicMock

import pytest
import requests

CONFIG_KEYS = (
    "PORTFOLIO_API_URL",
    "PORTFOLIO_API_TIMEOUT",
    "PUBLIC_MEDIA_BASE_URL",
    "MAX_UPLOAD_BYTES",
    "ADMIN_DEBUG_PAGES",
)


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Each test starts from the built-in defaults, whatever the developer's shell exports."""
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
        monkeypatch.delenv(f"{key}_RESOURCE", raising=False)


def make_response(status_code=200, body=None, text=None):
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    if body is not None:
        raw = json.dumps(body)
        response.json.return_value = body
    else:
        raw = text or ""
        response.json.side_effect = ValueError("No JSON object could be decoded")
    response.text = raw
    response.content = raw.encode("utf-8")
    return response


@pytest.fixture
def http_session():
    session = MagicMock(spec=requests.Session)
    session.request.return_value = make_response(200, [])
    return session


@pytest.fixture
def projects():
    return [
        {"_id": "1", "title": "Alpha", "featured": True, "pinned": False},
        {"_id": "2", "title": "Beta", "featured": True, "pinned": True},
        {"_id": "3", "title": "Gamma", "featured": False, "pinned": False},
    ]
