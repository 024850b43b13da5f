from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import requests

from portfolio_admin.page_timing import record_api_time
from portfolio_admin.secrets import get_secret

logger = logging.getLogger(__name__)
timing_logger = logging.getLogger("uvicorn.error")

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT_SECONDS = 30.0
RECORD_ID_KEY = "_id"

PROJECTS = "projects"
BLOG = "blog"
CONTACT = "contact"


class ApiError(RuntimeError):
    """A persistence API call that did not succeed; `status` is None for transport failures."""

    def __init__(self, message: str, *, status: Optional[int] = None, detail: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.detail = detail


def record_id(record: Mapping[str, Any] | None) -> str:
    if not record:
        return ""
    value = record.get(RECORD_ID_KEY) or record.get("id") or ""
    return str(value).strip()


def api_base_url() -> str:
    return get_secret("PORTFOLIO_API_URL", default=DEFAULT_API_URL).rstrip("/")


def _resolve_timeout() -> float:
    raw_value = get_secret("PORTFOLIO_API_TIMEOUT", default=str(DEFAULT_TIMEOUT_SECONDS))
    try:
        return max(1.0, float(raw_value))
    except (TypeError, ValueError):
        logger.warning("Invalid PORTFOLIO_API_TIMEOUT=%r; using %.0fs.", raw_value, DEFAULT_TIMEOUT_SECONDS)
        return DEFAULT_TIMEOUT_SECONDS


def _log_duration(method: str, path: str, start: float, status: object) -> float:
    elapsed = time.perf_counter() - start
    timing_logger.info(
        "api.timing method=%s path=%s status=%s ms=%.2f",
        method,
        path,
        status,
        elapsed * 1000.0,
    )
    return elapsed


def _error_detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if value:
                return str(value)
    text = (response.text or "").strip()
    if len(text) <= 200:
        return text
    return f"{text[:197]}..."


class PortfolioApi:
    """Thin client for the portfolio REST API (JSON bodies, bearer token auth)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or api_base_url()).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else _resolve_timeout()
        self._session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str, payload: Any = None) -> Any:
        start = time.perf_counter()
        try:
            response = self._session.request(
                method,
                self._url(path),
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            record_api_time(_log_duration(method, path, start, "error"))
            logger.error("API %s %s failed: %s", method, path, exc)
            raise ApiError(f"Could not reach the portfolio API ({exc.__class__.__name__}).") from exc

        record_api_time(_log_duration(method, path, start, response.status_code))
        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning("API %s %s returned %s: %s", method, path, response.status_code, detail)
            message = f"API error {response.status_code}"
            if detail:
                message = f"{message}: {detail}"
            raise ApiError(message, status=response.status_code, detail=detail)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"API returned a non-JSON body for {method} {path}.",
                status=response.status_code,
            ) from exc

    # --- generic resources

    def list_records(self, resource: str) -> List[Dict[str, Any]]:
        data = self._request("GET", resource)
        if not isinstance(data, list):
            raise ApiError(f"Expected a list from /{resource}.")
        return [row for row in data if isinstance(row, dict)]

    def get_record(self, resource: str, item_id: str) -> Dict[str, Any]:
        return self._request("GET", f"{resource}/{quote(str(item_id), safe='')}") or {}

    def create_record(self, resource: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", resource, payload) or {}

    def update_record(self, resource: str, item_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"{resource}/{quote(str(item_id), safe='')}", payload) or {}

    def delete_record(self, resource: str, item_id: str) -> None:
        self._request("DELETE", f"{resource}/{quote(str(item_id), safe='')}")

    # --- endpoints with their own shape

    def featured_projects(self) -> List[Dict[str, Any]]:
        data = self._request("GET", f"{PROJECTS}/featured")
        return [row for row in data or [] if isinstance(row, dict)]

    def get_post_for_edit(self, post_id: str) -> Dict[str, Any]:
        # Drafts are only served by the admin route
        return self._request("GET", f"{BLOG}/admin/{quote(str(post_id), safe='')}") or {}

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "profile") or {}

    def update_profile(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", "profile", payload) or {}

    def login(self, email: str, password: str) -> str:
        data = self._request("POST", "auth/login", {"email": email, "password": password}) or {}
        token = str(data.get("token") or "").strip()
        if not token:
            raise ApiError("Login response did not include a token.")
        return token
