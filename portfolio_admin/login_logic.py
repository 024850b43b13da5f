from typing import Dict, Any, Optional

import html
import logging
import time
from urllib.parse import urlsplit, urlunsplit, urlencode

from fastapi import Form
from starlette.requests import Request
from starlette.requests import Request as StarletteRequest
from starlette.responses import RedirectResponse

from portfolio_admin.api_client import ApiError, PortfolioApi

logger = logging.getLogger(__name__)
timing_logger = logging.getLogger("uvicorn.error")
SESSION_USER_KEY = "user"
_DEFAULT_REDIRECT_PATH = "/dashboard/"
_LOGIN_FORM_TEMPLATE = """
<div class="pa-login-wrapper">
  <form method="post" action="/auth/login" class="pa-login-form">
    <h2 class="pa-login-title">Admin Login</h2>
    {error_html}
    <input type="hidden" name="redirect_to" value="{redirect_to}" />
    <label class="pa-login-label">Email
      <input type="email" name="email" required autocomplete="username" class="pa-login-input" />
    </label>
    <label class="pa-login-label">Password
      <input type="password" name="password" required autocomplete="current-password" class="pa-login-input" />
    </label>
    <button type="submit" class="pa-login-btn">Sign in</button>
  </form>
</div>
""".strip()


def _log_timing(event_name: str, start: float, **fields: object) -> None:
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    if fields:
        field_text = " ".join(f"{key}={value}" for key, value in fields.items())
        timing_logger.info("login_logic.timing event=%s ms=%.2f %s", event_name, elapsed_ms, field_text)
        return
    timing_logger.info("login_logic.timing event=%s ms=%.2f", event_name, elapsed_ms)


def _session_of(request: Any) -> Optional[Any]:
    # Gradio hands handlers a gr.Request wrapping the Starlette request
    if hasattr(request, "request") and hasattr(request.request, "session"):
        return request.request.session
    if isinstance(request, StarletteRequest):
        return request.session
    return None


def get_user(request: Any) -> Optional[dict]:
    start = time.perf_counter()
    try:
        session = _session_of(request)
        user = session.get(SESSION_USER_KEY) if session is not None else None
    except AssertionError:
        # Starlette asserts when SessionMiddleware is not installed
        user = None
    _log_timing("get_user.read_session", start, has_user=bool(user))
    return user


def user_token(request: Any) -> Optional[str]:
    user = get_user(request) or {}
    token = str(user.get("token") or "").strip()
    return token or None


def api_for_request(request: Any) -> PortfolioApi:
    """API client authenticated as the signed-in operator of this request."""
    return PortfolioApi(token=user_token(request))


def authenticate(email: str, password: str, api: Optional[PortfolioApi] = None) -> Dict[str, Any]:
    """
    Exchange credentials for an API token and return the session user payload.
    Raises ApiError when the API rejects the credentials or is unreachable.
    """
    start = time.perf_counter()
    normalized_email = (email or "").strip().lower()
    if not normalized_email or not password:
        raise ValueError("Email and password are required.")
    client = api or PortfolioApi()
    token = client.login(normalized_email, password)
    _log_timing("authenticate", start, email=normalized_email)
    return {"email": normalized_email, "token": token}


def login_form_html(redirect_to: str = "", error: str = "") -> str:
    error_html = f'<p class="pa-login-error">{html.escape(error)}</p>' if error else ""
    return _LOGIN_FORM_TEMPLATE.format(
        error_html=error_html,
        redirect_to=html.escape(redirect_to or "", quote=True),
    )


def add_login_routes(app) -> None:
    state_flag = "_pa_login_routes_registered"
    if getattr(app.state, state_flag, False):
        return

    @app.get("/logout")
    async def logout(request: Request):
        request.session.pop(SESSION_USER_KEY, None)
        return RedirectResponse("/")

    @app.post("/auth/login")
    async def login_submit(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
        redirect_to: str = Form(""),
    ):
        try:
            user = authenticate(email, password)
        except (ApiError, ValueError) as exc:
            logger.warning("Login failed for %s: %s", (email or "").strip() or "<empty>", exc)
            params = {"error": "Invalid credentials" if isinstance(exc, ApiError) and exc.status else str(exc)}
            if redirect_to:
                params["redirect_to"] = redirect_to
            return RedirectResponse(f"/?{urlencode(params)}", status_code=303)
        request.session[SESSION_USER_KEY] = user
        target = _sanitize_redirect_target(redirect_to, request) or _DEFAULT_REDIRECT_PATH
        return RedirectResponse(target, status_code=303)

    setattr(app.state, state_flag, True)


def _sanitize_redirect_target(candidate: Optional[str], request: Optional[Request]) -> Optional[str]:
    """
    Allow relative paths or the request's own host; block protocol-relative / malformed URLs.
    """
    if not candidate:
        return None
    target = candidate.strip()
    if not target:
        return None
    if target.startswith("//"):
        return None
    if target.startswith("/"):
        return target

    parsed = urlsplit(target)
    if parsed.scheme not in {"https", "http"}:
        return None
    host = (parsed.hostname or "").lower()
    if not host:
        return None
    request_host = ((request.url.hostname or "").lower() if request else "") or ""
    if host != request_host:
        return None
    return urlunsplit(parsed)
