# portfolio_admin/mount_gradio_app.py
import logging
from urllib.parse import urlencode

from starlette.requests import Request
from starlette.responses import RedirectResponse
import gradio as gr
from starlette.middleware.sessions import SessionMiddleware

from portfolio_admin.login_logic import add_login_routes, get_user
from portfolio_admin.secrets import get_secret
from portfolio_admin.navigation import default_page_path, is_debug_mode

logger = logging.getLogger(__name__)

GRADIO_PUBLIC_PREFIXES = (
    "/gradio_api", "/file", "/assets", "/static", "/config",
    "/proxy", "/localfiles", "/theme.css", "/favicon.ico",
    "/robots.txt", "/images",
)

# Media is referenced from the public portfolio site as well
PUBLIC_EXTRA: tuple[str, ...] = ("/media",)


def _normalize_mount_route(app_route: str) -> str:
    route = app_route or "/"
    if not route.startswith("/"):
        route = f"/{route}"
    return route.rstrip("/") or "/"


def add_middleware_redirect(app, app_route: str):
    """
    Protect everything under `app_route`, requiring a signed-in operator.
    Root-level Gradio internals and PUBLIC_EXTRA remain available without a session.
    """
    route_no_slash = _normalize_mount_route(app_route)
    route_prefix = f"{route_no_slash}/" if route_no_slash != "/" else "/"

    def _matches_protected_path(path: str) -> bool:
        if route_no_slash == "/":
            return False
        normalized_path = path or "/"
        if normalized_path != "/" and normalized_path.endswith("/"):
            normalized_path = normalized_path.rstrip("/")
        if normalized_path == route_no_slash:
            return True
        return normalized_path.startswith(route_prefix)

    @app.middleware("http")
    async def check_authentication(request: Request, call_next):
        path = request.url.path

        # Signed-in operators hitting the login page go straight to the console
        if path == "/" and not request.query_params.get("error"):
            if get_user(request):
                return RedirectResponse(url=default_page_path())

        if (
            path == "/" or
            path.startswith("/auth") or
            path.startswith("/logout") or
            any(path.startswith(p) for p in GRADIO_PUBLIC_PREFIXES) or
            any(path.startswith(p) for p in PUBLIC_EXTRA)
        ):
            return await call_next(request)

        if _matches_protected_path(path):
            if is_debug_mode():
                return await call_next(request)
            if not get_user(request):
                target = path
                if request.url.query:
                    target = f"{path}?{request.url.query}"
                logger.info("Redirecting anonymous request for %s to login", path)
                return RedirectResponse(url=f"/?{urlencode({'redirect_to': target})}")
            return await call_next(request)

        return await call_next(request)


def mount_gradio_app(*args, secret_key: str | None = None, **kwargs):
    app = args[0]
    path = args[2]

    add_middleware_redirect(app, path)
    add_login_routes(app)

    # Added after the redirect middleware so it wraps it and the session is populated first
    secret = secret_key or get_secret("SESSION_SECRET", default="dev-session-secret")
    app.add_middleware(SessionMiddleware, secret_key=secret)

    return gr.mount_gradio_app(*args, **kwargs)
