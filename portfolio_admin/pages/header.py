from __future__ import annotations
import html
import logging
import time
from typing import Any, Optional
from starlette.requests import Request as StarletteRequest
from portfolio_admin.login_logic import get_user
from portfolio_admin.css.utils import load_css
from portfolio_admin.navigation import nav_links, page_key_for_route

timing_logger = logging.getLogger("uvicorn.error")

SITE_TITLE = "Portfolio Admin"

FORCE_LIGHT_MODE_SCRIPT = """
<script>
(function() {
  const light = () => {
    document.documentElement.classList.remove("dark");
    document.querySelectorAll("gradio-app, .gradio-container, body").forEach((el) => el.classList.remove("dark"));
    document.documentElement.style.colorScheme = "light";
  };
  light();
  new MutationObserver(light).observe(document.documentElement, { attributes: true, attributeFilter: ["class"] });
  document.title = "__SITE_TITLE__";
})();
</script>
""".strip().replace("__SITE_TITLE__", SITE_TITLE)


def _log_timing(event_name: str, start: float, **fields: object) -> None:
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    if fields:
        field_text = " ".join(f"{key}={value}" for key, value in fields.items())
        timing_logger.info("header.timing event=%s ms=%.2f %s", event_name, elapsed_ms, field_text)
        return
    timing_logger.info("header.timing event=%s ms=%.2f", event_name, elapsed_ms)


def with_light_mode_head(head: Optional[str]) -> str:
    if head and head.strip():
        return f"{head}\n{FORCE_LIGHT_MODE_SCRIPT}"
    return FORCE_LIGHT_MODE_SCRIPT


def _header_html(user: Optional[dict], path: str) -> str:
    total_start = time.perf_counter()
    css = load_css("header.css")
    active_key = page_key_for_route(path or "")

    items: list[str] = []
    for link in nav_links():
        is_active = link.key == active_key
        active_class = " is-active" if is_active else ""
        aria_current = ' aria-current="page"' if is_active else ""
        items.append(
            f'<a href="{html.escape(link.path)}" class="{html.escape(link.css_class)} sidebar-link{active_class}"'
            f'{aria_current}>{html.escape(link.label)}</a>'
        )

    if user:
        email = html.escape(user.get("email") or "Signed in")
        account_html = (
            f'<div class="account-email">{email}</div>'
            '<a href="/logout" class="sidebar-logout">Logout</a>'
        )
    else:
        account_html = '<a href="/" class="sidebar-logout">Sign in</a>'

    html_value = f"""<style>
{css}
</style>
<div class="hdr-wrap hdr-wrap--sidebar" data-nav="sidebar" id="sidebar">
  <div class="hdr">
    <a href="/dashboard/" class="site-logo">{html.escape(SITE_TITLE)}</a>
    <nav class="sidebar-nav" aria-label="Main navigation">
      {' '.join(items)}
    </nav>
    <div class="sidebar-footer">
      {account_html}
    </div>
  </div>
</div>
<div class="hdr-spacer"></div>
"""
    _log_timing("header_html.total", total_start, html_bytes=len(html_value), user_present=bool(user))
    return html_value


def render_header(path: str = "/", request: Any = None, *args, **kwargs) -> str:
    if hasattr(path, "request") or isinstance(path, StarletteRequest):
        request, path = path, "/"
    user = get_user(request)
    return _header_html(user, path or "/")
