from __future__ import annotations

from dataclasses import dataclass
import os
from typing import List, Optional


@dataclass(frozen=True)
class PageLink:
    key: str
    label: str
    path: str
    css_class: str


NAVIGATION_ORDER: tuple[str, ...] = (
    "dashboard",
    "projects",
    "blog",
    "profile",
    "messages",
)

PAGE_REGISTRY: dict[str, PageLink] = {
    "dashboard": PageLink("dashboard", "Dashboard", "/dashboard/", "hdr-link hdr-link--dashboard"),
    "projects": PageLink("projects", "Projects", "/projects/", "hdr-link hdr-link--projects"),
    "blog": PageLink("blog", "Blog", "/blog/", "hdr-link hdr-link--blog"),
    "profile": PageLink("profile", "Profile & Tech Stack", "/profile/", "hdr-link hdr-link--profile"),
    "messages": PageLink("messages", "Contact Messages", "/messages/", "hdr-link hdr-link--messages"),
}

# Edit pages highlight their list page in the sidebar
PATH_TO_PAGE_KEY: dict[str, Optional[str]] = {
    "/dashboard": "dashboard",
    "/projects": "projects",
    "/project-edit": "projects",
    "/blog": "blog",
    "/blog-edit": "blog",
    "/profile": "profile",
    "/messages": "messages",
}

DEBUG_PAGES_ENV = "ADMIN_DEBUG_PAGES"
_DEBUG_TRUE_VALUES = {"1", "true", "yes", "on"}


def nav_links() -> List[PageLink]:
    return [PAGE_REGISTRY[key] for key in NAVIGATION_ORDER]


def _normalize_route(route: str) -> str:
    route = route or "/"
    if not route.startswith("/"):
        route = f"/{route}"
    if route != "/" and route.endswith("/"):
        route = route.rstrip("/")
    return route


def page_key_for_route(route: str) -> Optional[str]:
    """
    Resolve a mounted route (e.g., '/project-edit/') to the page key it belongs to.
    """
    return PATH_TO_PAGE_KEY.get(_normalize_route(route))


def is_protected_route(route: str) -> bool:
    return _normalize_route(route) in PATH_TO_PAGE_KEY


def default_page_path() -> str:
    """
    Return the first path a signed-in operator should land on.
    """
    return PAGE_REGISTRY[NAVIGATION_ORDER[0]].path


def is_debug_mode() -> bool:
    """When enabled, pages open without a session (local development only)."""
    value = os.getenv(DEBUG_PAGES_ENV, "")
    return value.strip().lower() in _DEBUG_TRUE_VALUES
