from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Mapping, Sequence

import gradio as gr

from portfolio_admin.api_client import BLOG, CONTACT, PROJECTS, ApiError, PortfolioApi
from portfolio_admin.curation import FEATURED_LIMIT
from portfolio_admin.login_logic import api_for_request
from portfolio_admin.pages.common import error, escape, format_date, newest_first, truncate

logger = logging.getLogger(__name__)

PAGE = "/dashboard"
RECENT_MESSAGES = 5


@dataclass
class DashboardData:
    projects: int = 0
    blog_posts: int = 0
    messages: int = 0
    skills: int = 0
    featured: List[Dict[str, Any]] = field(default_factory=list)
    recent_messages: List[Mapping[str, Any]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def collect_dashboard(api: PortfolioApi) -> DashboardData:
    """Gather every panel; a failing endpoint blanks its own panel only."""
    data = DashboardData()

    def _attempt(label: str, call):
        try:
            return call()
        except ApiError as exc:
            logger.warning("Dashboard could not load %s: %s", label, exc)
            data.errors.append(f"{label}: {exc}")
            return None

    projects = _attempt("projects", lambda: api.list_records(PROJECTS))
    posts = _attempt("blog posts", lambda: api.list_records(BLOG))
    messages = _attempt("messages", lambda: api.list_records(CONTACT))
    featured = _attempt("featured projects", api.featured_projects)
    profile = _attempt("profile", api.get_profile)

    data.projects = len(projects or [])
    data.blog_posts = len(posts or [])
    data.messages = len(messages or [])
    data.skills = len((profile or {}).get("techStack") or [])
    data.featured = list(featured or [])
    data.recent_messages = newest_first(messages or [])[:RECENT_MESSAGES]
    return data


def render_stats(data: DashboardData) -> str:
    cards = [
        ("Projects", data.projects),
        ("Blog Posts", data.blog_posts),
        ("Messages", data.messages),
        ("Skills", data.skills),
    ]
    markup = "".join(
        '<div class="pa-stat-card">'
        f'<div class="pa-stat-value">{value}</div><div class="pa-stat-label">{escape(label)}</div>'
        "</div>"
        for label, value in cards
    )
    return f'<div class="pa-stat-grid">{markup}</div>'


def render_featured(featured: Sequence[Mapping[str, Any]]) -> str:
    header = f'<h3>Featured Projects ({len(featured)}/{FEATURED_LIMIT}) <a href="/projects/">Manage</a></h3>'
    if not featured:
        return f'{header}<p class="pa-card-meta">No featured projects yet. Go to Projects to feature some!</p>'
    cards = "".join(
        '<div class="pa-card">'
        f'<div class="pa-card-title">{escape(project.get("title"))}</div>'
        f'<div class="pa-card-meta">{escape(project.get("category"))}</div>'
        "</div>"
        for project in featured
    )
    return f'{header}<div class="pa-card-list">{cards}</div>'


def render_recent_messages(messages: Sequence[Mapping[str, Any]]) -> str:
    header = '<h3>Recent Messages <a href="/messages/">View all</a></h3>'
    if not messages:
        return f'{header}<p class="pa-card-meta">No messages yet.</p>'
    cards = "".join(
        '<div class="pa-card">'
        f'<div class="pa-card-title">{escape(message.get("name"))}</div>'
        f'<div class="pa-card-meta">{escape(message.get("email"))} · {escape(format_date(message.get("createdAt")))}</div>'
        f'<div>{escape(truncate(message.get("message"), 100))}</div>'
        "</div>"
        for message in messages
    )
    return f'{header}<div class="pa-card-list">{cards}</div>'


def load_dashboard(request: gr.Request):
    data = collect_dashboard(api_for_request(request))
    status = error("Some panels could not be loaded. " + "; ".join(data.errors)) if data.errors else ""
    return (
        render_stats(data),
        render_featured(data.featured),
        render_recent_messages(data.recent_messages),
        status,
    )
