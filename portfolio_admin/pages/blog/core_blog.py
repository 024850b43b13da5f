from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

import gradio as gr

from portfolio_admin.api_client import BLOG, ApiError, record_id
from portfolio_admin.login_logic import api_for_request
from portfolio_admin.pages.common import error, escape, format_date, ok, record_choices

logger = logging.getLogger(__name__)

PAGE = "/blog"
TABLE_HEADERS = ["Title", "Status", "Date"]


def table_rows(posts: Sequence[Mapping[str, Any]]) -> List[List[str]]:
    return [
        [
            str(post.get("title") or ""),
            "Published" if post.get("published") else "Draft",
            format_date(post.get("createdAt")),
        ]
        for post in posts
    ]


def edit_link_html(post_id: str | None) -> str:
    if not post_id:
        return ""
    return f'<a class="pa-edit-link" href="/blog-edit/?id={escape(post_id)}">Edit selected post</a>'


def _view(posts: List[Dict[str, Any]], selected_id: str = ""):
    choices = record_choices(posts)
    selected = selected_id if selected_id in {value for _, value in choices} else None
    return (
        gr.update(value=table_rows(posts), headers=TABLE_HEADERS),
        gr.update(choices=choices, value=selected),
        posts,
        edit_link_html(selected),
    )


def load_posts(request: gr.Request):
    try:
        posts = api_for_request(request).list_records(BLOG)
    except ApiError as exc:
        logger.exception("Failed to load blog posts")
        return (*_view([]), error(exc))
    summary = f"{len(posts)} post(s)." if posts else "No blog posts yet. Create your first one!"
    return (*_view(posts), summary)


def select_post(posts: List[Dict[str, Any]], evt: gr.SelectData):
    row = evt.index[0] if isinstance(evt.index, (list, tuple)) else evt.index
    if row is None or not (0 <= int(row) < len(posts or [])):
        return gr.update(), ""
    post_id = record_id(posts[int(row)])
    return gr.update(value=post_id), edit_link_html(post_id)


def open_delete_dialog(selected_id: str):
    if not selected_id:
        return gr.update(visible=False), "Select a post first."
    return gr.update(visible=True), ""


def delete_post(posts: List[Dict[str, Any]], selected_id: str, request: gr.Request):
    posts = list(posts or [])
    if not selected_id:
        return (*_view(posts), "Select a post first.")
    api = api_for_request(request)
    try:
        api.delete_record(BLOG, selected_id)
    except ApiError as exc:
        logger.exception("Failed to delete blog post %s", selected_id)
        return (*_view(posts, selected_id), error(f"Error deleting post: {exc}"))
    try:
        refreshed = api.list_records(BLOG)
    except ApiError as exc:
        logger.warning("Post %s deleted but the list could not be reloaded: %s", selected_id, exc)
        refreshed = [post for post in posts if record_id(post) != selected_id]
    return (*_view(refreshed), ok("Post deleted!"))
