from __future__ import annotations

import logging
from typing import List, Optional

import gradio as gr

from portfolio_admin.api_client import BLOG, ApiError, record_id
from portfolio_admin.forms import POST_IMAGE_FIELDS, FormDraft, post_draft, post_payload, slugify
from portfolio_admin.login_logic import api_for_request
from portfolio_admin.pages.common import error, ok, query_param
from portfolio_admin.pages.image_field import field_updates

logger = logging.getLogger(__name__)

PAGE = "/blog-edit"
(COVER_FIELD,) = POST_IMAGE_FIELDS


def _title_html(draft: FormDraft) -> str:
    return "<h2>Create New Blog Post</h2>" if draft.is_new else "<h2>Edit Blog Post</h2>"


def _form_values(draft: FormDraft):
    tags = draft.get("tags") or []
    return (
        _title_html(draft),
        draft.get("title", ""),
        draft.get("slug", ""),
        draft.get("excerpt", ""),
        draft.get("content", ""),
        *field_updates(draft, COVER_FIELD),
        gr.update(choices=list(tags), value=list(tags)),
        bool(draft.get("published")),
        draft,
    )


def load_post_form(request: gr.Request):
    draft = post_draft()
    post_id = query_param(request, "id")
    if not post_id:
        return (*_form_values(draft.load(None)), "")
    try:
        record = api_for_request(request).get_post_for_edit(post_id)
    except ApiError as exc:
        logger.exception("Failed to load blog post %s", post_id)
        return (*_form_values(draft.load(None)), error(f"Error loading post: {exc}"))
    draft.load(record)
    if not draft.record_id:
        draft.record_id = post_id
    return (*_form_values(draft), "")


def suggest_slug(draft: Optional[FormDraft], title: str, current_slug: str):
    """New posts follow the title; an existing post keeps its published slug."""
    if draft is not None and not draft.is_new:
        return gr.update()
    return slugify(title) if title else current_slug


def save_post(
    draft: Optional[FormDraft],
    title: str,
    slug: str,
    excerpt: str,
    content: str,
    tags: List[str],
    published: bool,
    request: gr.Request,
):
    if draft is None:
        return gr.update(), gr.update(), gr.update(), error("The form is still loading.")

    draft.update(
        title=title,
        slug=slug,
        excerpt=excerpt,
        content=content,
        tags=list(tags or []),
        published=bool(published),
    )
    try:
        payload = post_payload(draft.values())
        api = api_for_request(request)
        if draft.is_new:
            saved = api.create_record(BLOG, payload)
            draft.record_id = record_id(saved)
            message = "Post created!"
        else:
            api.update_record(BLOG, draft.record_id, payload)
            message = "Post updated!"
    except ValueError as exc:
        return gr.update(), gr.update(), draft, error(exc)
    except ApiError as exc:
        logger.exception("Failed to save blog post %s", draft.record_id or "<new>")
        return gr.update(), gr.update(), draft, error(f"Error saving post: {exc}")

    draft.update(slug=payload["slug"])
    logger.info("Saved blog post %s (published=%s)", draft.record_id or "<unknown id>", payload["published"])
    return _title_html(draft), payload["slug"], draft, ok(f"{message} [Back to blog](/blog/)")
