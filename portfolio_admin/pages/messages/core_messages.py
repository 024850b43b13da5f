from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

import gradio as gr

from portfolio_admin.api_client import CONTACT, ApiError, record_id
from portfolio_admin.login_logic import api_for_request
from portfolio_admin.pages.common import error, escape, format_datetime, newest_first, ok, truncate

logger = logging.getLogger(__name__)

PAGE = "/messages"


def render_messages(messages: Sequence[Mapping[str, Any]]) -> str:
    if not messages:
        return '<p class="pa-card-meta">No messages yet.</p>'
    cards = []
    for message in messages:
        email = escape(message.get("email"))
        cards.append(
            '<div class="pa-card">'
            f'<div class="pa-card-title">{escape(message.get("name"))} '
            f'<a class="pa-card-meta" href="mailto:{email}">{email}</a></div>'
            f'<div class="pa-card-meta">{escape(format_datetime(message.get("createdAt")))}</div>'
            f'<p style="white-space:pre-wrap;">{escape(message.get("message"))}</p>'
            "</div>"
        )
    return f'<div class="pa-card-list">{"".join(cards)}</div>'


def message_choices(messages: Sequence[Mapping[str, Any]]) -> List[tuple[str, str]]:
    choices = []
    for message in messages:
        rid = record_id(message)
        if not rid:
            continue
        label = f"{message.get('name') or '?'}: {truncate(message.get('message'), 40)}"
        choices.append((label, rid))
    return choices


def _view(messages: List[Dict[str, Any]]):
    ordered = [dict(message) for message in newest_first(messages)]
    return (
        render_messages(ordered),
        gr.update(choices=message_choices(ordered), value=None),
        ordered,
    )


def load_messages(request: gr.Request):
    try:
        messages = api_for_request(request).list_records(CONTACT)
    except ApiError as exc:
        logger.exception("Failed to load contact messages")
        return (*_view([]), error(exc))
    return (*_view(messages), f"{len(messages)} message(s).")


def open_delete_dialog(selected_id: str):
    if not selected_id:
        return gr.update(visible=False), "Select a message first."
    return gr.update(visible=True), ""


def delete_message(messages: List[Dict[str, Any]], selected_id: str, request: gr.Request):
    messages = list(messages or [])
    if not selected_id:
        return (*_view(messages), "Select a message first.")
    try:
        api_for_request(request).delete_record(CONTACT, selected_id)
    except ApiError as exc:
        logger.exception("Failed to delete message %s", selected_id)
        return (*_view(messages), error(f"Error deleting message: {exc}"))
    remaining = [message for message in messages if record_id(message) != selected_id]
    return (*_view(remaining), ok("Message deleted."))
