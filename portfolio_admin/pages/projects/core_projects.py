from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import gradio as gr

from portfolio_admin.api_client import PROJECTS, ApiError, PortfolioApi, record_id
from portfolio_admin.curation import (
    FEATURED,
    FEATURED_LIMIT,
    PINNED,
    CurationPolicy,
    CurationRejected,
    count_flagged,
)
from portfolio_admin.login_logic import api_for_request
from portfolio_admin.pages.common import error, escape, ok, record_choices, truncate

logger = logging.getLogger(__name__)

PAGE = "/projects"
TABLE_HEADERS = ["Title", "Category", "Technologies", "Featured", "Pinned"]

# Shared by every session so two tabs cannot race on the same project flag
CURATION = CurationPolicy()

_FLAG_LABELS = {FEATURED: "featured", PINNED: "pinned"}


def featured_header(projects: Sequence[Mapping[str, Any]]) -> str:
    return f"Featured Projects ({count_flagged(projects, FEATURED)}/{FEATURED_LIMIT})"


def render_featured_section(projects: Sequence[Mapping[str, Any]]) -> str:
    featured = [project for project in projects if project.get(FEATURED)]
    cards = []
    for project in featured:
        badges = '<span class="pa-badge pa-badge--featured">Featured</span>'
        if project.get(PINNED):
            badges += ' <span class="pa-badge pa-badge--pinned">Pinned</span>'
        cards.append(
            '<div class="pa-card">'
            f'<div class="pa-card-title">{escape(project.get("title"))} {badges}</div>'
            f'<div class="pa-card-meta">{escape(project.get("category"))}</div>'
            f'<div>{escape(truncate(project.get("description"), 120))}</div>'
            "</div>"
        )
    body = "".join(cards) or '<p class="pa-card-meta">No featured projects yet. Use "Toggle featured" below.</p>'
    return f'<h3>{escape(featured_header(projects))}</h3><div class="pa-card-list">{body}</div>'


def table_rows(projects: Sequence[Mapping[str, Any]]) -> List[List[str]]:
    rows = []
    for project in projects:
        rows.append(
            [
                str(project.get("title") or ""),
                str(project.get("category") or ""),
                ", ".join(str(item) for item in project.get("technologies") or []),
                "★" if project.get(FEATURED) else "",
                "📌" if project.get(PINNED) else "",
            ]
        )
    return rows


def _view(projects: List[Dict[str, Any]], selected_id: str = ""):
    choices = record_choices(projects)
    valid_ids = {value for _, value in choices}
    selected = selected_id if selected_id in valid_ids else None
    return (
        render_featured_section(projects),
        gr.update(value=table_rows(projects), headers=TABLE_HEADERS),
        gr.update(choices=choices, value=selected),
        projects,
        edit_link_html(selected),
    )


def edit_link_html(project_id: Optional[str]) -> str:
    if not project_id:
        return ""
    return f'<a class="pa-edit-link" href="/project-edit/?id={escape(project_id)}">Edit selected project</a>'


def fetch_projects(api: PortfolioApi) -> List[Dict[str, Any]]:
    return api.list_records(PROJECTS)


def load_projects(request: gr.Request):
    try:
        projects = fetch_projects(api_for_request(request))
    except ApiError as exc:
        logger.exception("Failed to load projects")
        return (*_view([]), error(exc))
    return (*_view(projects), "")


def select_project(projects: List[Dict[str, Any]], evt: gr.SelectData):
    row = evt.index[0] if isinstance(evt.index, (list, tuple)) else evt.index
    if row is None or not (0 <= int(row) < len(projects or [])):
        return gr.update(), ""
    project_id = record_id(projects[int(row)])
    return gr.update(value=project_id), edit_link_html(project_id)


def _confirm_with(api: PortfolioApi):
    def _confirm(entity_id: str, changes: Dict[str, bool]) -> None:
        api.update_record(PROJECTS, entity_id, changes)

    return _confirm


def toggle_project_flag(flag_name: str, projects: List[Dict[str, Any]], selected_id: str, request: gr.Request):
    """
    Stream the optimistic list first, then the confirmed (or rolled back) one.
    """
    projects = list(projects or [])
    if not selected_id:
        yield (*_view(projects, selected_id), "Select a project first.")
        return

    api = api_for_request(request)
    try:
        pending = CURATION.begin_toggle(selected_id, flag_name, projects)
    except CurationRejected as exc:
        yield (*_view(projects, selected_id), error(exc))
        return
    except ValueError as exc:
        yield (*_view(projects, selected_id), error(exc))
        return

    try:
        yield (*_view(pending.optimistic_list, selected_id), "Saving…")
    except BaseException:
        # The client went away before the change was sent
        CURATION.cancel_toggle(pending)
        raise

    # Settle on the server's list so a toggle confirmed meanwhile is not overwritten
    result = CURATION.complete_toggle(
        pending,
        _confirm_with(api),
        reload=lambda: fetch_projects(api),
    )
    if result.accepted:
        state = "on" if pending.value else "off"
        status = ok(f"{_FLAG_LABELS[flag_name].capitalize()} turned {state}.")
    else:
        status = error(result.message)
    yield (*_view(result.updated_list, selected_id), status)


def toggle_featured(projects: List[Dict[str, Any]], selected_id: str, request: gr.Request):
    yield from toggle_project_flag(FEATURED, projects, selected_id, request)


def toggle_pinned(projects: List[Dict[str, Any]], selected_id: str, request: gr.Request):
    yield from toggle_project_flag(PINNED, projects, selected_id, request)


def open_delete_dialog(selected_id: str):
    if not selected_id:
        return gr.update(visible=False), "Select a project first."
    return gr.update(visible=True), ""


def delete_project(projects: List[Dict[str, Any]], selected_id: str, request: gr.Request):
    projects = list(projects or [])
    if not selected_id:
        return (*_view(projects), "Select a project first.")
    api = api_for_request(request)
    try:
        api.delete_record(PROJECTS, selected_id)
    except ApiError as exc:
        logger.exception("Failed to delete project %s", selected_id)
        return (*_view(projects, selected_id), error(f"Error deleting project: {exc}"))
    try:
        refreshed = fetch_projects(api)
    except ApiError as exc:
        logger.warning("Project %s deleted but the list could not be reloaded: %s", selected_id, exc)
        refreshed = [project for project in projects if record_id(project) != selected_id]
    return (*_view(refreshed), ok("Project deleted!"))
