from __future__ import annotations

import logging
from typing import List, Optional

import gradio as gr

from portfolio_admin.api_client import PROJECTS, ApiError, record_id
from portfolio_admin.curation import FEATURED, CurationRejected
from portfolio_admin.forms import (
    DEFAULT_CATEGORY,
    PROJECT_IMAGE_FIELDS,
    FormDraft,
    project_draft,
    project_payload,
)
from portfolio_admin.login_logic import api_for_request
from portfolio_admin.pages.common import error, ok, query_param
from portfolio_admin.pages.image_field import field_updates
from portfolio_admin.pages.projects.core_projects import CURATION

logger = logging.getLogger(__name__)

PAGE = "/project-edit"
THUMBNAIL_FIELD, IMAGES_FIELD = PROJECT_IMAGE_FIELDS


def _title_html(draft: FormDraft) -> str:
    return "<h2>Add New Project</h2>" if draft.is_new else "<h2>Edit Project</h2>"


def _form_values(draft: FormDraft):
    technologies = draft.get("technologies") or []
    return (
        _title_html(draft),
        draft.get("title", ""),
        draft.get("description", ""),
        draft.get("category") or DEFAULT_CATEGORY,
        gr.update(choices=list(technologies), value=list(technologies)),
        *field_updates(draft, THUMBNAIL_FIELD),
        *field_updates(draft, IMAGES_FIELD),
        draft.get("liveLink", ""),
        draft.get("githubLink", ""),
        bool(draft.get("featured")),
        bool(draft.get("pinned")),
        draft,
    )


def load_project_form(request: gr.Request):
    draft = project_draft()
    project_id = query_param(request, "id")
    if not project_id:
        return (*_form_values(draft.load(None)), "")
    try:
        record = api_for_request(request).get_record(PROJECTS, project_id)
    except ApiError as exc:
        logger.exception("Failed to load project %s", project_id)
        return (*_form_values(draft.load(None)), error(f"Error loading project: {exc}"))
    draft.load(record)
    if not draft.record_id:
        draft.record_id = project_id
    return (*_form_values(draft), "")


def _check_featured_ceiling(draft: FormDraft, featured: bool, request: gr.Request) -> None:
    if not featured:
        return
    projects = api_for_request(request).list_records(PROJECTS)
    current = next((project for project in projects if record_id(project) == draft.record_id), None)
    if current is not None and current.get(FEATURED):
        return
    CURATION.check_ceiling(FEATURED, draft.record_id, projects)


def save_project(
    draft: Optional[FormDraft],
    title: str,
    description: str,
    category: str,
    technologies: List[str],
    live_link: str,
    github_link: str,
    featured: bool,
    pinned: bool,
    request: gr.Request,
):
    if draft is None:
        return gr.update(), gr.update(), error("The form is still loading.")

    draft.update(
        title=title,
        description=description,
        category=category,
        technologies=list(technologies or []),
        liveLink=live_link,
        githubLink=github_link,
        featured=bool(featured),
        pinned=bool(pinned),
    )
    try:
        payload = project_payload(draft.values())
        _check_featured_ceiling(draft, payload["featured"], request)
        api = api_for_request(request)
        if draft.is_new:
            saved = api.create_record(PROJECTS, payload)
            draft.record_id = record_id(saved)
            message = "Project created!"
        else:
            api.update_record(PROJECTS, draft.record_id, payload)
            message = "Project updated!"
    except (ValueError, CurationRejected) as exc:
        return gr.update(), draft, error(exc)
    except ApiError as exc:
        logger.exception("Failed to save project %s", draft.record_id or "<new>")
        return gr.update(), draft, error(f"Error saving project: {exc}")

    logger.info("Saved project %s", draft.record_id or "<unknown id>")
    return _title_html(draft), draft, ok(f"{message} [Back to projects](/projects/)")

