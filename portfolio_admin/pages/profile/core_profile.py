from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Sequence

import gradio as gr

from portfolio_admin.api_client import ApiError
from portfolio_admin.forms import (
    DEFAULT_SKILL_PERCENTAGE,
    PROFILE_IMAGE_FIELDS,
    FormDraft,
    parse_int,
    profile_draft,
    profile_payload,
    skill_entry,
)
from portfolio_admin.login_logic import api_for_request
from portfolio_admin.pages.common import error, ok
from portfolio_admin.pages.image_field import field_updates

logger = logging.getLogger(__name__)

PAGE = "/profile"
(HERO_FIELD,) = PROFILE_IMAGE_FIELDS
SKILL_HEADERS = ["Skill", "Percentage"]


def skill_rows(tech_stack: Sequence[Mapping[str, Any]]) -> List[List[Any]]:
    return [[str(entry.get("skill") or ""), parse_int(entry.get("percentage"))] for entry in tech_stack or []]


def skill_choices(tech_stack: Sequence[Mapping[str, Any]]) -> List[tuple[str, int]]:
    return [
        (f"{index + 1}. {entry.get('skill') or '?'} ({parse_int(entry.get('percentage'))}%)", index)
        for index, entry in enumerate(tech_stack or [])
    ]


def _skill_view(draft: FormDraft):
    tech_stack = draft.get("techStack") or []
    return (
        gr.update(value=skill_rows(tech_stack), headers=SKILL_HEADERS),
        gr.update(choices=skill_choices(tech_stack), value=None),
    )


def _form_values(draft: FormDraft):
    profile = draft.get("profile") or {}
    achievements = draft.get("achievements") or {}
    return (
        *field_updates(draft, HERO_FIELD),
        str(profile.get("name") or ""),
        str(profile.get("title") or ""),
        str(profile.get("bio") or ""),
        draft.get("email", ""),
        parse_int(achievements.get("projectsCompleted")),
        parse_int(achievements.get("happyClients")),
        parse_int(achievements.get("yearsExperience")),
        *_skill_view(draft),
        draft,
    )


def load_profile_form(request: gr.Request):
    draft = profile_draft()
    try:
        record = api_for_request(request).get_profile()
    except ApiError as exc:
        logger.exception("Failed to load profile")
        return (*_form_values(draft.load(None)), error(f"Error loading profile: {exc}"))
    draft.load(record)
    return (*_form_values(draft), "")


def add_skill(draft: Optional[FormDraft], skill: str, percentage: Any):
    if draft is None:
        return (gr.update(), gr.update(), skill, percentage, error("The form is still loading."))
    try:
        entry = skill_entry(skill, percentage)
    except ValueError as exc:
        return (gr.update(), gr.update(), skill, percentage, error(exc))
    draft.add_list_item("techStack", entry)
    return (
        *_skill_view(draft),
        "",
        DEFAULT_SKILL_PERCENTAGE,
        ok('Skill added! Click "Save Profile" to save it.'),
    )


def remove_skill(draft: Optional[FormDraft], index: Any):
    if draft is None:
        return (gr.update(), gr.update(), error("The form is still loading."))
    if index is None or index == "":
        return (gr.update(), gr.update(), "Choose a skill to remove.")
    draft.remove_list_item("techStack", int(index))
    return (*_skill_view(draft), "")


def save_profile(
    draft: Optional[FormDraft],
    name: str,
    title: str,
    bio: str,
    email: str,
    projects_completed: Any,
    happy_clients: Any,
    years_experience: Any,
    request: gr.Request,
):
    if draft is None:
        return error("The form is still loading.")

    draft.update(
        profile={"name": name, "title": title, "bio": bio},
        email=email,
        achievements={
            "projectsCompleted": parse_int(projects_completed),
            "happyClients": parse_int(happy_clients),
            "yearsExperience": parse_int(years_experience),
        },
    )
    payload = profile_payload(draft.values())
    try:
        api_for_request(request).update_profile(payload)
    except ApiError as exc:
        logger.exception("Failed to save profile")
        return error(f"Error updating profile: {exc}")
    logger.info("Saved profile (%d skills)", len(payload["techStack"]))
    return ok("Profile updated successfully!")
