from __future__ import annotations

import copy
from dataclasses import dataclass
import functools
import logging
import re
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from portfolio_admin.api_client import record_id
from portfolio_admin.reconciler import CollectionMode, CollectionReconciler, normalize_snapshot

logger = logging.getLogger(__name__)

PROJECT_CATEGORIES: tuple[str, ...] = ("Web App", "Mobile", "UI/UX", "Graphic Design")
DEFAULT_CATEGORY = PROJECT_CATEGORIES[0]
SLUG_MAX_LENGTH = 50
DEFAULT_SKILL_PERCENTAGE = 80
ACHIEVEMENT_KEYS: tuple[str, ...] = ("projectsCompleted", "happyClients", "yearsExperience")


@dataclass(frozen=True)
class ImageField:
    name: str
    mode: CollectionMode


PROJECT_IMAGE_FIELDS = (
    ImageField("thumbnail", CollectionMode.SINGULAR),
    ImageField("images", CollectionMode.PLURAL),
)
POST_IMAGE_FIELDS = (ImageField("featured_image", CollectionMode.SINGULAR),)
PROFILE_IMAGE_FIELDS = (ImageField("heroImage", CollectionMode.SINGULAR),)

PROJECT_DEFAULTS: Dict[str, Any] = {
    "title": "",
    "description": "",
    "category": DEFAULT_CATEGORY,
    "technologies": [],
    "thumbnail": "",
    "images": [],
    "liveLink": "",
    "githubLink": "",
    "featured": False,
    "pinned": False,
}

POST_DEFAULTS: Dict[str, Any] = {
    "title": "",
    "slug": "",
    "content": "",
    "excerpt": "",
    "featured_image": "",
    "tags": [],
    "published": False,
}

PROFILE_DEFAULTS: Dict[str, Any] = {
    "heroImage": "",
    "email": "",
    "profile": {"name": "", "title": "", "bio": ""},
    "achievements": {key: 0 for key in ACHIEVEMENT_KEYS},
    "techStack": [],
}


class FormDraft:
    """
    The working copy of one record being edited.

    Image fields are owned by CollectionReconcilers; their change listener
    writes the committed collection straight back into the draft, so the
    values sent on save always match what the form shows.
    """

    def __init__(self, defaults: Mapping[str, Any], image_fields: Sequence[ImageField] = ()) -> None:
        self._defaults = copy.deepcopy(dict(defaults))
        self._lock = threading.RLock()
        self._values: Dict[str, Any] = copy.deepcopy(self._defaults)
        self.record_id = ""
        self.image_fields = {field.name: field for field in image_fields}
        self.images: Dict[str, CollectionReconciler] = {
            field.name: CollectionReconciler(
                field.mode,
                on_change=functools.partial(self._store_images, field),
            )
            for field in image_fields
        }

    def _store_images(self, field: ImageField, items: List[str]) -> None:
        with self._lock:
            if field.mode is CollectionMode.SINGULAR:
                self._values[field.name] = items[0] if items else ""
            else:
                self._values[field.name] = list(items)

    def load(self, record: Optional[Mapping[str, Any]]) -> "FormDraft":
        """Replace the draft with a record fetched from the API (or the defaults when None)."""
        record = dict(record or {})
        with self._lock:
            values = copy.deepcopy(self._defaults)
            values.update(copy.deepcopy(record))
            self._values = values
            self.record_id = record_id(record)
            for name, reconciler in self.images.items():
                reconciler.reset(record.get(name), notify=True)
        logger.debug("Loaded draft record_id=%s fields=%s", self.record_id or "<new>", sorted(values))
        return self

    @property
    def is_new(self) -> bool:
        return not self.record_id

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return copy.deepcopy(self._values.get(key, default))

    def update(self, **fields: Any) -> None:
        with self._lock:
            for key, value in fields.items():
                if key in self.images:
                    raise ValueError(f"'{key}' is an image field; change it through its uploader.")
                self._values[key] = value

    def values(self) -> Dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self._values)

    def reconciler(self, name: str) -> CollectionReconciler:
        return self.images[name]

    def add_list_item(self, key: str, value: Any) -> List[Any]:
        with self._lock:
            items = add_list_item(self._values.get(key) or [], value)
            self._values[key] = items
            return list(items)

    def remove_list_item(self, key: str, index: int) -> List[Any]:
        with self._lock:
            items = remove_list_item(self._values.get(key) or [], index)
            self._values[key] = items
            return list(items)


def project_draft() -> FormDraft:
    return FormDraft(PROJECT_DEFAULTS, PROJECT_IMAGE_FIELDS)


def post_draft() -> FormDraft:
    return FormDraft(POST_DEFAULTS, POST_IMAGE_FIELDS)


def profile_draft() -> FormDraft:
    return FormDraft(PROFILE_DEFAULTS, PROFILE_IMAGE_FIELDS)


# --- small list fields (technologies, tags, skills)


def add_list_item(items: Iterable[Any], value: Any) -> List[Any]:
    updated = list(items)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return updated
    elif value is None:
        return updated
    updated.append(value)
    return updated


def remove_list_item(items: Iterable[Any], index: int) -> List[Any]:
    updated = list(items)
    if 0 <= index < len(updated):
        del updated[index]
    return updated


def parse_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def skill_entry(skill: str, percentage: Any = DEFAULT_SKILL_PERCENTAGE) -> Dict[str, Any]:
    name = (skill or "").strip()
    if not name:
        raise ValueError("Enter a skill name first.")
    return {"skill": name, "percentage": max(0, min(100, parse_int(percentage, DEFAULT_SKILL_PERCENTAGE)))}


def slugify(title: str) -> str:
    return re.sub(r"\s+", "-", (title or "").lower())[:SLUG_MAX_LENGTH]


def _text(values: Mapping[str, Any], key: str) -> str:
    return str(values.get(key) or "").strip()


def _string_list(value: Any) -> List[str]:
    return [str(item).strip() for item in value or [] if str(item).strip()]


def _require(values: Mapping[str, Any], key: str, label: str) -> str:
    text = _text(values, key)
    if not text:
        raise ValueError(f"{label} is required.")
    return text


# --- save payloads


def project_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    category = _text(values, "category")
    if category not in PROJECT_CATEGORIES:
        category = DEFAULT_CATEGORY
    return {
        "title": _require(values, "title", "Project title"),
        "description": _require(values, "description", "Description"),
        "category": category,
        "technologies": _string_list(values.get("technologies")),
        "thumbnail": (normalize_snapshot(values.get("thumbnail")) or [""])[0],
        "images": normalize_snapshot(values.get("images")),
        "liveLink": _text(values, "liveLink"),
        "githubLink": _text(values, "githubLink"),
        "featured": bool(values.get("featured")),
        "pinned": bool(values.get("pinned")),
    }


def post_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    title = _require(values, "title", "Blog post title")
    return {
        "title": title,
        "slug": _text(values, "slug") or slugify(title),
        "content": _require(values, "content", "Full content"),
        "excerpt": _text(values, "excerpt"),
        "featured_image": (normalize_snapshot(values.get("featured_image")) or [""])[0],
        "tags": _string_list(values.get("tags")),
        "published": bool(values.get("published")),
    }


def profile_payload(values: Mapping[str, Any]) -> Dict[str, Any]:
    payload = dict(values)
    profile = dict(values.get("profile") or {})
    payload["profile"] = {key: str(profile.get(key) or "").strip() for key in ("name", "title", "bio")}
    achievements = values.get("achievements") or {}
    payload["achievements"] = {key: parse_int(achievements.get(key)) for key in ACHIEVEMENT_KEYS}
    tech_stack: List[Dict[str, Any]] = []
    for entry in values.get("techStack") or []:
        if not isinstance(entry, Mapping):
            continue
        try:
            tech_stack.append(skill_entry(entry.get("skill") or "", entry.get("percentage")))
        except ValueError:
            logger.warning("Dropping tech stack entry without a skill name: %r", entry)
    payload["techStack"] = tech_stack
    payload["heroImage"] = (normalize_snapshot(values.get("heroImage")) or [""])[0]
    payload["email"] = _text(values, "email")
    return payload
