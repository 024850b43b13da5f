from __future__ import annotations

from datetime import datetime, timezone
import html
import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence

import gradio as gr

from portfolio_admin.api_client import record_id

logger = logging.getLogger(__name__)

OK_PREFIX = "✅"
ERROR_PREFIX = "❌"


def ok(message: str) -> str:
    return f"{OK_PREFIX} {message}"


def error(exc_or_message: object) -> str:
    return f"{ERROR_PREFIX} {exc_or_message}"


def query_param(request: gr.Request | None, key: str) -> str:
    if request is None:
        return ""
    request_obj = getattr(request, "request", request)
    query_params = getattr(request_obj, "query_params", None)
    if not query_params:
        return ""
    return str(query_params.get(key, "")).strip()


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = f"{raw[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: Any) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return parsed.strftime("%b %d, %Y").replace(" 0", " ")


def format_datetime(value: Any) -> str:
    parsed = parse_timestamp(value)
    if parsed is None:
        return ""
    return parsed.strftime("%Y-%m-%d %H:%M")


def truncate(text: Any, length: int) -> str:
    value = str(text or "")
    if len(value) > length:
        return f"{value[:length]}..."
    return value


def newest_first(records: Iterable[Mapping[str, Any]], key: str = "createdAt") -> List[Mapping[str, Any]]:
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(records, key=lambda record: parse_timestamp(record.get(key)) or epoch, reverse=True)


def record_choices(records: Sequence[Mapping[str, Any]], label_key: str = "title") -> List[tuple[str, str]]:
    choices: List[tuple[str, str]] = []
    for record in records:
        rid = record_id(record)
        if not rid:
            continue
        label = str(record.get(label_key) or "").strip() or rid
        choices.append((label, rid))
    return choices


def escape(value: Any) -> str:
    return html.escape(str(value or ""))
