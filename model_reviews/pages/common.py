from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

import gradio as gr

logger = logging.getLogger(__name__)

HUGGINGFACE_BASE_URL = (os.getenv("HUGGINGFACE_BASE_URL") or "https://huggingface.co").rstrip("/")


def query_param(request: gr.Request | None, key: str) -> str:
    if request is None:
        return ""
    request_obj = getattr(request, "request", request)
    query_params = getattr(request_obj, "query_params", None)
    if not query_params:
        return ""
    return str(query_params.get(key, "")).strip()


def read_asset(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("Missing page asset at %s", path)
        return ""


def huggingface_url(repo_id: str) -> str:
    # Stored ids are already "owner/name"; interpolated as-is.
    return f"{HUGGINGFACE_BASE_URL}/{repo_id}"


def model_page_path(author_slug: str, model_slug: str) -> str:
    return f"/models/{quote(author_slug, safe='')}/{quote(model_slug, safe='')}"


def author_listing_path(author_slug: str) -> str:
    return f"/app/?author={quote(author_slug, safe='')}"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_date(value: datetime | None) -> str:
    """MM/DD/YYYY, as the en-US locale prints a numeric date."""
    if value is None:
        return ""
    return _as_utc(value).strftime("%m/%d/%Y")


def format_timestamp(value: datetime | None) -> str:
    """M/D/YYYY, h:mm:ss AM, as the en-US locale prints a date-time."""
    if value is None:
        return ""
    stamp = _as_utc(value)
    hour = stamp.hour % 12 or 12
    meridiem = "AM" if stamp.hour < 12 else "PM"
    return f"{stamp.month}/{stamp.day}/{stamp.year}, {hour}:{stamp.minute:02d}:{stamp.second:02d} {meridiem}"
