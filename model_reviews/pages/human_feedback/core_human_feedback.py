from __future__ import annotations

import html
import logging
from typing import List, Optional, Sequence

import gradio as gr
from sqlalchemy.exc import SQLAlchemyError

from model_reviews.catalog import (
    FeedbackPage,
    NotFound,
    fetch_tag_catalog,
    list_recent_feedback,
    load_feedback_page,
)
from model_reviews.db import readonly_session_scope
from model_reviews.orm import HumanFeedback, Message
from model_reviews.pages.common import format_timestamp, model_page_path, query_param
from model_reviews.pages.header import render_header
from model_reviews.pages.human_feedback.label_sample import LabelPanelState, panel_title, quality_choice

logger = logging.getLogger(__name__)

FEEDBACK_PAGE_PATH = "/human-feedback-display"
UNKNOWN_MODEL_LABEL = "Unknown model"
RECENT_SAMPLES_LIMIT = 25


def feedback_page_path(feedback_id: str) -> str:
    return f"/human-feedback/{feedback_id}"


def render_byline(feedback: HumanFeedback) -> str:
    """Link to the model page when the sample has a model with an author."""
    model = feedback.model
    free_text = (feedback.model_name or "").strip()
    if model is not None and model.author is not None:
        href = html.escape(model_page_path(model.author.slug, model.slug), quote=True)
        link = f'<a class="feedback-byline__model" href="{href}">{html.escape(model.name or model.slug)}</a>'
        if free_text:
            return f"{link}, {html.escape(free_text)}"
        return link
    return html.escape(free_text or UNKNOWN_MODEL_LABEL)


def _render_tag_chips(feedback: HumanFeedback) -> str:
    names = sorted(tag.name for tag in feedback.tags)
    if not names:
        return ""
    chips = "".join(f"<span class='feedback-tag'>{html.escape(name)}</span>" for name in names)
    return f"<div class='feedback-tags'>{chips}</div>"


def _render_label_summary(feedback: HumanFeedback) -> str:
    quality = "unrated" if feedback.quality is None else f"quality {feedback.quality}/5"
    nsfw = " · <span class='feedback-nsfw'>NSFW</span>" if feedback.nsfw else ""
    return f"<div class='feedback-labels'>{quality}{nsfw}</div>"


def render_feedback_header(page: FeedbackPage) -> str:
    feedback = page.feedback
    return f"""
    <section class="feedback-head">
      <div class="feedback-head__stamp">{html.escape(format_timestamp(feedback.created_at))}</div>
      <h1 class="feedback-head__title">Sample #{feedback.num_id}</h1>
      <div class="feedback-byline">{render_byline(feedback)}</div>
      <div class="feedback-count">One of {page.total_count} collected samples</div>
      {_render_label_summary(feedback)}
      {_render_tag_chips(feedback)}
    </section>
    """


def _message_heading(message: Message) -> str:
    role = (message.role or "").strip()
    return role.capitalize() if role else f"Message {message.index}"


def render_transcript(messages: Sequence[Message]) -> str:
    """Markdown transcript, one block per message, in the order given."""
    if not messages:
        return "_This sample has no messages._"
    blocks = [f"**{_message_heading(message)}**\n\n{message.content}" for message in messages]
    return "\n\n---\n\n".join(blocks)


def _render_missing_feedback(feedback_id: str) -> str:
    return (
        "<section class='feedback-head feedback-head--missing'>"
        "<h2>Sample not found</h2>"
        f"<p>No human feedback sample matched <code>{html.escape(feedback_id)}</code>.</p>"
        "</section>"
    )


def render_recent_samples(samples: Sequence[HumanFeedback]) -> str:
    if not samples:
        return (
            "<section class='feedback-head feedback-head--missing'>"
            "<h2>No samples yet</h2>"
            "<p>Human feedback samples appear here once they are collected.</p>"
            "</section>"
        )
    rows = []
    for sample in samples:
        href = html.escape(feedback_page_path(sample.id), quote=True)
        rows.append(
            "<li class='feedback-recent__item'>"
            f"<a href='{href}'>Sample #{sample.num_id}</a>"
            f"<span class='feedback-recent__model'>{render_byline(sample)}</span>"
            f"<span class='feedback-recent__stamp'>{html.escape(format_timestamp(sample.created_at))}</span>"
            "</li>"
        )
    return (
        "<section class='feedback-recent'>"
        "<h2>Recent samples</h2>"
        f"<ul class='feedback-recent__list'>{''.join(rows)}</ul>"
        "</section>"
    )


def _fetch_recent_samples() -> str:
    with readonly_session_scope() as session:
        return render_recent_samples(list_recent_feedback(session, RECENT_SAMPLES_LIMIT))


def _fetch_tag_choices() -> List[str]:
    try:
        with readonly_session_scope() as session:
            return fetch_tag_catalog(session)
    except SQLAlchemyError:
        logger.exception("Failed to load tag catalog")
        return []


def _header_human_feedback(request: gr.Request):
    return render_header(path=FEEDBACK_PAGE_PATH, request=request)


def _empty_panel_outputs(header_html: str):
    return (
        header_html,
        gr.update(value="", visible=False),
        "",
        gr.update(visible=False),
        "",
        gr.update(value=None),
        gr.update(choices=[], value=[]),
        gr.update(value=False),
        LabelPanelState.CLOSED.value,
        gr.update(visible=False),
        "",
    )


def _load_human_feedback_page(request: gr.Request):
    feedback_id = query_param(request, "id")
    if not feedback_id:
        return _empty_panel_outputs(_fetch_recent_samples())
    try:
        page = load_feedback_page(feedback_id)
    except NotFound:
        logger.info("Human feedback page not found id=%s", feedback_id)
        return _empty_panel_outputs(_render_missing_feedback(feedback_id))

    feedback = page.feedback
    current_tags = sorted(tag.name for tag in feedback.tags)
    choices = sorted(set(_fetch_tag_choices()) | set(current_tags))
    return (
        render_feedback_header(page),
        gr.update(value=render_transcript(page.messages), visible=True),
        feedback.id,
        gr.update(visible=True),
        panel_title(feedback.num_id),
        gr.update(value=quality_choice(feedback.quality)),
        gr.update(choices=choices, value=current_tags),
        gr.update(value=bool(feedback.nsfw)),
        LabelPanelState.CLOSED.value,
        gr.update(visible=False),
        "",
    )


def _reload_feedback_header(feedback_id: Optional[str]):
    if not feedback_id:
        return gr.update()
    try:
        page = load_feedback_page(feedback_id)
    except NotFound:
        return _render_missing_feedback(feedback_id)
    return render_feedback_header(page)
