from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import gradio as gr
from sqlalchemy.exc import SQLAlchemyError

from model_reviews.catalog import LoadedModel, NotFound, add_review, list_reviews, load_model
from model_reviews.db import readonly_session_scope, session_scope
from model_reviews.login_logic import build_login_url, get_user
from model_reviews.orm import Review
from model_reviews.pages.common import (
    author_listing_path,
    format_date,
    huggingface_url,
    model_page_path,
    query_param,
)
from model_reviews.pages.header import render_header
from model_reviews.pages.star_rating import render_star_rating

logger = logging.getLogger(__name__)

FREECHAT_URL = "https://www.freechat.run/"
LM_STUDIO_URL = "https://lmstudio.ai"
EXTERNAL_LINK_ATTRS = 'rel="noopener noreferrer" target="_blank"'


@dataclass(frozen=True)
class ModelView:
    found: bool
    detail_html: str
    reviews_html: str
    review_gate_html: str
    model_id: Optional[int] = None
    can_review: bool = False


def _format_parameters(num_parameters: float | None) -> str:
    return f"{float(num_parameters or 0):g}B"


def _render_badge(label: str, tooltip: str) -> str:
    return (
        f'<span class="model-badge" title="{html.escape(tooltip, quote=True)}">'
        f"{html.escape(label)}</span>"
    )


def _render_scores(average: float | None) -> str:
    if average is None:
        return ""
    stars = render_star_rating(max(0, int(round(average))))
    return (
        "<section class='model-scores'>"
        "<h2 class='model-section-title'>Score</h2>"
        f"<div class='model-scores__row'><span class='model-scores__value'>{average:.1f}</span>{stars}</div>"
        "</section>"
    )


def _render_try_it(gguf_id: str | None) -> str:
    if not gguf_id:
        return ""
    download_url = html.escape(huggingface_url(gguf_id), quote=True)
    return f"""
    <section class="model-try-it">
      <h2 class="model-section-title">Try it</h2>
      <p>
        To try this model locally,
        <a href="{download_url}" class="model-link--strong" {EXTERNAL_LINK_ATTRS}>download a GGUF</a>
        from Hugging Face and use it with a client like
        <a href="{FREECHAT_URL}" class="model-link--strong" {EXTERNAL_LINK_ATTRS}>FreeChat</a>
        (macOS) or
        <a href="{LM_STUDIO_URL}" class="model-link--strong" {EXTERNAL_LINK_ATTRS}>LM Studio</a>.
      </p>
    </section>
    """


def render_model_detail(loaded: LoadedModel) -> str:
    model, author = loaded.model, loaded.author
    name = html.escape(model.name or model.slug)
    author_href = html.escape(author_listing_path(author.slug), quote=True)
    details_link = ""
    if model.remote_id:
        remote_href = html.escape(huggingface_url(model.remote_id), quote=True)
        details_link = (
            f'<a class="model-details-btn" href="{remote_href}" {EXTERNAL_LINK_ATTRS}>'
            "Model Details <span aria-hidden='true'>&#8599;</span></a>"
        )
    return f"""
    <section class="model-detail" id="model-detail">
      <div class="model-detail__head">
        <div>
          <div class="model-detail__title-row">
            <h1 class="model-detail__title">{name}</h1>
            {_render_badge(_format_parameters(model.num_parameters), "Parameter count")}
            {_render_badge(model.arch or "unknown", "Model type")}
          </div>
          <div class="model-detail__byline">
            by <a href="{author_href}" class="model-detail__author">{html.escape(author.name)}</a>,
            {format_date(model.last_modified_date)}
          </div>
        </div>
        <div class="model-detail__actions">{details_link}</div>
      </div>
      {_render_scores(model.average)}
      {_render_try_it(model.gguf_id)}
    </section>
    """


def render_reviews(reviews: Sequence[Review]) -> str:
    if not reviews:
        return "<div class='reviews-empty'>No reviews yet</div>"
    cards = "".join(
        f"<div class='review-card'><span class='review-card__text'>{html.escape(review.text)}</span></div>"
        for review in reviews
    )
    return f"<div class='reviews-grid'>{cards}</div>"


def render_review_gate(viewer: Optional[Dict[str, object]], author_slug: str, model_slug: str) -> str:
    if viewer:
        return "<h2 class='model-section-title'>Reviews</h2>"
    login_href = html.escape(
        build_login_url("google", model_page_path(author_slug, model_slug)),
        quote=True,
    )
    return (
        "<div class='reviews-head'>"
        "<h2 class='model-section-title'>Reviews</h2>"
        f"<a class='review-login-btn' href='{login_href}' aria-disabled='true'>Login to review</a>"
        "</div>"
    )


def _render_missing_model(author_slug: str, model_slug: str) -> str:
    safe_path = html.escape(f"{author_slug or 'unknown'}/{model_slug or 'unknown'}")
    return (
        "<section class='model-detail model-detail--missing'>"
        "<h2>Model not found</h2>"
        f"<p>No model matched <code>{safe_path}</code>.</p>"
        "</section>"
    )


def _render_model_selection_prompt() -> str:
    return (
        "<section class='model-detail model-detail--missing'>"
        "<h2>Select a model</h2>"
        "<p>Open a model from the <a href='/app/'>model list</a> to see its details.</p>"
        "</section>"
    )


def build_model_view(author_slug: str, model_slug: str, viewer: Optional[Dict[str, object]]) -> ModelView:
    """Load and render one model page. The viewer decides whether the review form is offered."""
    if not author_slug or not model_slug:
        return ModelView(False, _render_model_selection_prompt(), "", "")
    try:
        with readonly_session_scope() as session:
            loaded = load_model(session, model_slug, author_slug)
    except NotFound:
        logger.info("Model page not found author=%s model=%s", author_slug, model_slug)
        return ModelView(False, _render_missing_model(author_slug, model_slug), "", "")
    return ModelView(
        found=True,
        detail_html=render_model_detail(loaded),
        reviews_html=render_reviews(loaded.model.reviews),
        review_gate_html=render_review_gate(viewer, author_slug, model_slug),
        model_id=loaded.model.id,
        can_review=bool(viewer),
    )


def _header_model_display(request: gr.Request):
    return render_header(path="/model-display", request=request)


def _load_model_display_page(request: gr.Request):
    author_slug = query_param(request, "author")
    model_slug = query_param(request, "model")
    view = build_model_view(author_slug, model_slug, get_user(request))
    return (
        view.detail_html,
        gr.update(value=view.review_gate_html, visible=view.found),
        gr.update(visible=view.can_review),
        view.model_id,
        gr.update(value=view.reviews_html, visible=view.found),
        "",
    )


def _submit_review(model_id: Optional[int], review_text: str, request: gr.Request):
    viewer = get_user(request)
    if not viewer:
        return "Sign in to submit a review.", gr.update(), gr.update()
    if not model_id:
        return "Select a model first.", gr.update(), gr.update()
    try:
        with session_scope() as session:
            add_review(session, int(model_id), review_text, author_email=str(viewer.get("email") or "") or None)
        with readonly_session_scope() as session:
            reviews = list_reviews(session, int(model_id))
    except (ValueError, NotFound) as exc:
        return f"Could not save review: {exc}", gr.update(), gr.update()
    except SQLAlchemyError:
        logger.exception("Saving review failed model_id=%s", model_id)
        return "Could not save review, please try again.", gr.update(), gr.update()
    return "Review saved.", gr.update(value=""), gr.update(value=render_reviews(reviews))
