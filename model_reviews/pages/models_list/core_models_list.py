from __future__ import annotations

import html
import logging
from typing import Sequence

import gradio as gr
from sqlalchemy.exc import SQLAlchemyError

from model_reviews.catalog import list_models
from model_reviews.db import readonly_session_scope
from model_reviews.orm import Model
from model_reviews.pages.common import author_listing_path, format_date, model_page_path, query_param
from model_reviews.pages.header import render_header
from model_reviews.pages.star_rating import render_star_rating

logger = logging.getLogger(__name__)


def _render_model_card(model: Model) -> str:
    author = model.author
    href = html.escape(model_page_path(author.slug, model.slug), quote=True)
    author_href = html.escape(author_listing_path(author.slug), quote=True)
    score = ""
    if model.average is not None:
        score = (
            "<div class='models-card__score'>"
            f"{render_star_rating(max(0, int(round(model.average))))}"
            f"<span class='models-card__average'>{model.average:.1f}</span>"
            "</div>"
        )
    return f"""
    <article class="models-card">
      <a class="models-card__name" href="{href}">{html.escape(model.name or model.slug)}</a>
      <div class="models-card__meta">
        <a href="{author_href}">{html.escape(author.name)}</a>
        <span>{float(model.num_parameters or 0):g}B</span>
        <span>{html.escape(model.arch or "unknown")}</span>
        <span>{format_date(model.last_modified_date)}</span>
      </div>
      {score}
    </article>
    """


def render_model_list(models: Sequence[Model], author_slug: str = "") -> str:
    if author_slug:
        author_name = models[0].author.name if models else author_slug
        title = (
            f"<h1 class='models-title'>Models by {html.escape(author_name)}</h1>"
            "<a class='models-clear' href='/app/'>Show all authors</a>"
        )
    else:
        title = "<h1 class='models-title'>Models</h1>"
    if not models:
        return f"{title}<div class='models-empty'>No models found.</div>"
    cards = "".join(_render_model_card(model) for model in models)
    return f"{title}<div class='models-grid'>{cards}</div>"


def _header_models_list(request: gr.Request):
    return render_header(path="/app", request=request)


def _load_models_list(request: gr.Request) -> str:
    author_slug = query_param(request, "author")
    try:
        with readonly_session_scope() as session:
            models = list_models(session, author_slug)
    except SQLAlchemyError:
        logger.exception("Failed to load model list author=%s", author_slug or "-")
        return "<div class='models-empty'>Could not load models.</div>"
    return render_model_list(models, author_slug)
