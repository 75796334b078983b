from __future__ import annotations

from pathlib import Path

import gradio as gr

from model_reviews.page_timing import timed_page_load
from model_reviews.pages.common import read_asset
from model_reviews.pages.header import with_light_mode_head
from model_reviews.pages.model_display.core_model_display import (
    _header_model_display,
    _load_model_display_page,
    _submit_review,
)

ASSETS_DIR = Path(__file__).resolve().parent
CSS_PATH = ASSETS_DIR / "css" / "model_page.css"


def make_model_display_app() -> gr.Blocks:
    with gr.Blocks(
        title="Model",
        css=read_asset(CSS_PATH) or None,
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        model_id_state = gr.State(None)

        with gr.Column(elem_id="model-shell"):
            detail_html = gr.HTML(elem_id="model-detail-html")
            review_gate_html = gr.HTML(visible=False, elem_id="model-review-gate")
            with gr.Column(visible=False, elem_id="model-review-form") as review_form:
                review_text = gr.Textbox(
                    label="Your review",
                    lines=4,
                    placeholder="What did you try this model on, and how did it do?",
                    elem_id="model-review-text",
                )
                submit_review_btn = gr.Button("Submit review", variant="primary", elem_id="model-review-submit")
                review_status = gr.Markdown(elem_id="model-review-status")
            reviews_html = gr.HTML(visible=False, elem_id="model-reviews-html")

        app.load(timed_page_load("/model-display", _header_model_display), outputs=[hdr])
        app.load(
            timed_page_load("/model-display", _load_model_display_page),
            outputs=[
                detail_html,
                review_gate_html,
                review_form,
                model_id_state,
                reviews_html,
                review_status,
            ],
        )

        submit_review_btn.click(
            timed_page_load("/model-display", _submit_review, label="submit_review"),
            inputs=[model_id_state, review_text],
            outputs=[review_status, review_text, reviews_html],
        )

    return app
