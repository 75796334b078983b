from __future__ import annotations

from pathlib import Path

import gradio as gr

from model_reviews.page_timing import timed_page_load
from model_reviews.pages.common import read_asset
from model_reviews.pages.header import with_light_mode_head
from model_reviews.pages.human_feedback.core_human_feedback import (
    FEEDBACK_PAGE_PATH,
    _header_human_feedback,
    _load_human_feedback_page,
    _reload_feedback_header,
)
from model_reviews.pages.human_feedback.label_sample import (
    OPEN_TOGGLE_LABEL,
    QUALITY_CHOICES,
    SUBMIT_LABEL,
    LabelPanelState,
    _begin_label_submit,
    _finish_label_submit,
    _toggle_label_panel,
)

ASSETS_DIR = Path(__file__).resolve().parent
CSS_PATH = ASSETS_DIR / "css" / "feedback_page.css"


def make_human_feedback_app() -> gr.Blocks:
    with gr.Blocks(
        title="Human Feedback",
        css=read_asset(CSS_PATH) or None,
        head=with_light_mode_head(None),
    ) as app:
        hdr = gr.HTML()
        feedback_id_state = gr.State("")
        panel_state = gr.State(LabelPanelState.CLOSED.value)

        with gr.Column(elem_id="feedback-shell"):
            feedback_head_html = gr.HTML(elem_id="feedback-head-html")
            label_toggle_btn = gr.Button(
                OPEN_TOGGLE_LABEL,
                visible=False,
                size="sm",
                elem_id="feedback-label-toggle",
            )
            label_status_md = gr.Markdown(elem_id="feedback-label-status")
            with gr.Column(visible=False, elem_id="feedback-label-panel") as label_panel:
                label_title_md = gr.Markdown()
                quality_radio = gr.Radio(
                    choices=QUALITY_CHOICES,
                    label="Quality",
                    info="1 is unusable, 5 is excellent. Pick Unrated to clear a stored score.",
                    elem_id="feedback-label-quality",
                )
                tags_dropdown = gr.Dropdown(
                    choices=[],
                    value=[],
                    multiselect=True,
                    allow_custom_value=True,
                    label="Tags",
                    elem_id="feedback-label-tags",
                )
                nsfw_checkbox = gr.Checkbox(label="NSFW", value=False, elem_id="feedback-label-nsfw")
                label_submit_btn = gr.Button(SUBMIT_LABEL, variant="primary", elem_id="feedback-label-submit")
            transcript_md = gr.Markdown(visible=False, elem_id="feedback-transcript")

        app.load(timed_page_load(FEEDBACK_PAGE_PATH, _header_human_feedback), outputs=[hdr])
        app.load(
            timed_page_load(FEEDBACK_PAGE_PATH, _load_human_feedback_page),
            outputs=[
                feedback_head_html,
                transcript_md,
                feedback_id_state,
                label_toggle_btn,
                label_title_md,
                quality_radio,
                tags_dropdown,
                nsfw_checkbox,
                panel_state,
                label_panel,
                label_status_md,
            ],
        )

        label_toggle_btn.click(
            _toggle_label_panel,
            inputs=[panel_state],
            outputs=[panel_state, label_panel, label_status_md, label_toggle_btn],
        )

        label_submit_btn.click(
            _begin_label_submit,
            inputs=[panel_state],
            outputs=[panel_state, label_submit_btn, label_status_md],
        ).then(
            timed_page_load(FEEDBACK_PAGE_PATH, _finish_label_submit, label="submit_label"),
            inputs=[panel_state, feedback_id_state, quality_radio, tags_dropdown, nsfw_checkbox],
            outputs=[panel_state, label_panel, label_submit_btn, label_status_md, label_toggle_btn],
        ).then(
            timed_page_load(FEEDBACK_PAGE_PATH, _reload_feedback_header, label="reload_header"),
            inputs=[feedback_id_state],
            outputs=[feedback_head_html],
        )

    return app
