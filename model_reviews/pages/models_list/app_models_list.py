from __future__ import annotations

from pathlib import Path

import gradio as gr

from model_reviews.page_timing import timed_page_load
from model_reviews.pages.common import read_asset
from model_reviews.pages.header import with_light_mode_head
from model_reviews.pages.models_list.core_models_list import _header_models_list, _load_models_list

ASSETS_DIR = Path(__file__).resolve().parent
CSS_PATH = ASSETS_DIR / "css" / "models_page.css"


def make_models_list_app() -> gr.Blocks:
    with gr.Blocks(
        title="Model Reviews",
        css=read_asset(CSS_PATH) or None,
        head=with_light_mode_head(None),
    ) as models_app:
        hdr = gr.HTML()
        with gr.Column(elem_id="models-shell"):
            models_html = gr.HTML('<div class="models-empty">Loading models...</div>')

        models_app.load(timed_page_load("/app", _header_models_list), outputs=[hdr])
        models_app.load(timed_page_load("/app", _load_models_list), outputs=[models_html])

    return models_app
