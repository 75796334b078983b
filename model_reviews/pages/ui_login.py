import gradio as gr

from model_reviews.pages.header import render_header, with_light_mode_head
from model_reviews.page_timing import timed_page_load


def _header_root(request: gr.Request):
    return render_header(path="/", request=request)


def make_login_page() -> gr.Blocks:
    with gr.Blocks(
        title="Model Reviews",
        head=with_light_mode_head(None),
    ) as login_page:
        hdr = gr.HTML()
        gr.Markdown(
            "## Welcome\n"
            "Browse open-weight models and their community scores as a guest. "
            "Sign in to write reviews."
        )
        gr.Markdown(
            "- [Models](/app/): listings with scores, badges and local download links\n"
            "- [Human feedback](/human-feedback-display/): collected chat samples, labeled for training datasets"
        )

        login_page.load(timed_page_load("/", _header_root), outputs=[hdr])

    return login_page
