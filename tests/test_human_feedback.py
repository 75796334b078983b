from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from model_reviews.catalog import load_feedback_page
from model_reviews.pages.common import format_timestamp
from model_reviews.pages.human_feedback.core_human_feedback import (
    _load_human_feedback_page,
    render_byline,
    render_feedback_header,
    render_transcript,
)


def _request(**params):
    return SimpleNamespace(query_params=params)


def test_header_shows_timestamp_count_and_labels(seeded):
    html = render_feedback_header(load_feedback_page("fb-one"))

    assert "3/5/2024, 2:07:09 PM" in html
    assert "Sample #7" in html
    assert "One of 2 collected samples" in html
    assert "quality 2/5" in html
    assert "NSFW" in html
    assert "helpful" in html


def test_byline_links_to_model_page(seeded):
    feedback = load_feedback_page("fb-one").feedback

    assert render_byline(feedback) == (
        '<a class="feedback-byline__model" href="/models/mistralai/mistral-7b">Mistral 7B Instruct</a>'
    )


def test_byline_appends_free_text_name_after_link():
    author = SimpleNamespace(slug="mistralai")
    model = SimpleNamespace(author=author, slug="mistral-7b", name="Mistral 7B Instruct")
    feedback = SimpleNamespace(model=model, model_name="q4_k_m build")

    assert render_byline(feedback).endswith("</a>, q4_k_m build")


def test_byline_falls_back_to_free_text_name(seeded):
    feedback = load_feedback_page("fb-two").feedback

    assert render_byline(feedback) == "freeform-q4"
    assert render_byline(SimpleNamespace(model=None, model_name=None)) == "Unknown model"


def test_transcript_follows_message_index_order(seeded):
    transcript = render_transcript(load_feedback_page("fb-one").messages)

    assert transcript.index("first") < transcript.index("second") < transcript.index("third")
    assert transcript.count("\n\n---\n\n") == 2
    assert transcript.startswith("**User**\n\nfirst")


def test_transcript_without_messages():
    assert render_transcript([]) == "_This sample has no messages._"


def test_format_timestamp_uses_twelve_hour_clock():
    assert format_timestamp(datetime(2024, 12, 31, 0, 5, 1, tzinfo=timezone.utc)) == "12/31/2024, 12:05:01 AM"
    assert format_timestamp(datetime(2024, 1, 9, 12, 0, 0)) == "1/9/2024, 12:00:00 PM"


def test_page_load_for_known_sample(seeded):
    outputs = _load_human_feedback_page(_request(id="fb-one"))

    header_html, _, feedback_id, _, title, *_rest, panel_state, _, status = outputs
    assert "Sample #7" in header_html
    assert feedback_id == "fb-one"
    assert title == "### Label sample #7"
    assert panel_state == "closed"
    assert status == ""


def test_page_load_by_num_id(seeded):
    outputs = _load_human_feedback_page(_request(id="8"))

    assert outputs[2] == "fb-two"


def test_page_load_for_missing_sample(seeded):
    outputs = _load_human_feedback_page(_request(id="missing"))

    assert "Sample not found" in outputs[0]
    assert outputs[2] == ""


def test_page_load_without_id_lists_recent_samples(seeded):
    outputs = _load_human_feedback_page(_request())

    assert "Recent samples" in outputs[0]
    assert "href='/human-feedback/fb-one'" in outputs[0]
    assert "href='/human-feedback/fb-two'" in outputs[0]
