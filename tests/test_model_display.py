from __future__ import annotations

from types import SimpleNamespace

from model_reviews.pages.model_display.core_model_display import (
    _load_model_display_page,
    _submit_review,
    build_model_view,
    render_reviews,
)
from model_reviews.db import readonly_session_scope
from model_reviews.catalog import list_reviews

from conftest import GGUF_ID, REMOTE_ID

VIEWER = {"sub": "123", "email": "reviewer@example.com", "name": "Reviewer", "picture": ""}


def test_missing_model_renders_not_found_card(seeded):
    view = build_model_view("mistralai", "missing", viewer=None)

    assert view.found is False
    assert "Model not found" in view.detail_html
    assert view.model_id is None


def test_orphan_model_is_not_found(seeded):
    view = build_model_view("mistralai", "orphan", viewer=None)

    assert view.found is False


def test_author_name_and_link_render_once(seeded):
    view = build_model_view("mistralai", "mistral-7b", viewer=None)

    assert view.found is True
    assert view.detail_html.count("Mistral AI") == 1
    assert view.detail_html.count('href="/app/?author=mistralai"') == 1
    assert "01/02/2024" in view.detail_html


def test_badges_carry_tooltips(seeded):
    html = build_model_view("mistralai", "mistral-7b", viewer=None).detail_html

    assert 'title="Parameter count">7B</span>' in html
    assert 'title="Model type">mistral</span>' in html


def test_full_model_shows_details_score_and_try_it(seeded):
    html = build_model_view("mistralai", "mistral-7b", viewer=None).detail_html

    assert f'href="https://huggingface.co/{REMOTE_ID}"' in html
    assert "Model Details" in html
    assert "model-scores" in html
    assert "4.4" in html
    assert html.count("star-rating__star--filled") == 4
    assert "Try it" in html
    assert f'href="https://huggingface.co/{GGUF_ID}"' in html
    assert 'href="https://www.freechat.run/"' in html
    assert 'href="https://lmstudio.ai"' in html


def test_model_without_average_has_no_score_section(seeded):
    html = build_model_view("mistralai", "tiny-draft", viewer=None).detail_html

    assert "model-scores" not in html
    assert "star-rating" not in html
    assert "Try it" not in html
    assert "Model Details" not in html
    assert 'title="Parameter count">1.1B</span>' in html


def test_guest_sees_login_affordance(seeded):
    view = build_model_view("mistralai", "mistral-7b", viewer=None)

    assert view.can_review is False
    assert "Login to review" in view.review_gate_html
    assert "/auth/google?redirect_to=/models/mistralai/mistral-7b" in view.review_gate_html


def test_signed_in_viewer_gets_review_form(seeded):
    view = build_model_view("mistralai", "mistral-7b", viewer=VIEWER)

    assert view.can_review is True
    assert "Login to review" not in view.review_gate_html


def test_reviews_grid_and_empty_state(seeded):
    assert build_model_view("mistralai", "tiny-draft", viewer=None).reviews_html == (
        "<div class='reviews-empty'>No reviews yet</div>"
    )
    reviews_html = build_model_view("mistralai", "mistral-7b", viewer=None).reviews_html
    assert reviews_html.startswith("<div class='reviews-grid'>")
    assert reviews_html.count("review-card__text") == 2


def test_review_text_is_escaped():
    html = render_reviews([SimpleNamespace(text="<script>alert(1)</script>")])

    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_submit_review_requires_viewer(seeded):
    request = SimpleNamespace(session={})

    status, _, _ = _submit_review(seeded["unscored_model_id"], "Great", request)

    assert status == "Sign in to submit a review."


def test_submit_review_stores_review_for_viewer(seeded):
    request = SimpleNamespace(session={"user": VIEWER})

    status, _, _ = _submit_review(seeded["unscored_model_id"], "Great for drafts", request)

    assert status == "Review saved."
    with readonly_session_scope() as session:
        reviews = list_reviews(session, seeded["unscored_model_id"])
    assert [(review.text, review.author_email) for review in reviews] == [
        ("Great for drafts", "reviewer@example.com")
    ]


def test_submit_review_reports_blank_text(seeded):
    request = SimpleNamespace(session={"user": VIEWER})

    status, _, _ = _submit_review(seeded["unscored_model_id"], "  ", request)

    assert status.startswith("Could not save review")


def test_page_load_resolves_mixed_case_query_slugs(mixed_case_model):
    author_slug, model_slug = mixed_case_model
    request = SimpleNamespace(query_params={"author": author_slug, "model": model_slug}, session={})

    detail_html, *_rest = _load_model_display_page(request)

    assert "Model not found" not in detail_html
    assert "Mistral 7B GGUF" in detail_html
    assert 'href="/app/?author=TheBloke"' in detail_html
