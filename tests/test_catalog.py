from __future__ import annotations

import pytest
from sqlalchemy import select

from model_reviews.catalog import (
    LabelUpdate,
    LabelValidationError,
    NotFound,
    add_review,
    build_label_update,
    fetch_tag_catalog,
    list_models,
    list_recent_feedback,
    load_feedback_page,
    load_human_feedback,
    load_model,
    normalize_tag_names,
    sort_messages,
    update_labels,
)
from model_reviews.db import readonly_session_scope, session_scope
from model_reviews.orm import HumanFeedback, Message, Tag


def test_load_model_returns_model_with_author_and_reviews(seeded):
    with readonly_session_scope() as session:
        loaded = load_model(session, "mistral-7b", "mistralai")

    assert loaded.author.name == "Mistral AI"
    assert loaded.model.slug == "mistral-7b"
    assert [review.text for review in loaded.model.reviews] == [
        "Quick and sharp.",
        "Loses the plot on long prompts.",
    ]


@pytest.mark.parametrize(
    ("model_slug", "author_slug"),
    [
        ("missing", "mistralai"),
        ("mistral-7b", "someone-else"),
        ("orphan", "mistralai"),
        ("", ""),
    ],
)
def test_load_model_not_found(seeded, model_slug, author_slug):
    with readonly_session_scope() as session:
        with pytest.raises(NotFound):
            load_model(session, model_slug, author_slug)


def test_list_models_skips_orphans_and_filters_by_author(seeded):
    with readonly_session_scope() as session:
        everything = list_models(session)
        by_author = list_models(session, "mistralai")
        nobody = list_models(session, "nobody")

    assert [model.slug for model in everything] == ["mistral-7b", "tiny-draft"]
    assert [model.slug for model in by_author] == ["mistral-7b", "tiny-draft"]
    assert nobody == []


def test_add_review_strips_and_stores(seeded):
    with session_scope() as session:
        review = add_review(session, seeded["unscored_model_id"], "  Small but useful.  ", author_email="a@example.com")
        review_id = review.id

    with readonly_session_scope() as session:
        loaded = load_model(session, "tiny-draft", "mistralai")
    assert [(r.id, r.text, r.author_email) for r in loaded.model.reviews] == [
        (review_id, "Small but useful.", "a@example.com")
    ]


def test_add_review_rejects_blank_text(seeded):
    with session_scope() as session:
        with pytest.raises(ValueError):
            add_review(session, seeded["unscored_model_id"], "   ")


def test_add_review_unknown_model(seeded):
    with session_scope() as session:
        with pytest.raises(NotFound):
            add_review(session, 9999, "Nice")


def test_load_human_feedback_by_string_id_and_num_id(seeded):
    with readonly_session_scope() as session:
        by_id = load_human_feedback(session, "fb-one")
        by_num = load_human_feedback(session, "7")
        with pytest.raises(NotFound):
            load_human_feedback(session, "404")
        with pytest.raises(NotFound):
            load_human_feedback(session, "")

    assert by_id.id == by_num.id == "fb-one"
    assert by_id.model.author.slug == "mistralai"


def test_load_feedback_page_sorts_messages_and_counts(seeded):
    page = load_feedback_page("fb-one")

    assert page.feedback.num_id == 7
    assert [message.content for message in page.messages] == ["first", "second", "third"]
    assert page.total_count == 2


def test_load_feedback_page_missing_record(seeded):
    with pytest.raises(NotFound):
        load_feedback_page("does-not-exist")


def test_sort_messages_is_stable_for_equal_indices():
    messages = [
        Message(index=3, content="d"),
        Message(index=1, content="b1"),
        Message(index=0, content="a"),
        Message(index=1, content="b2"),
        Message(index=7, content="gap"),
        Message(index=1, content="b3"),
    ]

    ordered = sort_messages(messages)

    assert [message.content for message in ordered] == ["a", "b1", "b2", "b3", "d", "gap"]
    assert [message.content for message in messages][0] == "d"


def test_list_recent_feedback_newest_first(seeded):
    with readonly_session_scope() as session:
        recent = list_recent_feedback(session, limit=5)

    assert [sample.num_id for sample in recent] == [8, 7]


def test_normalize_tag_names():
    assert normalize_tag_names(" Helpful , helpful,, concise ,Code   review , concise") == (
        "Helpful",
        "helpful",
        "concise",
        "Code review",
    )
    assert normalize_tag_names(None) == ()
    assert normalize_tag_names(["", None, "nsfw"]) == ("nsfw",)


@pytest.mark.parametrize("quality", [0, 6, "seven", 2.5j])
def test_build_label_update_rejects_bad_quality(quality):
    with pytest.raises(LabelValidationError):
        build_label_update(quality, [], False)


def test_build_label_update_normalizes_inputs():
    assert build_label_update("4", [" Helpful ", "Helpful"], None) == LabelUpdate(4, ("Helpful",), False)
    assert build_label_update("", [], 1) == LabelUpdate(None, (), True)


def test_update_labels_diffs_tags_and_touches_only_label_fields(seeded):
    with session_scope() as session:
        diff = update_labels(session, "fb-one", LabelUpdate(4, ("concise", "creative"), False))

    assert diff.added == ("concise", "creative")
    assert diff.removed == ("helpful",)

    with readonly_session_scope() as session:
        feedback = load_human_feedback(session, "fb-one")
        tag_names = set(session.execute(select(Tag.name)).scalars())

    assert feedback.quality == 4
    assert feedback.nsfw is False
    assert sorted(tag.name for tag in feedback.tags) == ["concise", "creative"]
    assert feedback.num_id == 7
    assert feedback.model_name is None
    assert len(feedback.messages) == 3
    # Detached tags stay in the catalog.
    assert tag_names == {"helpful", "concise", "creative"}


def test_update_labels_is_idempotent(seeded):
    update = LabelUpdate(5, ("helpful", "concise"), True)
    with session_scope() as session:
        first = update_labels(session, "fb-one", update)
    with session_scope() as session:
        second = update_labels(session, "fb-one", update)

    assert first.added == ("concise",)
    assert first.removed == ()
    assert second.added == ()
    assert second.removed == ()


def test_update_labels_unknown_id(seeded):
    with session_scope() as session:
        with pytest.raises(NotFound):
            update_labels(session, "nope", LabelUpdate(None, (), False))


def test_fetch_tag_catalog_merges_suggestions_and_stored(seeded):
    with readonly_session_scope() as session:
        catalog = fetch_tag_catalog(session, extra=["Coding", "helpful"])

    assert catalog == ["Coding", "helpful"]


def test_fetch_tag_catalog_reads_configured_suggestions(seeded, monkeypatch):
    monkeypatch.setenv("MODEL_REVIEWS_LABEL_TAGS", "roleplay, refusal")
    with readonly_session_scope() as session:
        catalog = fetch_tag_catalog(session)

    assert catalog == ["roleplay", "refusal", "helpful"]


def test_feedback_row_defaults(engine):
    with session_scope() as session:
        feedback = HumanFeedback(num_id=1)
        session.add(feedback)
        session.flush()
        generated_id = feedback.id

    assert len(generated_id) == 32


def test_update_labels_keeps_stored_tag_case(seeded):
    with session_scope() as session:
        feedback = load_human_feedback(session, "fb-two")
        feedback.tags.append(Tag(name="Code Review"))

    update = LabelUpdate(3, ("Code Review",), False)
    with session_scope() as session:
        diff = update_labels(session, "fb-two", update)

    assert diff.added == ()
    assert diff.removed == ()
    with readonly_session_scope() as session:
        feedback = load_human_feedback(session, "fb-two")
        tag_names = sorted(session.execute(select(Tag.name)).scalars())
    assert [tag.name for tag in feedback.tags] == ["Code Review"]
    assert tag_names == ["Code Review", "helpful"]
