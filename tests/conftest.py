from __future__ import annotations

from datetime import datetime, timezone

import pytest

from model_reviews.db import build_engine, configure_engine, reset_engine, session_scope
from model_reviews.orm import Author, Base, HumanFeedback, Message, Model, Review, Tag

GGUF_ID = "TheBloke/Mistral-7B-Instruct-GGUF"
REMOTE_ID = "mistralai/Mistral-7B-Instruct-v0.2"
FEEDBACK_CREATED_AT = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    # A file, not :memory:, so the feedback page's worker threads share the data.
    engine = build_engine(f"sqlite:///{tmp_path / 'model_reviews.db'}", source="tests")
    Base.metadata.create_all(engine)
    configure_engine(engine)
    yield engine
    reset_engine()


@pytest.fixture
def seeded(engine):
    with session_scope() as session:
        author = Author(slug="mistralai", name="Mistral AI")
        scored = Model(
            author=author,
            name="Mistral 7B Instruct",
            slug="mistral-7b",
            arch="mistral",
            num_parameters=7.0,
            remote_id=REMOTE_ID,
            gguf_id=GGUF_ID,
            average=4.4,
            last_modified_date=datetime(2024, 1, 2, tzinfo=timezone.utc),
        )
        scored.reviews = [Review(text="Quick and sharp."), Review(text="Loses the plot on long prompts.")]
        unscored = Model(
            author=author,
            name="Tiny Draft",
            slug="tiny-draft",
            arch="llama",
            num_parameters=1.1,
            last_modified_date=datetime(2023, 11, 20, tzinfo=timezone.utc),
        )
        orphan = Model(name="Orphan", slug="orphan", arch="gpt2", num_parameters=0.1)
        helpful = Tag(name="helpful")
        session.add_all([author, scored, unscored, orphan, helpful])

        linked = HumanFeedback(
            id="fb-one",
            num_id=7,
            created_at=FEEDBACK_CREATED_AT,
            model=scored,
            quality=2,
            nsfw=True,
        )
        linked.messages = [
            Message(index=2, role="user", content="third"),
            Message(index=0, role="user", content="first"),
            Message(index=1, role="assistant", content="second"),
        ]
        linked.tags = [helpful]
        freeform = HumanFeedback(
            id="fb-two",
            num_id=8,
            created_at=FEEDBACK_CREATED_AT,
            model_name="freeform-q4",
        )
        freeform.messages = [Message(index=0, role="user", content="hello")]
        session.add_all([linked, freeform])
        session.flush()
        ids = {
            "scored_model_id": scored.id,
            "unscored_model_id": unscored.id,
            "orphan_model_id": orphan.id,
        }
    return ids


@pytest.fixture
def mixed_case_model(seeded):
    with session_scope() as session:
        author = Author(slug="TheBloke", name="TheBloke")
        session.add(
            Model(
                author=author,
                name="Mistral 7B GGUF",
                slug="Mistral-7B-GGUF",
                arch="mistral",
                num_parameters=7.0,
                gguf_id="TheBloke/Mistral-7B-GGUF",
            )
        )
    return ("TheBloke", "Mistral-7B-GGUF")
