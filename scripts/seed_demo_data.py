"""Insert a small demo dataset (authors, models, reviews, feedback samples).

Run after ``scripts/init_db.py`` against a local database:

    DATABASE_URL=sqlite:///model_reviews.db python scripts/seed_demo_data.py
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlalchemy import select  # noqa: E402

from model_reviews.db import session_scope  # noqa: E402
from model_reviews.orm import Author, HumanFeedback, Message, Model, Review, Tag  # noqa: E402

logger = logging.getLogger("seed_demo_data")

DEMO_AUTHORS = [
    ("mistralai", "Mistral AI"),
    ("meta-llama", "Meta Llama"),
    ("nousresearch", "Nous Research"),
]

DEMO_MODELS = [
    # author slug, name, slug, arch, params (B), remote id, gguf id, average
    ("mistralai", "Mistral 7B Instruct", "mistral-7b-instruct", "mistral", 7.0,
     "mistralai/Mistral-7B-Instruct-v0.2", "TheBloke/Mistral-7B-Instruct-v0.2-GGUF", 4.2),
    ("meta-llama", "Llama 2 13B Chat", "llama-2-13b-chat", "llama", 13.0,
     "meta-llama/Llama-2-13b-chat-hf", "TheBloke/Llama-2-13B-chat-GGUF", 3.6),
    ("nousresearch", "Hermes 2 Pro", "hermes-2-pro", "mistral", 7.0,
     "NousResearch/Hermes-2-Pro-Mistral-7B", None, None),
]

DEMO_REVIEWS = {
    "mistral-7b-instruct": [
        "Fast on a laptop and follows instructions well.",
        "Good at short summaries, weaker at long reasoning chains.",
    ],
    "llama-2-13b-chat": ["Refuses more often than I'd like, but answers are careful."],
}

DEMO_FEEDBACK = [
    (1, "mistral-7b-instruct", None, [
        ("user", "Write a haiku about local models."),
        ("assistant", "Weights on my own disk\nquiet fans hum through the night\nno cloud in the sky"),
    ]),
    (2, None, "some-finetune-q4", [
        ("user", "What is 17 * 23?"),
        ("assistant", "17 * 23 = 391."),
    ]),
]


def seed() -> None:
    now = datetime.now(timezone.utc)
    with session_scope() as session:
        if session.execute(select(Author.id).limit(1)).first() is not None:
            logger.info("Database already has authors; skipping demo seed")
            return

        authors = {slug: Author(slug=slug, name=name) for slug, name in DEMO_AUTHORS}
        session.add_all(authors.values())

        models = {}
        for offset, (author_slug, name, slug, arch, params, remote_id, gguf_id, average) in enumerate(DEMO_MODELS):
            model = Model(
                author=authors[author_slug],
                name=name,
                slug=slug,
                arch=arch,
                num_parameters=params,
                remote_id=remote_id,
                gguf_id=gguf_id,
                average=average,
                last_modified_date=now - timedelta(days=offset * 7),
            )
            model.reviews = [Review(text=text) for text in DEMO_REVIEWS.get(slug, [])]
            models[slug] = model
        session.add_all(models.values())

        session.add_all(Tag(name=name) for name in ("helpful", "concise"))

        for num_id, model_slug, model_name, turns in DEMO_FEEDBACK:
            feedback = HumanFeedback(
                num_id=num_id,
                created_at=now - timedelta(hours=num_id),
                model=models.get(model_slug) if model_slug else None,
                model_name=model_name,
            )
            feedback.messages = [
                Message(index=index, role=role, content=content)
                for index, (role, content) in enumerate(turns)
            ]
            session.add(feedback)

    logger.info(
        "Seeded %d authors, %d models, %d feedback samples",
        len(DEMO_AUTHORS),
        len(DEMO_MODELS),
        len(DEMO_FEEDBACK),
    )


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    seed()


if __name__ == "__main__":
    main()
