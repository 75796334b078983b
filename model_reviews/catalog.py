"""Read/write helpers for models, reviews and human feedback samples.

Every function takes an open SQLAlchemy session; callers own the unit of work
(``session_scope`` for writes, ``readonly_session_scope`` for page loads).
Relations needed for rendering are eager-loaded here because pages render after
the session is closed.
"""

from __future__ import annotations

import contextvars
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from operator import attrgetter
from typing import Callable, ContextManager, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, contains_eager, joinedload, selectinload

from model_reviews.db import readonly_session_scope
from model_reviews.orm import Author, HumanFeedback, Message, Model, Review, Tag

logger = logging.getLogger(__name__)

QUALITY_MIN = 1
QUALITY_MAX = 5
MAX_REVIEW_CHARS = 4000
DEFAULT_SUGGESTED_TAGS: Tuple[str, ...] = (
    "helpful",
    "concise",
    "creative",
    "factual",
    "roleplay",
    "coding",
    "refusal",
    "hallucination",
)
_TAG_WHITESPACE_RE = re.compile(r"\s+")

SessionScopeFactory = Callable[[], ContextManager[Session]]


class NotFound(LookupError):
    """No record matched the requested slug or id."""


class LabelValidationError(ValueError):
    """Label form values that cannot be stored."""


@dataclass(frozen=True)
class LoadedModel:
    """A model together with its resolved author.

    ``author`` is never ``None``; a model without an author is reported as
    ``NotFound`` by ``load_model`` instead of being returned.
    """

    model: Model
    author: Author


@dataclass(frozen=True)
class FeedbackPage:
    feedback: HumanFeedback
    messages: List[Message]
    total_count: int


@dataclass(frozen=True)
class LabelUpdate:
    quality: Optional[int]
    tags: Tuple[str, ...]
    nsfw: bool


@dataclass(frozen=True)
class TagDiff:
    added: Tuple[str, ...]
    removed: Tuple[str, ...]


def load_model(session: Session, model_slug: str, author_slug: str) -> LoadedModel:
    stmt = (
        select(Model)
        .join(Model.author)
        .where(Model.slug == model_slug, Author.slug == author_slug)
        .options(contains_eager(Model.author), selectinload(Model.reviews))
        .order_by(Model.id)
        .limit(1)
    )
    model = session.execute(stmt).scalars().first()
    if model is None:
        raise NotFound(f"No model {author_slug}/{model_slug}")
    author = model.author
    if author is None:
        raise NotFound(f"Model {author_slug}/{model_slug} has no author")
    return LoadedModel(model=model, author=author)


def list_models(session: Session, author_slug: str = "") -> List[Model]:
    stmt = (
        select(Model)
        .join(Model.author)
        .options(contains_eager(Model.author))
        .order_by(Model.last_modified_date.desc(), Model.id)
    )
    if author_slug:
        stmt = stmt.where(Author.slug == author_slug)
    return list(session.execute(stmt).scalars().all())


def add_review(session: Session, model_id: int, text: str, author_email: str | None = None) -> Review:
    body = (text or "").strip()
    if not body:
        raise ValueError("Review text is empty.")
    if len(body) > MAX_REVIEW_CHARS:
        raise ValueError(f"Review is longer than {MAX_REVIEW_CHARS} characters.")
    if session.get(Model, model_id) is None:
        raise NotFound(f"No model with id {model_id}")
    review = Review(model_id=model_id, text=body, author_email=(author_email or None))
    session.add(review)
    session.flush()
    logger.info("Stored review id=%s model_id=%s", review.id, model_id)
    return review


def list_reviews(session: Session, model_id: int) -> List[Review]:
    stmt = select(Review).where(Review.model_id == model_id).order_by(Review.id)
    return list(session.execute(stmt).scalars().all())


def _feedback_query():
    return select(HumanFeedback).options(
        selectinload(HumanFeedback.messages),
        selectinload(HumanFeedback.tags),
        joinedload(HumanFeedback.model).joinedload(Model.author),
    )


def load_human_feedback(session: Session, feedback_id: str) -> HumanFeedback:
    """Fetch one sample by its string id, or by ``num_id`` for all-digit ids."""
    key = str(feedback_id or "").strip()
    if not key:
        raise NotFound("Empty human feedback id")
    feedback = session.execute(_feedback_query().where(HumanFeedback.id == key)).unique().scalar_one_or_none()
    if feedback is None and key.isdigit():
        feedback = session.execute(
            _feedback_query().where(HumanFeedback.num_id == int(key))
        ).unique().scalar_one_or_none()
    if feedback is None:
        raise NotFound(f"No human feedback {key}")
    return feedback


def count_human_feedback(session: Session) -> int:
    return int(session.execute(select(func.count()).select_from(HumanFeedback)).scalar_one())


def list_recent_feedback(session: Session, limit: int = 25) -> List[HumanFeedback]:
    stmt = (
        select(HumanFeedback)
        .options(joinedload(HumanFeedback.model).joinedload(Model.author))
        .order_by(HumanFeedback.created_at.desc(), HumanFeedback.num_id.desc())
        .limit(limit)
    )
    return list(session.execute(stmt).unique().scalars().all())


def sort_messages(messages: Iterable[Message]) -> List[Message]:
    # sorted() is stable: equal indices keep their input order.
    return sorted(messages, key=attrgetter("index"))


def load_feedback_page(
    feedback_id: str,
    scope_factory: SessionScopeFactory = readonly_session_scope,
) -> FeedbackPage:
    """Load a sample and the total sample count concurrently, each on its own session."""

    def _load_record() -> HumanFeedback:
        with scope_factory() as session:
            return load_human_feedback(session, feedback_id)

    def _load_count() -> int:
        with scope_factory() as session:
            return count_human_feedback(session)

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="feedback-page") as pool:
        record_future = pool.submit(contextvars.copy_context().run, _load_record)
        count_future = pool.submit(contextvars.copy_context().run, _load_count)
        feedback = record_future.result()
        total_count = count_future.result()

    return FeedbackPage(
        feedback=feedback,
        messages=sort_messages(feedback.messages),
        total_count=total_count,
    )


def normalize_tag_names(raw_tags: Iterable[object] | str | None) -> Tuple[str, ...]:
    if raw_tags is None:
        return ()
    if isinstance(raw_tags, str):
        raw_tags = raw_tags.split(",")
    names: List[str] = []
    seen: set[str] = set()
    for raw in raw_tags:
        name = _TAG_WHITESPACE_RE.sub(" ", str(raw or "")).strip()
        if not name or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return tuple(names)


def parse_quality(raw_value: object) -> Optional[int]:
    if raw_value is None or (isinstance(raw_value, str) and not raw_value.strip()):
        return None
    try:
        quality = int(raw_value)
    except (TypeError, ValueError) as exc:
        raise LabelValidationError(f"Quality must be a whole number, got {raw_value!r}.") from exc
    if not QUALITY_MIN <= quality <= QUALITY_MAX:
        raise LabelValidationError(f"Quality must be between {QUALITY_MIN} and {QUALITY_MAX}.")
    return quality


def build_label_update(quality: object, tags: Iterable[object] | str | None, nsfw: object) -> LabelUpdate:
    return LabelUpdate(
        quality=parse_quality(quality),
        tags=normalize_tag_names(tags),
        nsfw=bool(nsfw),
    )


def update_labels(session: Session, feedback_id: str, update: LabelUpdate) -> TagDiff:
    """Overwrite quality and nsfw, and move the tag set to ``update.tags``.

    Tags are reconciled against the stored set: only missing tags are attached
    and only unwanted ones detached, so resubmitting the same form is a no-op.
    """
    feedback = session.execute(
        select(HumanFeedback)
        .options(selectinload(HumanFeedback.tags))
        .where(HumanFeedback.id == feedback_id)
    ).scalar_one_or_none()
    if feedback is None:
        raise NotFound(f"No human feedback {feedback_id}")

    wanted = list(normalize_tag_names(update.tags))
    wanted_set = set(wanted)
    current = {tag.name: tag for tag in feedback.tags}

    removed = [tag for name, tag in current.items() if name not in wanted_set]
    missing_names = [name for name in wanted if name not in current]

    existing: dict[str, Tag] = {}
    if missing_names:
        existing = {
            tag.name: tag
            for tag in session.execute(select(Tag).where(Tag.name.in_(missing_names))).scalars()
        }
    for tag in removed:
        feedback.tags.remove(tag)
    for name in missing_names:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name)
            session.add(tag)
        feedback.tags.append(tag)

    feedback.quality = update.quality
    feedback.nsfw = update.nsfw
    session.flush()

    diff = TagDiff(added=tuple(missing_names), removed=tuple(tag.name for tag in removed))
    logger.info(
        "Labeled human feedback id=%s quality=%s nsfw=%s added_tags=%s removed_tags=%s",
        feedback_id,
        update.quality,
        update.nsfw,
        ",".join(diff.added) or "-",
        ",".join(diff.removed) or "-",
    )
    return diff


def _configured_tag_suggestions() -> Tuple[str, ...]:
    raw = os.getenv("MODEL_REVIEWS_LABEL_TAGS")
    if raw is None:
        return DEFAULT_SUGGESTED_TAGS
    return normalize_tag_names(raw)


def fetch_tag_catalog(session: Session, extra: Sequence[str] | None = None) -> List[str]:
    stored = session.execute(select(Tag.name).order_by(Tag.name)).scalars().all()
    suggestions = extra if extra is not None else _configured_tag_suggestions()
    return list(normalize_tag_names([*suggestions, *stored]))
