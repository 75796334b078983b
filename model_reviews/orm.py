"""SQLAlchemy ORM models for the model reviews site.

Authors, models and reviews are written by the ingestion pipeline and the
review form. Human feedback samples arrive from the chat clients; only their
``quality``, ``tags`` and ``nsfw`` columns are edited here, through the label
panel.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_feedback_id() -> str:
    return uuid4().hex


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


human_feedback_tags = Table(
    "human_feedback_tags",
    Base.metadata,
    Column(
        "human_feedback_id",
        String(64),
        ForeignKey("human_feedback.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Author(Base):
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))

    models: Mapped[List["Model"]] = relationship(back_populates="author")


class Model(Base):
    """A published model listing.

    ``author_id`` is nullable: rows ingested ahead of their author are kept and
    treated as not found by the detail page.
    """

    __tablename__ = "models"
    __table_args__ = (UniqueConstraint("author_id", "slug", name="uq_models_author_slug"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("authors.id", ondelete="SET NULL"), nullable=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255), index=True)
    arch: Mapped[str] = mapped_column(String(64), default="")
    num_parameters: Mapped[float] = mapped_column(Float, default=0.0)
    remote_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    gguf_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    average: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    last_modified_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    author: Mapped[Optional[Author]] = relationship(back_populates="models")
    reviews: Mapped[List["Review"]] = relationship(
        back_populates="model",
        order_by="Review.id",
        cascade="all, delete-orphan",
    )


class Review(Base):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model_id: Mapped[int] = mapped_column(ForeignKey("models.id", ondelete="CASCADE"), index=True)
    text: Mapped[str] = mapped_column(Text)
    author_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    model: Mapped[Model] = relationship(back_populates="reviews")


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, index=True)


class HumanFeedback(Base):
    __tablename__ = "human_feedback"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_feedback_id)
    num_id: Mapped[int] = mapped_column(Integer, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    model_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("models.id", ondelete="SET NULL"), nullable=True, index=True
    )
    model_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    quality: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    nsfw: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    model: Mapped[Optional[Model]] = relationship()
    messages: Mapped[List["Message"]] = relationship(
        back_populates="human_feedback",
        cascade="all, delete-orphan",
    )
    tags: Mapped[List[Tag]] = relationship(secondary=human_feedback_tags)


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    human_feedback_id: Mapped[str] = mapped_column(
        ForeignKey("human_feedback.id", ondelete="CASCADE"), index=True
    )
    index: Mapped[int] = mapped_column(Integer)
    role: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    content: Mapped[str] = mapped_column(Text, default="")

    human_feedback: Mapped[HumanFeedback] = relationship(back_populates="messages")
