"""
Journal Database Models

SQLAlchemy 2.0 ORM models for notes and their AI enrichment results.
Uses pgvector for nearest-neighbour search over note embeddings.

Tables:
    notes:            User-authored journal entries.
    note_embeddings:  One embedding per note (JSON copy + pgvector column).
    note_ai_metrics:  Append-only enrichment results per note.
    summaries:        Narrative AI summaries per note.
    moods:            Mood/productivity records (user-submitted or derived).
    user_profiles:    Per-user persona preferences (read-only here).
    sessions:         Opaque bearer tokens used to resolve the request owner.
"""

from __future__ import annotations

import datetime as dt
from typing import Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from journal.models.base import Base, CreatedAtMixin, TimestampMixin

# Output size of Gemini text-embedding-004
EMBEDDING_DIMENSION: int = 768


class Note(Base, CreatedAtMixin):
    """
    A single journal entry.

    Attributes:
        id: Primary key.
        content: Free text written by the user.
        user_id: Owner, NULL for anonymous notes (never enriched).
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id={self.user_id})>"


class NoteEmbedding(Base, CreatedAtMixin):
    """
    Embedding of a note's main chunk.

    ``note_id`` is unique: writes go through an INSERT .. ON CONFLICT upsert
    so a note never has more than one row.

    The JSONB ``embedding`` copy is always written and feeds the in-memory
    fallback ranking. ``embedding_vec`` is NULL for zero vectors (pgvector
    cosine distance against a zero vector is NaN) and for vectors whose size
    does not match the column.
    """

    __tablename__ = "note_embeddings"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    note_id: Mapped[int] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    embedding: Mapped[list[float]] = mapped_column(JSONB, nullable=False)
    embedding_vec: Mapped[list[float] | None] = mapped_column(
        Vector(EMBEDDING_DIMENSION),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<NoteEmbedding(note_id={self.note_id}, user_id={self.user_id})>"


class NoteAiMetric(Base, CreatedAtMixin):
    """
    Result of one enrichment run. Append-only; readers take the latest row.

    Attributes:
        ai_mood_score / ai_productivity_score: Integers in [1, 10] or NULL.
        sentiment_confidence: Float in [0, 1].
        tags: Lowercase keywords, NULL when the model produced none.
    """

    __tablename__ = "note_ai_metrics"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    note_id: Mapped[int] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    ai_mood_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ai_productivity_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sentiment_polarity: Mapped[str | None] = mapped_column(String(16), nullable=True)
    sentiment_emotion: Mapped[str | None] = mapped_column(String(16), nullable=True)
    sentiment_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)


class Summary(Base, CreatedAtMixin):
    """Narrative AI summary of a note."""

    __tablename__ = "summaries"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    note_id: Mapped[int] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ai_summary: Mapped[str] = mapped_column(Text, nullable=False)


class Mood(Base, CreatedAtMixin):
    """
    Daily mood/productivity record.

    Written by the note endpoint when the user supplies both scores, or by
    the enrichment pipeline when it inferred both on the user's behalf.
    """

    __tablename__ = "moods"

    id: Mapped[int] = mapped_column(primary_key=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    mood_score: Mapped[int] = mapped_column(Integer, nullable=False)
    productivity_score: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)


class UserProfile(Base, TimestampMixin):
    """Persona preferences used to steer prompts."""

    __tablename__ = "user_profiles"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    preferences: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )


class UserSession(Base, CreatedAtMixin):
    """Opaque bearer token issued by the auth service."""

    __tablename__ = "sessions"

    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    expires_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
