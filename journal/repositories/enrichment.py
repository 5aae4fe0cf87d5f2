"""
Enrichment Repository

Data access for everything the enrichment pipeline reads or writes
around a note: embeddings (with pgvector search), AI metrics, summaries,
moods, persona profiles and session tokens.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from journal.core.errors import VectorSearchUnavailableError
from journal.models import (
    EMBEDDING_DIMENSION,
    AiMetricRecord,
    Mood,
    MoodRecord,
    Note,
    NoteAiMetric,
    NoteEmbedding,
    Summary,
    UserProfile,
    UserSession,
)

logger = logging.getLogger(__name__)


def _indexable(vector: Sequence[float]) -> bool:
    """Whether a vector can go into the pgvector column."""
    return len(vector) == EMBEDDING_DIMENSION and any(vector)


class EnrichmentRepository:
    """
    Repository for enrichment artefacts.

    All methods expect an externally managed ``AsyncSession``.

    Key guarantees:
        - ``upsert_embedding``: a single INSERT .. ON CONFLICT statement,
          so a note has at most one embedding row at any moment.
        - ``nearest_by_vector``: raises ``VectorSearchUnavailableError``
          instead of returning an empty list when pgvector search fails.
    """

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    async def upsert_embedding(
        self,
        session: AsyncSession,
        note_id: int,
        user_id: int | None,
        vector: list[float],
    ) -> None:
        """Insert or replace the embedding of ``note_id``."""
        vec = vector if _indexable(vector) else None
        stmt = insert(NoteEmbedding).values(
            note_id=note_id,
            user_id=user_id,
            embedding=vector,
            embedding_vec=vec,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[NoteEmbedding.note_id],
            set_={
                "user_id": stmt.excluded.user_id,
                "embedding": stmt.excluded.embedding,
                "embedding_vec": stmt.excluded.embedding_vec,
                "created_at": func.now(),
            },
        )
        await session.execute(stmt)
        await session.commit()
        logger.debug("Upserted embedding for note %d (indexed=%s)", note_id, vec is not None)

    async def get_recent_embeddings(
        self,
        session: AsyncSession,
        user_id: int,
        days: int = 5,
        limit_per_day: int = 20,
    ) -> Sequence[NoteEmbedding]:
        """
        Embeddings of ``user_id``'s notes written in the last ``days`` days.

        At most ``days * limit_per_day`` rows, newest first.
        """
        cutoff = datetime.now(UTC) - timedelta(days=days)
        stmt = (
            select(NoteEmbedding)
            .join(Note, Note.id == NoteEmbedding.note_id)
            .where(NoteEmbedding.user_id == user_id, Note.created_at >= cutoff)
            .order_by(NoteEmbedding.created_at.desc())
            .limit(days * limit_per_day)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def nearest_by_vector(
        self,
        session: AsyncSession,
        user_id: int,
        vector: list[float],
        limit: int = 5,
        exclude_note_id: int | None = None,
    ) -> list[tuple[int, float]]:
        """
        Nearest notes of ``user_id`` by pgvector cosine distance.

        Uses the HNSW index on ``note_embeddings.embedding_vec``.

        Returns:
            ``(note_id, distance)`` pairs, closest (smallest distance) first.

        Raises:
            VectorSearchUnavailableError: If the query vector cannot be
                searched or the database rejects the query (e.g. the
                ``vector`` extension is missing).
        """
        if not _indexable(vector):
            raise VectorSearchUnavailableError(
                f"query vector not searchable (dim={len(vector)}, zero={not any(vector)})"
            )

        distance = NoteEmbedding.embedding_vec.cosine_distance(vector).label("distance")
        stmt = (
            select(NoteEmbedding.note_id, distance)
            .where(
                NoteEmbedding.user_id == user_id,
                NoteEmbedding.embedding_vec.isnot(None),
            )
            .order_by(distance)
            .limit(limit)
        )
        if exclude_note_id is not None:
            stmt = stmt.where(NoteEmbedding.note_id != exclude_note_id)

        try:
            result = await session.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as e:
            raise VectorSearchUnavailableError(str(e)) from e

        return [(int(row[0]), float(row[1])) for row in rows]

    # ------------------------------------------------------------------
    # AI metrics and summaries
    # ------------------------------------------------------------------

    async def insert_ai_metric(
        self,
        session: AsyncSession,
        record: AiMetricRecord,
    ) -> NoteAiMetric:
        """Append one enrichment result row."""
        metric = NoteAiMetric(**record.model_dump())
        session.add(metric)
        await session.commit()
        await session.refresh(metric)
        return metric

    async def get_latest_ai_metric(
        self,
        session: AsyncSession,
        note_id: int,
    ) -> NoteAiMetric | None:
        """Most recent enrichment result for a note."""
        stmt = (
            select(NoteAiMetric)
            .where(NoteAiMetric.note_id == note_id)
            .order_by(NoteAiMetric.created_at.desc(), NoteAiMetric.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def insert_summary(
        self,
        session: AsyncSession,
        note_id: int,
        text: str,
    ) -> Summary:
        """Store a narrative summary for a note."""
        summary = Summary(note_id=note_id, ai_summary=text)
        session.add(summary)
        await session.commit()
        await session.refresh(summary)
        return summary

    async def get_latest_summary(
        self,
        session: AsyncSession,
        note_id: int,
    ) -> Summary | None:
        """Most recent narrative summary for a note."""
        stmt = (
            select(Summary)
            .where(Summary.note_id == note_id)
            .order_by(Summary.created_at.desc(), Summary.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    # ------------------------------------------------------------------
    # Moods, profiles, sessions
    # ------------------------------------------------------------------

    async def insert_mood(self, session: AsyncSession, record: MoodRecord) -> Mood:
        """Store a mood/productivity record."""
        mood = Mood(**record.model_dump())
        session.add(mood)
        await session.commit()
        await session.refresh(mood)
        return mood

    async def get_profile_preferences(
        self,
        session: AsyncSession,
        user_id: int,
    ) -> dict[str, Any] | None:
        """Persona preferences of ``user_id``, or None without a profile."""
        stmt = select(UserProfile.preferences).where(UserProfile.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_owner_for_token(
        self,
        session: AsyncSession,
        token: str,
    ) -> int | None:
        """User id behind an unexpired session token."""
        stmt = select(UserSession.user_id).where(
            UserSession.token == token,
            UserSession.expires_at > datetime.now(UTC),
        )
        result = await session.execute(stmt)
        return result.scalars().first()


# Module-level singleton for convenience imports
enrichment_repository = EnrichmentRepository()
