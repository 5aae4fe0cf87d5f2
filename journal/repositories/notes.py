"""
Note Repository

Data access layer for Note entities: creation, listing by day and the
owner-scoped recency queries used by the enrichment pipeline.
"""

from collections.abc import Sequence
from datetime import UTC, date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from journal.models import Note, NoteAiMetric
from journal.repositories.base import BaseRepository


class NoteRepository(BaseRepository[Note]):
    """Repository for Note entities."""

    def __init__(self) -> None:
        super().__init__(Note)

    async def list_by_date(
        self,
        session: AsyncSession,
        day: date,
        user_id: int | None,
    ) -> Sequence[Note]:
        """Notes written on ``day`` by ``user_id`` (anonymous notes when None), newest first."""
        owner_clause = Note.user_id.is_(None) if user_id is None else Note.user_id == user_id
        stmt = (
            select(Note)
            .where(func.date(Note.created_at) == day, owner_clause)
            .order_by(Note.created_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_by_owner_since(
        self,
        session: AsyncSession,
        user_id: int,
        days: int,
    ) -> Sequence[Note]:
        """Notes by ``user_id`` created in the last ``days`` days, newest first."""
        cutoff = datetime.now(UTC) - timedelta(days=days)
        stmt = (
            select(Note)
            .where(Note.user_id == user_id, Note.created_at >= cutoff)
            .order_by(Note.created_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_owned_without_metrics(
        self,
        session: AsyncSession,
        limit: int = 100,
    ) -> Sequence[Note]:
        """Owned notes that have never been enriched, oldest first (backfill)."""
        enriched = select(NoteAiMetric.note_id)
        stmt = (
            select(Note)
            .where(Note.user_id.isnot(None), Note.id.not_in(enriched))
            .order_by(Note.created_at)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


# Module-level instance for convenience imports
note_repository = NoteRepository()
