"""
Journal Store

The persistent-store collaborator used by the enrichment pipeline and the API.

``JournalStore`` is the contract; ``SqlJournalStore`` implements it on
top of the repositories. Every method opens its own short-lived session
from the factory, because the pipeline runs several store calls
concurrently with ``asyncio.gather`` and an ``AsyncSession`` must not be
shared between concurrent operations.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from journal.models import (
    AiMetricRecord,
    CachedEmbedding,
    MoodRecord,
    Note,
    NoteEmbedding,
    NoteSnapshot,
    StoredAiMetric,
)
from journal.repositories import EnrichmentRepository, NoteRepository

logger = logging.getLogger(__name__)


class JournalStore(Protocol):
    """Persistence operations used by the enrichment pipeline and the API."""

    async def insert_note(self, content: str, owner_id: int | None) -> NoteSnapshot: ...

    async def get_notes_by_owner_since(
        self, owner_id: int, days: int
    ) -> list[NoteSnapshot]: ...

    async def get_notes_by_ids(self, note_ids: Sequence[int]) -> list[NoteSnapshot]: ...

    async def get_recent_embeddings(
        self, owner_id: int, days: int, limit_per_day: int
    ) -> list[CachedEmbedding]: ...

    async def upsert_embedding(
        self, note_id: int, owner_id: int | None, vector: list[float]
    ) -> None: ...

    async def nearest_by_vector(
        self,
        owner_id: int,
        vector: list[float],
        k: int,
        exclude_note_id: int | None = None,
    ) -> list[tuple[int, float]]: ...

    async def insert_ai_metric(self, record: AiMetricRecord) -> None: ...

    async def insert_summary(self, note_id: int, text: str) -> None: ...

    async def insert_mood_entry(self, record: MoodRecord) -> None: ...

    async def get_user_profile(self, owner_id: int) -> dict[str, Any] | None: ...

    async def get_notes_by_date(
        self, owner_id: int | None, day: date
    ) -> list[NoteSnapshot]: ...

    async def get_latest_ai_metric(self, note_id: int) -> StoredAiMetric | None: ...

    async def get_latest_summary(self, note_id: int) -> str | None: ...


def _snapshot(note: Note) -> NoteSnapshot:
    return NoteSnapshot(
        id=note.id,
        content=note.content,
        user_id=note.user_id,
        created_at=note.created_at,
    )


def _cached(row: NoteEmbedding) -> CachedEmbedding:
    try:
        vector = [float(v) for v in row.embedding]
    except (TypeError, ValueError):
        logger.warning("Malformed stored embedding for note %d", row.note_id)
        vector = []
    return CachedEmbedding(note_id=row.note_id, vector=vector, created_at=row.created_at)


class SqlJournalStore:
    """
    ``JournalStore`` backed by PostgreSQL through SQLAlchemy.

    Usage::

        store = SqlJournalStore(get_session_factory())
        notes = await store.get_notes_by_owner_since(42, days=5)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notes: NoteRepository | None = None,
        enrichment: EnrichmentRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._notes = notes or NoteRepository()
        self._enrichment = enrichment or EnrichmentRepository()

    async def insert_note(self, content: str, owner_id: int | None) -> NoteSnapshot:
        async with self._session_factory() as session:
            note = await self._notes.create(
                session, {"content": content, "user_id": owner_id}
            )
        return _snapshot(note)

    async def get_notes_by_owner_since(
        self,
        owner_id: int,
        days: int,
    ) -> list[NoteSnapshot]:
        async with self._session_factory() as session:
            notes = await self._notes.list_by_owner_since(session, owner_id, days)
        return [_snapshot(n) for n in notes]

    async def get_notes_by_ids(self, note_ids: Sequence[int]) -> list[NoteSnapshot]:
        async with self._session_factory() as session:
            notes = await self._notes.get_many(session, note_ids)
        return [_snapshot(n) for n in notes]

    async def get_recent_embeddings(
        self,
        owner_id: int,
        days: int,
        limit_per_day: int,
    ) -> list[CachedEmbedding]:
        async with self._session_factory() as session:
            rows = await self._enrichment.get_recent_embeddings(
                session, owner_id, days, limit_per_day
            )
        return [_cached(r) for r in rows]

    async def upsert_embedding(
        self,
        note_id: int,
        owner_id: int | None,
        vector: list[float],
    ) -> None:
        async with self._session_factory() as session:
            await self._enrichment.upsert_embedding(session, note_id, owner_id, vector)

    async def nearest_by_vector(
        self,
        owner_id: int,
        vector: list[float],
        k: int,
        exclude_note_id: int | None = None,
    ) -> list[tuple[int, float]]:
        async with self._session_factory() as session:
            return await self._enrichment.nearest_by_vector(
                session, owner_id, vector, k, exclude_note_id
            )

    async def insert_ai_metric(self, record: AiMetricRecord) -> None:
        async with self._session_factory() as session:
            await self._enrichment.insert_ai_metric(session, record)

    async def insert_summary(self, note_id: int, text: str) -> None:
        async with self._session_factory() as session:
            await self._enrichment.insert_summary(session, note_id, text)

    async def insert_mood_entry(self, record: MoodRecord) -> None:
        async with self._session_factory() as session:
            await self._enrichment.insert_mood(session, record)

    async def get_user_profile(self, owner_id: int) -> dict[str, Any] | None:
        async with self._session_factory() as session:
            return await self._enrichment.get_profile_preferences(session, owner_id)

    async def get_notes_by_date(
        self,
        owner_id: int | None,
        day: date,
    ) -> list[NoteSnapshot]:
        async with self._session_factory() as session:
            notes = await self._notes.list_by_date(session, day, owner_id)
        return [_snapshot(n) for n in notes]

    async def get_latest_ai_metric(self, note_id: int) -> StoredAiMetric | None:
        async with self._session_factory() as session:
            metric = await self._enrichment.get_latest_ai_metric(session, note_id)
        return StoredAiMetric.model_validate(metric) if metric is not None else None

    async def get_latest_summary(self, note_id: int) -> str | None:
        async with self._session_factory() as session:
            summary = await self._enrichment.get_latest_summary(session, note_id)
        return summary.ai_summary if summary is not None else None
