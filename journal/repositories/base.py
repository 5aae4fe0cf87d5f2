"""
Base Repository

Generic repository pattern implementation for async SQLAlchemy operations.
Provides type-safe database access with consistent session handling.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from journal.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Generic repository providing the shared insert/lookup operations.

    All methods expect an externally managed session (injected via FastAPI
    dependency or opened by the enrichment store).

    Usage:
        class NoteRepository(BaseRepository[Note]):
            def __init__(self):
                super().__init__(Note)
    """

    def __init__(self, model: type[ModelType]):
        self.model = model

    async def create(self, session: AsyncSession, obj_in: Any) -> ModelType:
        """
        Create a new record.

        Args:
            session: Active database session.
            obj_in: Pydantic schema or dict with entity data.

        Returns:
            The created entity with database-generated fields populated.
        """
        data = obj_in.model_dump() if hasattr(obj_in, "model_dump") else obj_in
        db_obj = self.model(**data)
        session.add(db_obj)
        await session.commit()
        await session.refresh(db_obj)  # Load DB-generated fields (id, created_at)
        return db_obj

    async def get_many(
        self,
        session: AsyncSession,
        ids: Sequence[int],
    ) -> Sequence[ModelType]:
        """Get all records whose primary key is in ``ids``."""
        if not ids:
            return []
        result = await session.execute(
            select(self.model).where(self.model.id.in_(ids))  # type: ignore[attr-defined]
        )
        return result.scalars().all()
