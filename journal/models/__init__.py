"""Models package: SQLAlchemy ORM and enrichment domain schemas."""

from journal.models.base import Base, CreatedAtMixin, TimestampMixin
from journal.models.orm import (
    EMBEDDING_DIMENSION,
    Mood,
    Note,
    NoteAiMetric,
    NoteEmbedding,
    Summary,
    UserProfile,
    UserSession,
)
from journal.models.schemas import (
    AiMetricRecord,
    CachedEmbedding,
    EnrichmentOutcome,
    EnrichmentRequest,
    ExtractedMetadata,
    MoodRecord,
    Neighbor,
    NoteSnapshot,
    ScoreParse,
    SentimentHint,
    StoredAiMetric,
)

__all__ = [
    # SQLAlchemy ORM (persistence layer)
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "EMBEDDING_DIMENSION",
    "Mood",
    "Note",
    "NoteAiMetric",
    "NoteEmbedding",
    "Summary",
    "UserProfile",
    "UserSession",
    # Pydantic schemas (enrichment pipeline)
    "AiMetricRecord",
    "CachedEmbedding",
    "EnrichmentOutcome",
    "EnrichmentRequest",
    "ExtractedMetadata",
    "MoodRecord",
    "Neighbor",
    "NoteSnapshot",
    "ScoreParse",
    "SentimentHint",
    "StoredAiMetric",
]
