"""
Enrichment Domain Schemas

Pydantic models for the data flowing through the enrichment pipeline.
None of these are persisted directly; the store maps them onto ORM rows.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Polarity = Literal["positive", "neutral", "negative"]
Emotion = Literal["joyful", "stressed", "sad", "angry", "calm", "neutral"]
Metric = Literal["distance", "similarity"]


class SentimentHint(BaseModel):
    """Coarse sentiment of a piece of text."""

    polarity: Polarity
    emotion: Emotion
    confidence: float = Field(ge=0.0, le=1.0)


class NoteSnapshot(BaseModel):
    """Read-only view of a stored note."""

    id: int
    content: str
    user_id: int | None = None
    created_at: dt.datetime | None = None


class CachedEmbedding(BaseModel):
    """A stored note embedding as loaded for in-memory ranking."""

    note_id: int
    vector: list[float]
    created_at: dt.datetime | None = None


class Neighbor(BaseModel):
    """
    A note retrieved as similar to the one being enriched.

    ``score`` is a cosine distance (lower = closer) when ``metric`` is
    ``"distance"`` and a cosine similarity (higher = closer) when it is
    ``"similarity"``. The two are never compared with each other.
    """

    note_id: int
    score: float
    metric: Metric


class ScoreParse(BaseModel):
    """Mood/productivity values found in free model text."""

    mood: int | None = None
    productivity: int | None = None


class ExtractedMetadata(BaseModel):
    """Structured metadata returned by the extraction call."""

    mood: int | None = Field(default=None, ge=1, le=10)
    productivity: int | None = Field(default=None, ge=1, le=10)
    tags: list[str] | None = None
    sentiment: SentimentHint | None = None


class EnrichmentRequest(BaseModel):
    """Everything the pipeline needs about a freshly stored note."""

    note_id: int
    owner_id: int
    content: str
    mood: int | None = None
    productivity: int | None = None
    date: dt.date


class AiMetricRecord(BaseModel):
    """Values written to ``note_ai_metrics`` for one run."""

    note_id: int
    user_id: int | None
    ai_mood_score: int | None = Field(default=None, ge=1, le=10)
    ai_productivity_score: int | None = Field(default=None, ge=1, le=10)
    sentiment_polarity: Polarity | None = None
    sentiment_emotion: Emotion | None = None
    sentiment_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    tags: list[str] | None = None


class MoodRecord(BaseModel):
    """Values written to ``moods``."""

    date: dt.date
    mood_score: int = Field(ge=1, le=10)
    productivity_score: int = Field(ge=1, le=10)
    user_id: int | None = None


class EnrichmentOutcome(BaseModel):
    """Summary of a completed pipeline run (for logs, scripts and tests)."""

    note_id: int
    metric: AiMetricRecord
    summary: str | None = None
    neighbors: list[Neighbor] = Field(default_factory=list)
    used_fallback_retrieval: bool = False
    derived_mood: bool = False
    persona: dict[str, Any] | None = None


class StoredAiMetric(AiMetricRecord):
    """A ``note_ai_metrics`` row as read back from the store."""

    id: int
    created_at: dt.datetime | None = None

    model_config = ConfigDict(from_attributes=True)
