"""
Note API Schemas

Pydantic models for the note and AI endpoint request/response cycle.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


class NoteCreate(BaseModel):
    """Request body for POST /notes."""

    content: str = Field(
        ...,
        min_length=1,
        description="Free-text journal entry",
    )
    mood_score: int | None = Field(
        default=None,
        ge=1,
        le=10,
        description="Self-reported mood (1-10)",
    )
    productivity_score: int | None = Field(
        default=None,
        ge=1,
        le=10,
        description="Self-reported productivity (1-10)",
    )
    date: dt.date | None = Field(
        default=None,
        description="Journal day (YYYY-MM-DD), defaults to today (UTC)",
    )


class NoteRead(BaseModel):
    """Note representation returned to the client."""

    id: int
    content: str
    user_id: int | None = None
    created_at: dt.datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class SentimentRead(BaseModel):
    """Stored sentiment of a note."""

    polarity: str | None = None
    emotion: str | None = None
    confidence: float | None = None


class NoteInsights(BaseModel):
    """Latest enrichment result of a note."""

    note_id: int
    ai_mood_score: int | None = Field(default=None, description="Inferred mood (1-10)")
    ai_productivity_score: int | None = Field(
        default=None,
        description="Inferred productivity (1-10)",
    )
    sentiment: SentimentRead
    tags: list[str] | None = None
    summary: str | None = Field(default=None, description="Narrative AI summary")
    created_at: dt.datetime | None = Field(
        default=None,
        description="When the enrichment result was stored",
    )


class SummaryRequest(BaseModel):
    """Request body for on-demand summaries."""

    content: str = Field(..., min_length=1, max_length=20000)
    mood: int | None = Field(default=None, ge=1, le=10)
    productivity: int | None = Field(default=None, ge=1, le=10)


class SummaryResponse(BaseModel):
    """Generated summary."""

    summary: str
