"""
Notes API Router

Journal entry endpoints. Creating a note stores it, records the
self-reported mood when both scores are given, and schedules AI
enrichment as a background task that runs after the response is sent.
"""

from __future__ import annotations

import datetime as dt
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from journal.api.deps import get_current_owner, get_pipeline, get_store
from journal.models import EnrichmentRequest, MoodRecord
from journal.schemas.notes import NoteCreate, NoteInsights, NoteRead, SentimentRead
from journal.services.enrichment import EnrichmentPipeline
from journal.services.store import JournalStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", response_model=NoteRead, status_code=status.HTTP_201_CREATED)
async def create_note(
    note: NoteCreate,
    background_tasks: BackgroundTasks,
    store: JournalStore = Depends(get_store),
    pipeline: EnrichmentPipeline | None = Depends(get_pipeline),
    owner_id: int | None = Depends(get_current_owner),
) -> NoteRead:
    """
    Create a journal entry.

    Enrichment only runs for authenticated owners and when the AI
    clients are configured. Its outcome never affects this response.
    """
    day = note.date or dt.datetime.now(dt.UTC).date()
    stored = await store.insert_note(note.content, owner_id)

    if note.mood_score is not None and note.productivity_score is not None:
        await store.insert_mood_entry(
            MoodRecord(
                date=day,
                mood_score=note.mood_score,
                productivity_score=note.productivity_score,
                user_id=owner_id,
            )
        )

    if owner_id is None:
        logger.debug("Note %d is anonymous, enrichment skipped", stored.id)
    elif pipeline is None:
        logger.debug("AI not configured, enrichment skipped for note %d", stored.id)
    else:
        background_tasks.add_task(
            pipeline.run,
            EnrichmentRequest(
                note_id=stored.id,
                owner_id=owner_id,
                content=note.content,
                mood=note.mood_score,
                productivity=note.productivity_score,
                date=day,
            ),
        )

    return NoteRead.model_validate(stored.model_dump())


@router.get("/", response_model=list[NoteRead])
async def read_notes(
    date: dt.date = Query(..., description="Journal day (YYYY-MM-DD)"),
    store: JournalStore = Depends(get_store),
    owner_id: int | None = Depends(get_current_owner),
) -> list[NoteRead]:
    """List the caller's notes created on a given day."""
    notes = await store.get_notes_by_date(owner_id, date)
    return [NoteRead.model_validate(n.model_dump()) for n in notes]


@router.get("/{note_id}/insights", response_model=NoteInsights)
async def read_insights(
    note_id: int,
    store: JournalStore = Depends(get_store),
    owner_id: int | None = Depends(get_current_owner),
) -> NoteInsights:
    """
    Latest enrichment result of a note.

    Raises:
        HTTPException 404: Unknown note, note owned by someone else, or
            no enrichment stored yet.
    """
    notes = await store.get_notes_by_ids([note_id])
    if not notes or notes[0].user_id is None or notes[0].user_id != owner_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Note not found"
        )

    metric = await store.get_latest_ai_metric(note_id)
    if metric is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No insights available for this note yet",
        )
    summary = await store.get_latest_summary(note_id)

    return NoteInsights(
        note_id=note_id,
        ai_mood_score=metric.ai_mood_score,
        ai_productivity_score=metric.ai_productivity_score,
        sentiment=SentimentRead(
            polarity=metric.sentiment_polarity,
            emotion=metric.sentiment_emotion,
            confidence=metric.sentiment_confidence,
        ),
        tags=metric.tags,
        summary=summary,
        created_at=metric.created_at,
    )
