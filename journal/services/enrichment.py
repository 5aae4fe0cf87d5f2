"""
Enrichment Pipeline Orchestrator

Runs after a note has been stored and enriches it with AI metadata:

    sentiment hints → (embed ∥ cached embeddings ∥ recent notes) →
    similar-note retrieval → context → (summary ∥ metadata) →
    reconcile → (embedding ∥ AI metric ∥ summary) → derived mood

The HTTP handler schedules ``EnrichmentPipeline.run`` as a background
task after the response is sent. ``run`` never raises: any failure is
logged and ends that run without further writes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from journal.core.config import Settings
from journal.core.errors import GenerationError
from journal.models import (
    AiMetricRecord,
    EnrichmentOutcome,
    EnrichmentRequest,
    ExtractedMetadata,
    MoodRecord,
    ScoreParse,
    SentimentHint,
)
from journal.services.chunking import DEFAULT_MAX_CHARS, main_chunk
from journal.services.context import build_context
from journal.services.embeddings import EmbeddingClient, is_zero_vector
from journal.services.llm import GenerativeClient, parse_scores
from journal.services.retrieval import SimilarityRetriever
from journal.services.sentiment import analyze_sentiment
from journal.services.store import JournalStore

logger = logging.getLogger(__name__)


def reconcile(
    hints: SentimentHint,
    narrative: ScoreParse,
    metadata: ExtractedMetadata,
) -> tuple[int | None, int | None, list[str] | None, SentimentHint]:
    """
    Merge the two generative results with the heuristic hints.

    Precedence:
        - mood / productivity: narrative trailer, then metadata.
        - tags: metadata only.
        - sentiment: metadata, then the heuristic hints.

    Returns:
        ``(mood, productivity, tags, sentiment)``.
    """
    mood = narrative.mood if narrative.mood is not None else metadata.mood
    productivity = (
        narrative.productivity
        if narrative.productivity is not None
        else metadata.productivity
    )
    sentiment = metadata.sentiment or hints
    return mood, productivity, metadata.tags, sentiment


class EnrichmentPipeline:
    """
    Asynchronous note-enrichment orchestrator.

    Usage::

        pipeline = EnrichmentPipeline.from_settings(settings, store)
        background_tasks.add_task(pipeline.run, request)

    Args:
        store: Persistent store collaborator.
        embedder: Embedding client (never raises).
        generator: Generative client for summary and metadata.
        retriever: Similar-note retriever (built from ``store`` if omitted).
        chunk_max_chars: Chunk size for the embedded text and snippets.
    """

    def __init__(
        self,
        store: JournalStore,
        embedder: EmbeddingClient,
        generator: GenerativeClient,
        retriever: SimilarityRetriever | None = None,
        chunk_max_chars: int = DEFAULT_MAX_CHARS,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self._generator = generator
        self._retriever = retriever or SimilarityRetriever(store)
        self._chunk_max_chars = chunk_max_chars

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: JournalStore,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> EnrichmentPipeline:
        """
        Build the pipeline and its clients from application settings.

        Raises:
            ConfigurationError: If the Gemini API key is not configured.
        """
        return cls(
            store=store,
            embedder=EmbeddingClient.from_settings(settings, transport=transport),
            generator=GenerativeClient.from_settings(settings, transport=transport),
            retriever=SimilarityRetriever(
                store,
                k=settings.RETRIEVAL_K,
                window_days=settings.RETRIEVAL_DAYS,
                limit_per_day=settings.RETRIEVAL_LIMIT_PER_DAY,
            ),
            chunk_max_chars=settings.CHUNK_MAX_CHARS,
        )

    async def run(self, request: EnrichmentRequest) -> EnrichmentOutcome | None:
        """
        Enrich one note. Never raises.

        Returns:
            The outcome when the run persisted its results, None when it
            failed (the failure is logged with its traceback).
        """
        try:
            return await self._enrich(request)
        except Exception:
            logger.exception("Enrichment failed for note %d", request.note_id)
            return None

    # ------------------------------------------------------------------
    # Pipeline body
    # ------------------------------------------------------------------

    async def _enrich(self, request: EnrichmentRequest) -> EnrichmentOutcome:
        note_id, owner_id = request.note_id, request.owner_id

        # --- Step 1: Heuristic sentiment ---
        hints = analyze_sentiment(request.content)
        logger.debug("Note %d: sentiment computed (%s)", note_id, hints)

        # --- Step 2: Embed, load cached embeddings and recent notes together ---
        chunk = main_chunk(request.content, self._chunk_max_chars)
        vector, cached, recent_notes = await asyncio.gather(
            self._embedder.embed(chunk),
            self._store.get_recent_embeddings(
                owner_id,
                self._retriever.window_days,
                self._retriever.limit_per_day,
            ),
            self._store.get_notes_by_owner_since(owner_id, self._retriever.window_days),
        )
        logger.debug(
            "Note %d: embedded (dim=%d, zero=%s), %d cached embeddings, %d recent notes",
            note_id,
            len(vector),
            is_zero_vector(vector),
            len(cached),
            len(recent_notes),
        )

        # --- Step 3: Retrieval (DB search, in-memory fallback) ---
        retrieval = await self._retriever.find_similar(
            owner_id,
            vector,
            exclude_note_id=note_id,
            cached=cached,
        )

        # --- Step 4: Context ---
        lookup = {n.id: n.content for n in recent_notes}
        missing = [n.note_id for n in retrieval.neighbors if n.note_id not in lookup]
        if missing:
            lookup.update(
                (n.id, n.content) for n in await self._store.get_notes_by_ids(missing)
            )
        context = build_context(retrieval.neighbors, lookup, self._chunk_max_chars)
        logger.debug(
            "Note %d: context ready (%d neighbours, fallback=%s)",
            note_id,
            len(retrieval.neighbors),
            retrieval.used_fallback,
        )

        # --- Step 5: Persona ---
        persona = await self._load_persona(owner_id)

        # --- Step 6: Summary and metadata extraction together ---
        summary, metadata = await asyncio.gather(
            self._summarize(request, context, hints, persona),
            self._extract(request, context, persona),
        )
        if summary is None and metadata is None:
            raise GenerationError("Both generative calls failed")

        # --- Step 7: Reconcile ---
        mood, productivity, tags, sentiment = reconcile(
            hints,
            parse_scores(summary),
            metadata or ExtractedMetadata(),
        )
        record = AiMetricRecord(
            note_id=note_id,
            user_id=owner_id,
            ai_mood_score=mood,
            ai_productivity_score=productivity,
            sentiment_polarity=sentiment.polarity,
            sentiment_emotion=sentiment.emotion,
            sentiment_confidence=sentiment.confidence,
            tags=tags,
        )

        # --- Step 8: Persist ---
        writes = [
            self._store.upsert_embedding(note_id, owner_id, vector),
            self._store.insert_ai_metric(record),
        ]
        if summary:
            writes.append(self._store.insert_summary(note_id, summary))
        results = await asyncio.gather(*writes, return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures[1:]:
            logger.warning("Note %d: additional write failed: %r", note_id, failure)
        if failures:
            raise failures[0]

        # --- Step 9: Derived mood entry ---
        derived = False
        user_reported = request.mood is not None and request.productivity is not None
        if not user_reported and mood is not None and productivity is not None:
            await self._store.insert_mood_entry(
                MoodRecord(
                    date=request.date,
                    mood_score=mood,
                    productivity_score=productivity,
                    user_id=owner_id,
                )
            )
            derived = True

        logger.info(
            "Note %d enriched (mood=%s, productivity=%s, tags=%d, derived_mood=%s)",
            note_id,
            mood,
            productivity,
            len(tags or []),
            derived,
        )
        return EnrichmentOutcome(
            note_id=note_id,
            metric=record,
            summary=summary,
            neighbors=retrieval.neighbors,
            used_fallback_retrieval=retrieval.used_fallback,
            derived_mood=derived,
            persona=persona,
        )

    # ------------------------------------------------------------------
    # Best-effort steps
    # ------------------------------------------------------------------

    async def _load_persona(self, owner_id: int) -> dict[str, Any] | None:
        try:
            return await self._store.get_user_profile(owner_id)
        except Exception as e:
            logger.warning("Persona lookup failed for user %d: %s", owner_id, e)
            return None

    async def _summarize(
        self,
        request: EnrichmentRequest,
        context: str,
        hints: SentimentHint,
        persona: dict[str, Any] | None,
    ) -> str | None:
        try:
            return await self._generator.summarize(
                request.content,
                context,
                hints,
                persona,
                mood=request.mood,
                productivity=request.productivity,
            )
        except Exception as e:
            logger.warning("Summary failed for note %d: %s", request.note_id, e)
            return None

    async def _extract(
        self,
        request: EnrichmentRequest,
        context: str,
        persona: dict[str, Any] | None,
    ) -> ExtractedMetadata | None:
        try:
            return await self._generator.extract_metadata(request.content, context, persona)
        except Exception as e:
            logger.warning("Metadata extraction failed for note %d: %s", request.note_id, e)
            return None
