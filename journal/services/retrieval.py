"""
Retrieval Service

Finds the notes most similar to a freshly embedded one, for the same
owner.

Two paths, never mixed within one ranking:
    - Primary: database-side nearest-neighbour search (pgvector cosine
      distance, lower = closer).
    - Fallback: in-memory cosine similarity over recently cached
      embeddings (higher = closer), used only when the primary raises.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import NamedTuple

import numpy as np

from journal.models import CachedEmbedding, Neighbor
from journal.services.store import JournalStore

logger = logging.getLogger(__name__)

DEFAULT_K: int = 5
DEFAULT_WINDOW_DAYS: int = 5
DEFAULT_LIMIT_PER_DAY: int = 20


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector is empty or has zero norm, or when the
    lengths differ.
    """
    if not a or not b or len(a) != len(b):
        return 0.0
    a_np = np.asarray(a, dtype=float)
    b_np = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(a_np)
    norm_b = np.linalg.norm(b_np)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a_np, b_np) / (norm_a * norm_b))


def rank_by_similarity(
    query: Sequence[float],
    candidates: Sequence[CachedEmbedding],
    k: int = DEFAULT_K,
    exclude_note_id: int | None = None,
) -> list[Neighbor]:
    """
    Rank cached embeddings against ``query`` by cosine similarity.

    Args:
        query: Embedding of the note being processed.
        candidates: Cached embeddings of the owner's recent notes.
        k: Number of neighbours to keep.
        exclude_note_id: Note to leave out (the one being processed).

    Returns:
        Up to ``k`` neighbours labelled ``metric="similarity"``, most
        similar first.
    """
    scored = [
        Neighbor(
            note_id=c.note_id,
            score=cosine_similarity(query, c.vector),
            metric="similarity",
        )
        for c in candidates
        if c.note_id != exclude_note_id and c.vector
    ]
    scored.sort(key=lambda n: n.score, reverse=True)
    return scored[:k]


class RetrievalResult(NamedTuple):
    """Neighbours found for one note and which path produced them."""

    neighbors: list[Neighbor]
    used_fallback: bool


class SimilarityRetriever:
    """
    Owner-scoped similar-note retrieval with an in-memory fallback.

    Usage::

        retriever = SimilarityRetriever(store)
        result = await retriever.find_similar(42, vector, exclude_note_id=7)
        for n in result.neighbors:
            print(n.note_id, n.metric, n.score)

    Args:
        store: Persistent store collaborator.
        k: Default number of neighbours.
        window_days: Recency window for the fallback path.
        limit_per_day: Per-day cap on cached embeddings for the fallback.
    """

    def __init__(
        self,
        store: JournalStore,
        k: int = DEFAULT_K,
        window_days: int = DEFAULT_WINDOW_DAYS,
        limit_per_day: int = DEFAULT_LIMIT_PER_DAY,
    ) -> None:
        self._store = store
        self._k = k
        self._window_days = window_days
        self._limit_per_day = limit_per_day

    @property
    def window_days(self) -> int:
        return self._window_days

    @property
    def limit_per_day(self) -> int:
        return self._limit_per_day

    async def find_similar(
        self,
        owner_id: int,
        vector: list[float],
        k: int | None = None,
        *,
        exclude_note_id: int | None = None,
        cached: Sequence[CachedEmbedding] | None = None,
    ) -> RetrievalResult:
        """
        Return the ``k`` notes of ``owner_id`` closest to ``vector``.

        Args:
            owner_id: Owner whose notes are searched.
            vector: Query embedding.
            k: Number of neighbours (defaults to the retriever's ``k``).
            exclude_note_id: Note being processed; never returned.
            cached: Recent embeddings already loaded by the caller. When
                omitted and the fallback is needed, they are fetched here.

        Returns:
            RetrievalResult with ranked neighbours and the path used.
        """
        limit = self._k if k is None else k

        try:
            rows = await self._store.nearest_by_vector(
                owner_id, vector, limit, exclude_note_id=exclude_note_id
            )
        except Exception as e:
            logger.warning(
                "Vector search unavailable for user %d (%s: %s), ranking in memory",
                owner_id,
                type(e).__name__,
                e,
            )
        else:
            neighbors = [
                Neighbor(note_id=note_id, score=distance, metric="distance")
                for note_id, distance in rows
            ]
            return RetrievalResult(neighbors=neighbors, used_fallback=False)

        if cached is None:
            cached = await self._store.get_recent_embeddings(
                owner_id, self._window_days, self._limit_per_day
            )
        neighbors = rank_by_similarity(vector, cached, limit, exclude_note_id)
        return RetrievalResult(neighbors=neighbors, used_fallback=True)
