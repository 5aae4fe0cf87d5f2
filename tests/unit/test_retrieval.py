"""
Retrieval Service Unit Tests

Cosine ranking and the database-search / in-memory fallback switch,
against the in-memory FakeStore.
"""

import math

import pytest

from journal.core.errors import VectorSearchUnavailableError
from journal.models import CachedEmbedding
from journal.services.retrieval import (
    SimilarityRetriever,
    cosine_similarity,
    rank_by_similarity,
)

# ---------------------------------------------------------------------------
# cosine_similarity
# ---------------------------------------------------------------------------


def test_cosine_identical_and_orthogonal():
    assert cosine_similarity([1.0, 2.0], [1.0, 2.0]) == pytest.approx(1.0)
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)


@pytest.mark.parametrize(
    ("a", "b"),
    [([], [1.0]), ([1.0], []), ([1.0, 2.0], [1.0]), ([0.0, 0.0], [1.0, 1.0])],
)
def test_cosine_degenerate_inputs_are_zero(a, b):
    assert cosine_similarity(a, b) == 0.0


def test_cosine_is_finite_for_zero_vectors():
    assert not math.isnan(cosine_similarity([0.0] * 4, [0.0] * 4))


# ---------------------------------------------------------------------------
# rank_by_similarity
# ---------------------------------------------------------------------------


def test_rank_orders_excludes_and_truncates():
    candidates = [
        CachedEmbedding(note_id=1, vector=[0.0, 1.0]),
        CachedEmbedding(note_id=2, vector=[1.0, 0.1]),
        CachedEmbedding(note_id=3, vector=[1.0, 0.0]),
        CachedEmbedding(note_id=4, vector=[]),
        CachedEmbedding(note_id=5, vector=[0.7, 0.7]),
    ]

    ranked = rank_by_similarity([1.0, 0.0], candidates, k=2, exclude_note_id=3)

    assert [n.note_id for n in ranked] == [2, 5]
    assert all(n.metric == "similarity" for n in ranked)
    assert ranked[0].score > ranked[1].score


# ---------------------------------------------------------------------------
# SimilarityRetriever
# ---------------------------------------------------------------------------


@pytest.fixture
def populated_store(fake_store):
    """Owner 42 has three embedded notes, owner 7 has one."""
    for note_id, owner, vector in [
        (1, 42, [1.0, 0.0, 0.0]),
        (2, 42, [0.0, 1.0, 0.0]),
        (3, 42, [0.9, 0.1, 0.0]),
        (4, 7, [1.0, 0.0, 0.0]),
    ]:
        fake_store.embeddings[note_id] = (owner, vector)
    return fake_store


@pytest.mark.asyncio
async def test_find_similar_uses_database_search(populated_store):
    retriever = SimilarityRetriever(populated_store, k=5)

    result = await retriever.find_similar(42, [1.0, 0.0, 0.0], exclude_note_id=1)

    assert not result.used_fallback
    assert [n.note_id for n in result.neighbors] == [3, 2]
    assert all(n.metric == "distance" for n in result.neighbors)
    # Lower distance = closer
    assert result.neighbors[0].score < result.neighbors[1].score


@pytest.mark.asyncio
async def test_find_similar_falls_back_to_memory(populated_store):
    populated_store.nearest_error = VectorSearchUnavailableError("pgvector missing")
    retriever = SimilarityRetriever(populated_store, k=1)

    result = await retriever.find_similar(42, [1.0, 0.0, 0.0], exclude_note_id=1)

    assert result.used_fallback
    assert [n.note_id for n in result.neighbors] == [3]
    assert result.neighbors[0].metric == "similarity"


@pytest.mark.asyncio
async def test_fallback_uses_preloaded_embeddings(populated_store):
    populated_store.nearest_error = RuntimeError("connection reset")
    cached = [CachedEmbedding(note_id=99, vector=[1.0, 0.0, 0.0])]

    result = await SimilarityRetriever(populated_store).find_similar(
        42, [1.0, 0.0, 0.0], cached=cached
    )

    assert [n.note_id for n in result.neighbors] == [99]


@pytest.mark.asyncio
async def test_fallback_with_zero_query_scores_zero(populated_store):
    populated_store.nearest_error = VectorSearchUnavailableError("zero vector")

    result = await SimilarityRetriever(populated_store).find_similar(42, [0.0, 0.0, 0.0])

    assert result.used_fallback
    assert all(n.score == 0.0 for n in result.neighbors)


@pytest.mark.asyncio
async def test_other_owners_are_never_returned(populated_store):
    result = await SimilarityRetriever(populated_store).find_similar(7, [1.0, 0.0, 0.0])

    assert [n.note_id for n in result.neighbors] == [4]


@pytest.mark.asyncio
async def test_explicit_zero_k_returns_nothing(populated_store):
    retriever = SimilarityRetriever(populated_store, k=5)

    primary = await retriever.find_similar(42, [1.0, 0.0, 0.0], k=0)
    populated_store.nearest_error = VectorSearchUnavailableError("down")
    fallback = await retriever.find_similar(42, [1.0, 0.0, 0.0], k=0)

    assert primary.neighbors == []
    assert fallback.neighbors == []
    assert fallback.used_fallback


@pytest.mark.asyncio
async def test_default_k_applies_when_omitted(populated_store):
    result = await SimilarityRetriever(populated_store, k=2).find_similar(
        42, [1.0, 0.0, 0.0]
    )

    assert len(result.neighbors) == 2
