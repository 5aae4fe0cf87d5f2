"""
Pytest Configuration and Fixtures

Offline fixtures (in-memory store, mocked Gemini transport) shared by the
unit tests, plus readiness fixtures for the live integration tests.
"""

import os

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Test environment defaults: MUST be before any journal imports.
#
# 1. Load .env first so that Docker-matching credentials are available.
# 2. setdefault fills in anything still missing (CI runners, fresh clones
#    without a .env file) so that pydantic Settings validation doesn't crash.
# ---------------------------------------------------------------------------
load_dotenv()  # .env → os.environ (no-op if file is missing)

_test_env = {
    "POSTGRES_USER": "journal",
    "POSTGRES_PASSWORD": "journal_password",
    "POSTGRES_HOST": "localhost",
    "POSTGRES_PORT": "5432",
    "POSTGRES_DB": "journal_db",
    "GEMINI_API_KEY": "test-key",
}
for _key, _value in _test_env.items():
    os.environ.setdefault(_key, _value)

# ---------------------------------------------------------------------------
# Imports (safe now that env vars are set)
# ---------------------------------------------------------------------------
import datetime as dt  # noqa: E402
import json  # noqa: E402
import time  # noqa: E402
from collections.abc import Generator, Sequence  # noqa: E402
from typing import Any  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from journal.models import (  # noqa: E402
    AiMetricRecord,
    CachedEmbedding,
    MoodRecord,
    NoteSnapshot,
    StoredAiMetric,
)
from journal.services.retrieval import cosine_similarity  # noqa: E402

BASE_URL = "http://localhost:8000"


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


class FakeStore:
    """
    Dict-backed implementation of the JournalStore protocol.

    Set ``nearest_error`` / ``profile_error`` to make the matching call
    raise; every write is recorded for assertions.
    """

    def __init__(self) -> None:
        self.notes: dict[int, NoteSnapshot] = {}
        self.embeddings: dict[int, tuple[int | None, list[float]]] = {}
        self.ai_metrics: list[AiMetricRecord] = []
        self.summaries: list[tuple[int, str]] = []
        self.moods: list[MoodRecord] = []
        self.profiles: dict[int, dict[str, Any]] = {}
        self.nearest_error: Exception | None = None
        self.profile_error: Exception | None = None
        self._next_id = 1

    def add_note(self, content: str, owner_id: int | None, **kwargs: Any) -> NoteSnapshot:
        note = NoteSnapshot(
            id=self._next_id,
            content=content,
            user_id=owner_id,
            created_at=kwargs.get("created_at", dt.datetime.now(dt.UTC)),
        )
        self.notes[note.id] = note
        self._next_id += 1
        return note

    async def insert_note(self, content: str, owner_id: int | None) -> NoteSnapshot:
        return self.add_note(content, owner_id)

    async def get_notes_by_owner_since(self, owner_id: int, days: int) -> list[NoteSnapshot]:
        cutoff = dt.datetime.now(dt.UTC) - dt.timedelta(days=days)
        return [
            n
            for n in self.notes.values()
            if n.user_id == owner_id and n.created_at is not None and n.created_at >= cutoff
        ]

    async def get_notes_by_ids(self, note_ids: Sequence[int]) -> list[NoteSnapshot]:
        return [self.notes[i] for i in note_ids if i in self.notes]

    async def get_recent_embeddings(
        self, owner_id: int, days: int, limit_per_day: int
    ) -> list[CachedEmbedding]:
        return [
            CachedEmbedding(note_id=note_id, vector=vector)
            for note_id, (owner, vector) in self.embeddings.items()
            if owner == owner_id
        ][: days * limit_per_day]

    async def upsert_embedding(
        self, note_id: int, owner_id: int | None, vector: Sequence[float]
    ) -> None:
        self.embeddings[note_id] = (owner_id, list(vector))

    async def nearest_by_vector(
        self,
        owner_id: int,
        vector: Sequence[float],
        k: int,
        exclude_note_id: int | None = None,
    ) -> list[tuple[int, float]]:
        if self.nearest_error is not None:
            raise self.nearest_error
        rows = [
            (note_id, 1.0 - cosine_similarity(vector, stored))
            for note_id, (owner, stored) in self.embeddings.items()
            if owner == owner_id and note_id != exclude_note_id
        ]
        rows.sort(key=lambda row: row[1])
        return rows[:k]

    async def insert_ai_metric(self, record: AiMetricRecord) -> None:
        self.ai_metrics.append(record)

    async def insert_summary(self, note_id: int, text: str) -> None:
        self.summaries.append((note_id, text))

    async def insert_mood_entry(self, record: MoodRecord) -> None:
        self.moods.append(record)

    async def get_user_profile(self, owner_id: int) -> dict[str, Any] | None:
        if self.profile_error is not None:
            raise self.profile_error
        return self.profiles.get(owner_id)

    async def get_notes_by_date(
        self, owner_id: int | None, day: dt.date
    ) -> list[NoteSnapshot]:
        return [
            n
            for n in self.notes.values()
            if n.user_id == owner_id and n.created_at is not None and n.created_at.date() == day
        ]

    async def get_latest_ai_metric(self, note_id: int) -> StoredAiMetric | None:
        for index in range(len(self.ai_metrics) - 1, -1, -1):
            record = self.ai_metrics[index]
            if record.note_id == note_id:
                return StoredAiMetric(
                    **record.model_dump(),
                    id=index + 1,
                    created_at=dt.datetime.now(dt.UTC),
                )
        return None

    async def get_latest_summary(self, note_id: int) -> str | None:
        for summary_note_id, text in reversed(self.summaries):
            if summary_note_id == note_id:
                return text
        return None


@pytest.fixture
def fake_store() -> FakeStore:
    """Fresh, empty in-memory store."""
    return FakeStore()


# ---------------------------------------------------------------------------
# Mocked Gemini API
# ---------------------------------------------------------------------------


def gemini_reply(text: str) -> dict[str, Any]:
    """Body of a successful generateContent response."""
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class GeminiStub:
    """
    Programmable stand-in for the Gemini REST API, used through
    ``httpx.MockTransport``.

    Attributes:
        embedding: Vector returned by embedContent (None → HTTP 500).
        summary: Narrative reply (None → HTTP 500).
        metadata: Metadata reply (None → HTTP 500).
        requests: Every request received, in order.
    """

    def __init__(self) -> None:
        self.embedding: list[float] | None = [0.1] * 768
        self.summary: str | None = (
            "A bright day with real momentum at work.\nMood: 8/10, Productivity: 9/10"
        )
        self.metadata: str | None = json.dumps(
            {
                "mood": 7,
                "productivity": 8,
                "tags": ["Work", "gratitude"],
                "sentiment": {"polarity": "positive", "emotion": "joyful", "confidence": 0.9},
            }
        )
        self.requests: list[httpx.Request] = []

    def prompt_of(self, request: httpx.Request) -> str:
        return json.loads(request.content)["contents"][0]["parts"][0]["text"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith(":embedContent"):
            if self.embedding is None:
                return httpx.Response(500, text="embedding backend down")
            return httpx.Response(200, json={"embedding": {"values": self.embedding}})

        is_metadata = "Extract structured metadata" in self.prompt_of(request)
        reply = self.metadata if is_metadata else self.summary
        if reply is None:
            return httpx.Response(500, text="generation backend down")
        return httpx.Response(200, json=gemini_reply(reply))


@pytest.fixture
def gemini() -> GeminiStub:
    """Gemini stub with happy-path replies."""
    return GeminiStub()


@pytest.fixture
def gemini_transport(gemini: GeminiStub) -> httpx.MockTransport:
    """httpx transport routing every request to the ``gemini`` stub."""
    return httpx.MockTransport(gemini)


# ---------------------------------------------------------------------------
# Live stack
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def wait_for_api():
    """
    Block until the API is ready or timeout expires.

    Polls /health endpoint with 1s intervals for up to 30s.
    Fails the test session if API is unreachable (Docker likely not running).
    """
    url = f"{BASE_URL}/health"
    timeout = 30
    start = time.time()

    print("\n[Test] Waiting for API...")
    while time.time() - start < timeout:
        try:
            res = httpx.get(url, timeout=1.0)
            if res.status_code == 200:
                print("API Ready")
                return
        except httpx.RequestError:
            time.sleep(1)

    pytest.fail("API unreachable. Docker is likely down.")


@pytest.fixture(scope="session")
def api_client(wait_for_api) -> Generator[httpx.Client, None, None]:
    """
    Pre-configured HTTP client for live tests, rooted at /api/v1.

    Sends ``JOURNAL_TEST_TOKEN`` as a Bearer token when set so that notes
    are owned and get enriched.
    """
    headers = {}
    token = os.environ.get("JOURNAL_TEST_TOKEN")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    with httpx.Client(base_url=f"{BASE_URL}/api/v1", headers=headers, timeout=10.0) as client:
        yield client
