"""
LLM Service

Generative enrichment through the Gemini ``generateContent`` REST API.

Operations:
    - summarize: reflective narrative summary ending with a
      ``Mood: X/10, Productivity: Y/10`` trailer.
    - extract_metadata: structured JSON (mood, productivity, tags,
      sentiment) with a regex fallback when the reply is not JSON.
    - daily_summary: plain 2-3 sentence summary for the on-demand endpoint.

Design:
    - Async HTTP calls via httpx (non-blocking).
    - The response body is untrusted: its shape is checked before use.
    - Upstream failures raise ``GenerationError``; deciding whether that
      is fatal is left to the caller.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Final

import httpx

from journal.core.config import Settings
from journal.core.errors import ConfigurationError, GenerationError
from journal.models import ExtractedMetadata, ScoreParse, SentimentHint
from journal.services.context import render_context

logger = logging.getLogger(__name__)

_MOOD_RE: Final = re.compile(r"Mood:\s*(\d{1,2})\s*/\s*10", re.IGNORECASE)
_PRODUCTIVITY_RE: Final = re.compile(r"Productivity:\s*(\d{1,2})\s*/\s*10", re.IGNORECASE)
_FENCE_RE: Final = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)

MAX_TAGS: Final[int] = 8
_POLARITIES: Final = frozenset({"positive", "neutral", "negative"})
_EMOTIONS: Final = frozenset({"joyful", "stressed", "sad", "angry", "calm", "neutral"})

SUMMARY_PROMPT: Final[str] = """You are a thoughtful journaling companion. Write a reflective summary of the user's new journal entry.

Instructions:
1. Write 2-4 sentences that synthesize the entry, connecting it to the past entries below when they are relevant (recurring themes, progress, setbacks).
2. Surface implicit emotional signals the user did not state outright.
3. Do not merely rephrase the entry; avoid generic statements.
4. Adapt tone and focus to the user's persona preferences.
5. Independently infer the user's mood and productivity on a 1-10 scale from the writing itself.
6. End with exactly one final line in this format: Mood: X/10, Productivity: Y/10

Persona preferences:
{persona}

Heuristic sentiment of the entry: {hints}
{self_report}
Past entries:
{context}

New entry:
{content}
"""

METADATA_PROMPT: Final[str] = """Extract structured metadata from the journal entry below.

Respond with ONLY a single JSON object, no prose and no code fences, with these keys:
- "mood": integer 1-10 or null
- "productivity": integer 1-10 or null
- "tags": array of 3-8 short lowercase keywords, or null
- "sentiment": {{"polarity": "positive"|"neutral"|"negative", "emotion": "joyful"|"stressed"|"sad"|"angry"|"calm"|"neutral", "confidence": number 0-1}} or null

Persona preferences:
{persona}

Past entries:
{context}

Journal entry:
{content}
"""

DAILY_SUMMARY_PROMPT: Final[str] = """You are an assistant that writes concise daily journal summaries.
Summarize the note in 2-3 sentences, focusing on mood, productivity, and key events.
{self_report}Note:
{content}
"""


def _clamp_score(value: int) -> int:
    return max(1, min(10, value))


def parse_scores(text: str | None) -> ScoreParse:
    """
    Find ``Mood: X/10`` and ``Productivity: Y/10`` in free text.

    The two values are matched independently, case-insensitively, and
    clamped to [1, 10]. Missing values are None.
    """
    text = text or ""
    mood = _MOOD_RE.search(text)
    productivity = _PRODUCTIVITY_RE.search(text)
    return ScoreParse(
        mood=_clamp_score(int(mood.group(1))) if mood else None,
        productivity=_clamp_score(int(productivity.group(1))) if productivity else None,
    )


def _coerce_score(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, int | float):
        return None
    # inf / nan (e.g. 1e999 in JSON) cannot be rounded
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return _clamp_score(round(value))


def _coerce_tags(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    tags: list[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        tag = item.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS] or None


def _coerce_sentiment(value: Any) -> SentimentHint | None:
    if not isinstance(value, dict):
        return None
    polarity = str(value.get("polarity", "")).strip().lower()
    emotion = str(value.get("emotion", "")).strip().lower()
    if polarity not in _POLARITIES or emotion not in _EMOTIONS:
        return None
    confidence = value.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, int | float):
        confidence = 0.5
    return SentimentHint(
        polarity=polarity,
        emotion=emotion,
        confidence=round(max(0.0, min(1.0, float(confidence))), 2),
    )


def parse_metadata(text: str) -> ExtractedMetadata:
    """
    Parse the metadata-extraction reply.

    Code fences are tolerated. When the reply is not a JSON object, mood
    and productivity are recovered with ``parse_scores`` and tags and
    sentiment are left empty.
    """
    cleaned = _FENCE_RE.sub("", text.strip())
    try:
        data = json.loads(cleaned)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    except ValueError as e:
        logger.warning("Metadata reply is not a JSON object (%s), using regex fallback", e)
        scores = parse_scores(text)
        return ExtractedMetadata(mood=scores.mood, productivity=scores.productivity)

    return ExtractedMetadata(
        mood=_coerce_score(data.get("mood")),
        productivity=_coerce_score(data.get("productivity")),
        tags=_coerce_tags(data.get("tags")),
        sentiment=_coerce_sentiment(data.get("sentiment")),
    )


def _format_persona(persona: dict[str, Any] | None) -> str:
    if not persona:
        return "None provided."
    return json.dumps(persona, ensure_ascii=False, sort_keys=True)


def _format_self_report(mood: int | None, productivity: int | None) -> str:
    if mood is None or productivity is None:
        return ""
    return f"User-reported mood: {mood}/10, productivity: {productivity}/10.\n"


def _extract_text(data: Any) -> str:
    """Return ``candidates[0].content.parts[0].text`` or raise GenerationError."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise GenerationError(
            "Unexpected Gemini response shape",
            detail=json.dumps(data)[:500] if data is not None else None,
        ) from e
    if not isinstance(text, str):
        raise GenerationError("Gemini response text is not a string")
    return text


class GenerativeClient:
    """
    Async Gemini client for note enrichment.

    Usage::

        client = GenerativeClient.from_settings(settings)
        summary = await client.summarize(content, context, hints, persona)
        scores = parse_scores(summary)

    Args:
        api_key: Gemini API key. Required.
        model: Generative model name.
        base_url: API root, e.g. ``https://generativelanguage.googleapis.com``.
        timeout: Per-request timeout in seconds.
        api_version: API version segment of the URL.
        transport: Optional httpx transport (tests inject a MockTransport).

    Raises:
        ConfigurationError: If ``api_key`` is empty.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout: float = 30.0,
        api_version: str = "v1beta",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._api_version = api_version
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GenerativeClient:
        """Build a client from application settings."""
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
            base_url=settings.GEMINI_BASE_URL,
            timeout=settings.AI_TIMEOUT,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def summarize(
        self,
        content: str,
        context: str,
        hints: SentimentHint,
        persona: dict[str, Any] | None = None,
        mood: int | None = None,
        productivity: int | None = None,
    ) -> str:
        """
        Generate the reflective summary of a note.

        Returns:
            Trimmed model text, normally ending with the score trailer
            (read it back with ``parse_scores``).

        Raises:
            GenerationError: On transport failure, non-2xx status or an
                unexpected response shape.
        """
        prompt = SUMMARY_PROMPT.format(
            persona=_format_persona(persona),
            hints=(
                f"polarity={hints.polarity}, emotion={hints.emotion}, "
                f"confidence={hints.confidence:.2f}"
            ),
            self_report=_format_self_report(mood, productivity),
            context=render_context(context),
            content=content,
        )
        return await self._generate(prompt)

    async def extract_metadata(
        self,
        content: str,
        context: str,
        persona: dict[str, Any] | None = None,
    ) -> ExtractedMetadata:
        """
        Extract mood, productivity, tags and sentiment as structured data.

        Raises:
            GenerationError: If the call itself fails. A reply that is not
                JSON is not an error (see ``parse_metadata``).
        """
        prompt = METADATA_PROMPT.format(
            persona=_format_persona(persona),
            context=render_context(context),
            content=content,
        )
        return parse_metadata(await self._generate(prompt))

    async def daily_summary(
        self,
        content: str,
        mood: int | None = None,
        productivity: int | None = None,
    ) -> str:
        """Short stand-alone summary (no past context, no persona)."""
        prompt = DAILY_SUMMARY_PROMPT.format(
            self_report=_format_self_report(mood, productivity),
            content=content,
        )
        return await self._generate(prompt)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _generate(self, prompt: str) -> str:
        """
        POST one prompt to ``generateContent`` and return the reply text.

        Raises:
            GenerationError: On any failure.
        """
        url = (
            f"{self._base_url}/{self._api_version}/models/"
            f"{self._model}:generateContent"
        )
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"x-goog-api-key": self._api_key},
                )
        except httpx.HTTPError as e:
            raise GenerationError(
                f"Gemini request failed: {type(e).__name__}",
                detail=str(e),
            ) from e

        if response.is_error:
            raise GenerationError(
                f"Gemini error: {response.status_code}",
                status_code=response.status_code,
                detail=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError(
                "Gemini response is not JSON",
                status_code=response.status_code,
                detail=response.text[:500],
            ) from e

        text = _extract_text(data).strip()
        logger.info(
            "Gemini response generated (model=%s, length=%d)",
            self._model,
            len(text),
        )
        return text
