"""
Embedding Service

Remote text embeddings via the Gemini ``embedContent`` REST endpoint.

Design:
    - Async HTTP calls via httpx (non-blocking).
    - Primary API version first, one retry against the secondary version.
    - Never raises: on total failure a zero vector of the configured
      dimension is returned. Callers treat a zero vector as "no signal"
      (its cosine similarity with anything is 0).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from journal.core.config import Settings
from journal.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DIMENSION: int = 768
DEFAULT_API_VERSIONS: tuple[str, str] = ("v1beta", "v1")


def zero_vector(dimension: int = DEFAULT_DIMENSION) -> list[float]:
    """Vector used when no embedding could be produced."""
    return [0.0] * dimension


def is_zero_vector(vector: Sequence[float]) -> bool:
    """True for empty vectors and vectors whose components are all zero."""
    return not any(vector)


def extract_vector(data: Any) -> list[float] | None:
    """
    Pull the embedding out of a response body.

    Accepts the shapes returned by the known embedding APIs:
    ``{"embedding": {"values": [...]}}``, ``{"embedding": [...]}``,
    ``{"embeddings": [{"values": [...]}]}``, ``{"data": [{"embedding": [...]}]}``
    and ``{"values": [...]}``.

    Returns:
        The vector as floats, or None if no non-empty numeric list is found.
    """
    if not isinstance(data, dict):
        return None

    candidates: list[Any] = []
    embedding = data.get("embedding")
    if isinstance(embedding, dict):
        candidates.append(embedding.get("values"))
    else:
        candidates.append(embedding)

    embeddings = data.get("embeddings")
    if isinstance(embeddings, list) and embeddings and isinstance(embeddings[0], dict):
        candidates.append(embeddings[0].get("values"))

    items = data.get("data")
    if isinstance(items, list) and items and isinstance(items[0], dict):
        candidates.append(items[0].get("embedding"))

    candidates.append(data.get("values"))

    for candidate in candidates:
        if (
            isinstance(candidate, list)
            and candidate
            and all(
                isinstance(v, int | float) and not isinstance(v, bool)
                for v in candidate
            )
        ):
            return [float(v) for v in candidate]
    return None


class EmbeddingClient:
    """
    Async Gemini embedding client with version fallback.

    Usage::

        client = EmbeddingClient.from_settings(settings)
        vector = await client.embed("Had a calm morning.")
        assert len(vector) == client.dimension

    Args:
        api_key: Gemini API key. Required.
        model: Embedding model name (without the ``models/`` prefix).
        base_url: API root, e.g. ``https://generativelanguage.googleapis.com``.
        dimension: Expected vector size, used for the zero-vector fallback.
        timeout: Per-request timeout in seconds.
        api_versions: Primary and secondary API versions, tried in order.
        transport: Optional httpx transport (tests inject a MockTransport).

    Raises:
        ConfigurationError: If ``api_key`` is empty.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "text-embedding-004",
        base_url: str = "https://generativelanguage.googleapis.com",
        dimension: int = DEFAULT_DIMENSION,
        timeout: float = 30.0,
        api_versions: Sequence[str] = DEFAULT_API_VERSIONS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._timeout = timeout
        self._api_versions = tuple(api_versions)
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> EmbeddingClient:
        """Build a client from application settings."""
        return cls(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_EMBEDDING_MODEL,
            base_url=settings.GEMINI_BASE_URL,
            dimension=settings.EMBEDDING_DIMENSION,
            timeout=settings.AI_TIMEOUT,
            transport=transport,
        )

    @property
    def dimension(self) -> int:
        """Size of the vectors this client returns."""
        return self._dimension

    async def embed(self, text: str) -> list[float]:
        """
        Embed ``text``, falling back to a zero vector on any failure.

        Args:
            text: Text to embed (callers pass the note's main chunk).

        Returns:
            Embedding vector; ``zero_vector(dimension)`` if every attempt failed.
        """
        if not text.strip():
            return zero_vector(self._dimension)

        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            for version in self._api_versions:
                vector = await self._try_embed(client, version, text)
                if vector is not None:
                    return vector

        logger.warning(
            "All embedding attempts failed (model=%s), using zero vector",
            self._model,
        )
        return zero_vector(self._dimension)

    async def _try_embed(
        self,
        client: httpx.AsyncClient,
        version: str,
        text: str,
    ) -> list[float] | None:
        """One attempt against a single API version. Returns None on failure."""
        url = f"{self._base_url}/{version}/models/{self._model}:embedContent"
        payload = {
            "model": f"models/{self._model}",
            "content": {"parts": [{"text": text}]},
        }

        try:
            response = await client.post(
                url,
                json=payload,
                headers={"x-goog-api-key": self._api_key},
            )
        except httpx.HTTPError as e:
            logger.warning(
                "Embedding request failed (%s, %s): %s",
                version,
                type(e).__name__,
                e,
            )
            return None

        if response.is_error:
            logger.warning(
                "Embedding API error (%s, status=%d): %s",
                version,
                response.status_code,
                response.text[:200],
            )
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Embedding response is not JSON (%s)", version)
            return None

        vector = extract_vector(data)
        if vector is None:
            logger.warning("Embedding response has no usable vector (%s)", version)
            return None

        logger.debug("Embedded %d chars via %s (dim=%d)", len(text), version, len(vector))
        return vector
