"""
Embedding Service Unit Tests

Tests for the Gemini embedding client with a mocked HTTP transport.
No external API calls - runs without network or API keys.
"""

import json

import httpx
import pytest

from journal.core.errors import ConfigurationError
from journal.services.embeddings import (
    EmbeddingClient,
    extract_vector,
    is_zero_vector,
    zero_vector,
)


def _client(handler, dimension: int = 4) -> EmbeddingClient:
    return EmbeddingClient(
        api_key="test-key",
        dimension=dimension,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_embed_primary_version():
    """
    Verify the request sent to the primary API version:
        - URL path with model and embedContent action
        - API key sent as a header, never in the URL
        - Gemini request body
    """
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"embedding": {"values": [0.1, 0.2, 0.3, 0.4]}})

    vector = await _client(handler).embed("Calm morning walk.")

    assert vector == [0.1, 0.2, 0.3, 0.4]
    assert len(seen) == 1
    request = seen[0]
    assert request.url.path == "/v1beta/models/text-embedding-004:embedContent"
    assert request.headers["x-goog-api-key"] == "test-key"
    assert "key=" not in str(request.url)
    body = json.loads(request.content)
    assert body["model"] == "models/text-embedding-004"
    assert body["content"]["parts"][0]["text"] == "Calm morning walk."


@pytest.mark.asyncio
async def test_embed_falls_back_to_secondary_version():
    versions: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        version = request.url.path.split("/")[1]
        versions.append(version)
        if version == "v1beta":
            return httpx.Response(404, text="model not found")
        return httpx.Response(200, json={"embedding": {"values": [1, 0, 0, 0]}})

    vector = await _client(handler).embed("text")

    assert versions == ["v1beta", "v1"]
    assert vector == [1.0, 0.0, 0.0, 0.0]


@pytest.mark.asyncio
async def test_embed_returns_zero_vector_when_all_versions_fail():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    vector = await _client(handler, dimension=8).embed("text")

    assert vector == [0.0] * 8


@pytest.mark.asyncio
async def test_embed_never_raises_on_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert await _client(handler).embed("text") == [0.0] * 4


@pytest.mark.asyncio
async def test_embed_unusable_body_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/v1beta"):
            return httpx.Response(200, text="<html>oops</html>")
        return httpx.Response(200, json={"embedding": {"values": []}})

    assert is_zero_vector(await _client(handler).embed("text"))


@pytest.mark.asyncio
async def test_blank_text_is_not_sent():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json={"values": [1.0]})

    vector = await _client(handler).embed("   ")

    assert vector == [0.0] * 4
    assert calls == 0


def test_missing_api_key_raises():
    with pytest.raises(ConfigurationError):
        EmbeddingClient(api_key="")
    with pytest.raises(ConfigurationError):
        EmbeddingClient(api_key=None)


@pytest.mark.parametrize(
    "body",
    [
        {"embedding": {"values": [0.5, 1]}},
        {"embedding": [0.5, 1]},
        {"embeddings": [{"values": [0.5, 1]}]},
        {"data": [{"embedding": [0.5, 1]}]},
        {"values": [0.5, 1]},
    ],
)
def test_extract_vector_known_shapes(body):
    assert extract_vector(body) == [0.5, 1.0]


@pytest.mark.parametrize(
    "body",
    [None, [], {}, {"embedding": {"values": []}}, {"values": ["a", "b"]}, {"values": [True]}],
)
def test_extract_vector_rejects_unusable_bodies(body):
    assert extract_vector(body) is None


def test_zero_vector_helpers():
    assert zero_vector(3) == [0.0, 0.0, 0.0]
    assert len(zero_vector()) == 768
    assert is_zero_vector([0.0, 0.0])
    assert is_zero_vector([])
    assert not is_zero_vector([0.0, 0.01])
