"""
Main Application Unit Tests

Tests for application startup and health endpoints with mocked infrastructure.
Runs without Docker - the database check is mocked.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from journal.core.config import settings
from journal.main import app
from journal.services.enrichment import EnrichmentPipeline
from journal.services.store import SqlJournalStore


def test_health_check():
    """
    Verify /health endpoint returns correct response structure.

    TestClient triggers the lifespan handler, so the DB check must be mocked.
    """
    with patch("journal.main.wait_for_db", new_callable=AsyncMock) as mock_db:
        mock_db.return_value = True

        with TestClient(app) as client:
            response = client.get("/health")

            assert response.status_code == 200
            data = response.json()

            assert data["status"] == "ok"
            assert data["service"] == "ai-journal"
            assert "environment" in data


def test_lifespan_wires_store_and_pipeline():
    with patch("journal.main.wait_for_db", new_callable=AsyncMock) as mock_db:
        mock_db.return_value = True

        with TestClient(app):
            assert isinstance(app.state.store, SqlJournalStore)
            assert isinstance(app.state.pipeline, EnrichmentPipeline)
            assert app.state.generator is not None


def test_lifespan_without_api_key_disables_enrichment():
    with (
        patch("journal.main.wait_for_db", new_callable=AsyncMock) as mock_db,
        patch.object(settings, "GEMINI_API_KEY", None),
    ):
        mock_db.return_value = True

        with TestClient(app) as client:
            assert app.state.pipeline is None
            assert app.state.generator is None
            assert client.get("/health").status_code == 200
