"""
AI Journal Backend

FastAPI application entrypoint with async lifespan management.
Checks the database on startup, wires the store and the AI enrichment
pipeline, and disposes the engine on shutdown.

Start locally:
    uvicorn journal.main:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from journal.api.v1.ai import router as ai_router
from journal.api.v1.notes import router as notes_router
from journal.core.config import settings
from journal.core.database import dispose_engine, get_engine, get_session_factory
from journal.core.errors import ConfigurationError
from journal.core.logging import setup_logging
from journal.services.enrichment import EnrichmentPipeline
from journal.services.llm import GenerativeClient
from journal.services.store import SqlJournalStore

# Initialize logging before any log statements
setup_logging()
logger = logging.getLogger(__name__)


async def wait_for_db(retries: int = 10, delay: int = 1) -> bool:
    """
    Wait for PostgreSQL to become available.

    Useful in containerized environments where the database may start
    after the application. Implements retry logic with linear delay.

    Args:
        retries: Maximum connection attempts.
        delay: Seconds between attempts.

    Returns:
        True if connection established, False if all retries exhausted.
    """
    engine = get_engine()
    for i in range(retries):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Postgres connection established")
            return True
        except Exception as e:
            logger.warning("Waiting for Postgres (%d/%d)... Error: %s", i + 1, retries, e)
            await asyncio.sleep(delay)
    return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Validates database connectivity (blocks startup on failure)
        - Builds the store and, when a Gemini key is configured, the
          enrichment pipeline and generative client

    Shutdown:
        - Disposes the database engine
    """
    logger.info("Starting %s...", settings.PROJECT_NAME)
    logger.info("Log Level: %s", settings.LOG_LEVEL)

    if not await wait_for_db():
        logger.critical("Could not connect to Postgres. Shutting down.")
        raise RuntimeError("Database connection failed")

    store = SqlJournalStore(get_session_factory())
    app.state.store = store
    try:
        app.state.pipeline = EnrichmentPipeline.from_settings(settings, store)
        app.state.generator = GenerativeClient.from_settings(settings)
        logger.info("AI enrichment enabled (model=%s)", settings.GEMINI_MODEL)
    except ConfigurationError as e:
        logger.warning("AI enrichment disabled: %s", e)
        app.state.pipeline = None
        app.state.generator = None

    yield  # Application runs here

    await dispose_engine()
    logger.info("Shutting down %s...", settings.PROJECT_NAME)


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Journal entries with background AI enrichment.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(notes_router, prefix="/api/v1/notes", tags=["Notes"])
app.include_router(ai_router, prefix="/api/ai", tags=["AI"])


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check for load balancers and orchestrators."""
    return {
        "status": "ok",
        "service": "ai-journal",
        "environment": settings.ENVIRONMENT,
    }
