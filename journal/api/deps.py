"""
API Dependencies

FastAPI dependencies shared by the routers: the store, the enrichment
pipeline, the generative client and the request owner.

The pipeline and generative client are None when no Gemini API key is
configured; handlers degrade accordingly.
"""

from __future__ import annotations

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from journal.core.database import get_db
from journal.repositories import enrichment_repository
from journal.services.enrichment import EnrichmentPipeline
from journal.services.llm import GenerativeClient
from journal.services.store import JournalStore


def get_store(request: Request) -> JournalStore:
    """FastAPI dependency: returns the application's store."""
    return request.app.state.store


def get_pipeline(request: Request) -> EnrichmentPipeline | None:
    """FastAPI dependency: returns the enrichment pipeline, if configured."""
    return getattr(request.app.state, "pipeline", None)


def get_generator(request: Request) -> GenerativeClient | None:
    """FastAPI dependency: returns the generative client, if configured."""
    return getattr(request.app.state, "generator", None)


async def get_current_owner(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> int | None:
    """
    Resolve the request owner from an opaque ``Bearer`` session token.

    Tokens are issued by the auth service; only validation happens here.
    Missing, unknown or expired tokens yield None (anonymous request).
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.removeprefix("Bearer ").strip()
    if not token:
        return None
    return await enrichment_repository.get_owner_for_token(db, token)
