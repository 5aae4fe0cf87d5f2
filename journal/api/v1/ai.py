"""
AI API Router

On-demand generation that does not go through the enrichment pipeline.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from journal.api.deps import get_generator
from journal.core.errors import GenerationError
from journal.schemas.notes import SummaryRequest, SummaryResponse
from journal.services.llm import GenerativeClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/summary", response_model=SummaryResponse)
async def summarize(
    request: SummaryRequest,
    generator: GenerativeClient | None = Depends(get_generator),
) -> SummaryResponse:
    """
    Summarize a piece of text with the optional self-reported scores.

    Raises:
        HTTPException 503: If no Gemini API key is configured.
        HTTPException 502: If the upstream model call fails.
    """
    if generator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI service not configured",
        )

    try:
        summary = await generator.daily_summary(
            request.content, request.mood, request.productivity
        )
    except GenerationError as e:
        logger.warning("Summary generation failed: %s", e)
        # 502 Bad Gateway: upstream AI service failure
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"AI Service Error: {e}",
        ) from e

    return SummaryResponse(summary=summary)
