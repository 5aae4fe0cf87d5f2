#!/usr/bin/env python3
"""
Backfill Enrichment Script

Runs the AI enrichment pipeline over owned notes that have no stored
AI metrics yet (e.g. notes created while GEMINI_API_KEY was unset).

Usage:
    Requires the database to be reachable and GEMINI_API_KEY set:
    $ python scripts/backfill_enrichment.py --limit 50
"""

import argparse
import asyncio
import datetime as dt
import logging

from journal.core.config import settings
from journal.core.database import dispose_engine, get_session_factory
from journal.core.logging import setup_logging
from journal.models import EnrichmentRequest
from journal.repositories import note_repository
from journal.services.enrichment import EnrichmentPipeline
from journal.services.store import SqlJournalStore

logger = logging.getLogger("journal.scripts.backfill")


async def main(limit: int) -> None:
    """Enrich up to ``limit`` notes sequentially, oldest first."""
    session_factory = get_session_factory()
    pipeline = EnrichmentPipeline.from_settings(
        settings, SqlJournalStore(session_factory)
    )

    async with session_factory() as session:
        notes = await note_repository.list_owned_without_metrics(session, limit)
    logger.info("Found %d notes without AI metrics", len(notes))

    enriched = 0
    for note in notes:
        day = (note.created_at or dt.datetime.now(dt.UTC)).date()
        outcome = await pipeline.run(
            EnrichmentRequest(
                note_id=note.id,
                owner_id=note.user_id,
                content=note.content,
                date=day,
            )
        )
        if outcome is not None:
            enriched += 1

    logger.info("Enriched %d/%d notes", enriched, len(notes))
    await dispose_engine()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--limit", type=int, default=100)
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.limit))
