"""Repositories package."""

from journal.repositories.base import BaseRepository
from journal.repositories.enrichment import EnrichmentRepository, enrichment_repository
from journal.repositories.notes import NoteRepository, note_repository

__all__ = [
    "BaseRepository",
    "EnrichmentRepository",
    "NoteRepository",
    "enrichment_repository",
    "note_repository",
]
