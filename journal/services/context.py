"""
Context Builder

Turns retrieved neighbours into the compact "past entries" block fed to
the generative prompts. Each neighbour is represented by the first chunk
of its content and tagged with its closeness metric.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Final

from journal.models import Neighbor
from journal.services.chunking import DEFAULT_MAX_CHARS, main_chunk

NO_CONTEXT_PLACEHOLDER: Final[str] = "No past entries available."

_METRIC_LABELS: Final[dict[str, str]] = {"distance": "dist", "similarity": "sim"}


def format_neighbor(neighbor: Neighbor, snippet: str) -> str:
    """One context entry: header line with id and metric, then the snippet."""
    label = _METRIC_LABELS[neighbor.metric]
    return f"[note #{neighbor.note_id} | {label}={neighbor.score:.4f}]\n{snippet}"


def build_context(
    neighbors: Sequence[Neighbor],
    note_lookup: Mapping[int, str],
    max_chars: int = DEFAULT_MAX_CHARS,
) -> str:
    """
    Build the context block for a prompt.

    Args:
        neighbors: Ranked neighbours, all from the same retrieval path.
        note_lookup: Note id → content.
        max_chars: Chunk size used to cut the representative snippet.

    Returns:
        Entries separated by a blank line; ``""`` when there is nothing to
        show. Neighbours whose content is unknown or empty are skipped.
    """
    entries: list[str] = []
    for neighbor in neighbors:
        snippet = main_chunk(note_lookup.get(neighbor.note_id), max_chars)
        if snippet:
            entries.append(format_neighbor(neighbor, snippet))
    return "\n\n".join(entries)


def render_context(context: str) -> str:
    """Context as shown in a prompt: the block itself, or the placeholder."""
    return context if context.strip() else NO_CONTEXT_PLACEHOLDER
