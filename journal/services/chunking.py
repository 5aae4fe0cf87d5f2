"""
Chunking Service

Splits note content into bounded-size chunks, paragraph first and
sentence second. The first chunk is the note's "main chunk": it is what
gets embedded and what represents the note in prompt context.
"""

from __future__ import annotations

import logging
import re
from typing import Final

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS: Final[int] = 400

_PARAGRAPH_RE: Final = re.compile(r"\n\s*\n")
_SENTENCE_RE: Final = re.compile(r"(?<=[.!?])\s+")


def _split_sentences(paragraph: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_RE.split(paragraph) if s.strip()]


def chunk_text(text: str | None, max_chars: int = DEFAULT_MAX_CHARS) -> list[str]:
    """
    Split text into ordered, non-empty chunks of at most ``max_chars``.

    Paragraphs (separated by blank lines) that fit are kept whole. Longer
    paragraphs are split into sentences which are packed greedily; a
    single sentence longer than ``max_chars`` is emitted on its own.

    Args:
        text: Raw note content.
        max_chars: Upper bound on chunk length.

    Returns:
        Chunks in input order. Empty list for empty/whitespace input.

    Raises:
        ValueError: If ``max_chars`` is less than 1.
    """
    if max_chars < 1:
        raise ValueError(f"max_chars must be positive, got {max_chars}")

    chunks: list[str] = []
    for raw_paragraph in _PARAGRAPH_RE.split(text or ""):
        paragraph = raw_paragraph.strip()
        if not paragraph:
            continue
        if len(paragraph) <= max_chars:
            chunks.append(paragraph)
            continue

        buffer = ""
        for sentence in _split_sentences(paragraph):
            candidate = f"{buffer} {sentence}" if buffer else sentence
            if buffer and len(candidate) > max_chars:
                chunks.append(buffer)
                buffer = sentence
            else:
                buffer = candidate
        if buffer:
            chunks.append(buffer)

    logger.debug("Split %d chars into %d chunks", len(text or ""), len(chunks))
    return chunks


def main_chunk(text: str | None, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Return the first chunk of ``text``, or ``""`` when there is none."""
    chunks = chunk_text(text, max_chars)
    return chunks[0] if chunks else ""
