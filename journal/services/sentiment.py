"""
Heuristic Sentiment Service

Lexicon-based polarity/emotion detector that runs locally and
synchronously before any model call. Its output seeds the prompts and is
the last-resort sentiment stored when the model returns none.

Crisis phrasing (self-harm, suicide) overrides all scoring and always
yields a negative/sad result with fixed high confidence.
"""

from __future__ import annotations

import re
from typing import Final

from journal.models.schemas import SentimentHint

_TOKEN_RE: Final = re.compile(r"[a-z']+")

CRISIS_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(pattern)
    for pattern in (
        r"\b(i\s+)?(want|wanna|going)\s+to\s+die\b",
        r"\bkill(ing)?\s+my\s*self\b",
        r"\bend(ing)?\s+(my|it)\s+(life|all)\b",
        r"\bsuicid(e|al)\b",
        r"\b(hurt|harm|cut)(ing)?\s+my\s*self\b",
        r"\bself[-\s]?harm\b",
        r"\bno\s+reason\s+to\s+live\b",
        r"\bbetter\s+off\s+dead\b",
        r"\bdon'?t\s+want\s+to\s+(live|be\s+alive)\b",
    )
)

CRISIS_HINT: Final = SentimentHint(polarity="negative", emotion="sad", confidence=0.98)

POSITIVE_WORDS: Final[frozenset[str]] = frozenset(
    {
        "happy", "joy", "grateful", "excited", "proud", "calm", "peaceful",
        "optimistic", "great", "good", "excellent", "amazing", "love", "loved",
        "progress", "energized", "relaxed", "wonderful", "productive",
    }
)
NEGATIVE_WORDS: Final[frozenset[str]] = frozenset(
    {
        "tired", "fatigue", "fatigued", "exhausted", "stressed", "stress",
        "anxious", "anxiety", "worried", "overwhelmed", "sad", "upset", "angry",
        "frustrated", "burned", "burnt", "depressed", "bad", "terrible", "awful",
    }
)
ANGER_WORDS: Final[frozenset[str]] = frozenset(
    {"angry", "furious", "mad", "irritated", "annoyed", "frustrated"}
)
SADNESS_WORDS: Final[frozenset[str]] = frozenset(
    {"sad", "down", "depressed", "blue", "tearful", "lonely"}
)
STRESS_WORDS: Final[frozenset[str]] = frozenset(
    {"stressed", "anxious", "anxiety", "overwhelmed", "pressure", "burned", "burnt"}
)


def is_crisis(text: str) -> bool:
    """Return True if the text contains self-harm or suicide phrasing."""
    lowered = text.lower()
    return any(pattern.search(lowered) for pattern in CRISIS_PATTERNS)


def analyze_sentiment(text: str | None) -> SentimentHint:
    """
    Classify text into polarity, emotion and a confidence in [0.2, 1.0].

    Never raises. Crisis phrasing returns ``CRISIS_HINT`` regardless of
    any other words present.
    """
    lowered = (text or "").lower()
    if is_crisis(lowered):
        return CRISIS_HINT

    tokens = _TOKEN_RE.findall(lowered)
    if not tokens:
        return SentimentHint(polarity="neutral", emotion="neutral", confidence=0.2)

    pos = neg = anger = sadness = stress = 0
    for token in tokens:
        pos += token in POSITIVE_WORDS
        neg += token in NEGATIVE_WORDS
        anger += token in ANGER_WORDS
        sadness += token in SADNESS_WORDS
        stress += token in STRESS_WORDS

    score = pos - neg

    if score > 1:
        polarity = "positive"
    elif score < -1:
        polarity = "negative"
    else:
        polarity = "neutral"

    if stress > 0 and stress >= anger and stress >= sadness:
        emotion = "stressed"
    elif anger > 0 and anger >= sadness:
        emotion = "angry"
    elif sadness > 0:
        emotion = "sad"
    elif pos > neg and pos > 0:
        emotion = "joyful"
    elif pos + neg == 0:
        emotion = "neutral"
    else:
        emotion = "calm"

    signal = abs(score) + anger + sadness + stress
    confidence = min(1.0, max(0.2, signal / max(5, len(tokens) / 20)))

    return SentimentHint(
        polarity=polarity,
        emotion=emotion,
        confidence=round(confidence, 2),
    )
