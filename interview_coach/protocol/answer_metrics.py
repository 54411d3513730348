"""Locally computed answer metrics: word and filler-word counts."""

import re
from typing import Optional

FILLER_WORDS = (
    "um",
    "uh",
    "like",
    "you know",
    "actually",
    "basically",
    "literally",
    "so",
    "well",
    "right",
    "okay",
    "hmm",
    "kind of",
)

# Multi-word fillers first so "you know" is not also counted as two words
_FILLER_PATTERN = re.compile(
    r"\b(?:"
    + "|".join(
        r"\s+".join(re.escape(part) for part in word.split())
        for word in sorted(FILLER_WORDS, key=len, reverse=True)
    )
    + r")\b",
    re.IGNORECASE,
)


def count_words(text: Optional[str]) -> int:
    if not text or not text.strip():
        return 0
    return len(text.split())


def count_filler_words(text: Optional[str]) -> int:
    """Count whole-word, case-insensitive occurrences of the filler vocabulary."""
    if not text:
        return 0
    return len(_FILLER_PATTERN.findall(text))
