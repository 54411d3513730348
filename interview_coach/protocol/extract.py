"""
Label-anchored extraction rules for semi-structured model replies.

Each rule works independently of the others and returns None when its label
is absent, leaving the choice of default to the caller.
"""

import re
from typing import List, Optional

from interview_coach.protocol.grammar import (
    DEFAULT_QUESTION_CATEGORY,
    QUESTION_CATEGORY_KEYWORDS,
    RECOGNIZED_LABELS,
)

_LABEL_NAMES = sorted((label.rstrip(":") for label in RECOGNIZED_LABELS), key=len, reverse=True)
_LABEL_ALTERNATION = "|".join(re.escape(name) for name in _LABEL_NAMES)

# "**SCORE:** 8", "## STRENGTHS:" and "SCORE :" all collapse to the bare label
_DECORATED_LABEL = re.compile(
    rf"^[ \t]*(?:[#>]+[ \t]*)?[*_]*(?P<label>{_LABEL_ALTERNATION})[*_]*[ \t]*:[*_]*",
    re.MULTILINE,
)

_NEXT_LABEL = re.compile(rf"^[ \t]*(?:{_LABEL_ALTERNATION}):", re.MULTILINE)

_BULLET = re.compile(r"^\s*(?:-|•|\*(?!\*))\s*(.*\S)\s*$")
_SEPARATOR = re.compile(r"^[-*_=\s]+$")
_NUMBERED = re.compile(r"^(\d+)[.)]\s*(.*)$")


def normalize_labels(text: str) -> str:
    """Strip markdown decoration that models commonly wrap around section labels."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _DECORATED_LABEL.sub(lambda m: f"{m.group('label')}:", text)


def _label_pattern(label: str) -> str:
    # SCORE: must not match inside MATCH_SCORE: or OVERALL_SCORE:
    return rf"(?<![A-Z_]){re.escape(label)}"


def extract_number(text: str, label: str) -> Optional[float]:
    """
    Extract the first number following a label.

    Args:
        text: Model reply
        label: Section label including the trailing colon

    Returns:
        float value, or None if the label is missing or the number is unparseable
    """
    if not text:
        return None

    match = re.search(_label_pattern(label) + r"\s*([0-9.]+)", text)
    if not match:
        return None

    try:
        return float(match.group(1))
    except ValueError:
        return None


def extract_section(text: str, label: str) -> Optional[str]:
    """
    Capture the text between a label and the next recognized label.

    Args:
        text: Model reply
        label: Section label including the trailing colon

    Returns:
        Trimmed section body, or None if the label does not occur
    """
    if not text:
        return None

    match = re.search(_label_pattern(label), text)
    if not match:
        return None

    start = match.end()
    following = _NEXT_LABEL.search(text, start)
    end = following.start() if following else len(text)
    return text[start:end].strip()


def extract_list(text: str, label: str) -> Optional[List[str]]:
    """
    Collect bullet items from a labelled section.

    Args:
        text: Model reply
        label: Section label including the trailing colon

    Returns:
        List of trimmed items (possibly empty), or None if the label does not occur
    """
    section = extract_section(text, label)
    if section is None:
        return None

    items = []
    for line in section.split("\n"):
        match = _BULLET.match(line)
        if not match:
            continue
        item = match.group(1).strip()
        if item and not _SEPARATOR.match(item):
            items.append(item)
    return items


def extract_numbered_lines(text: str) -> List[str]:
    """Return the text of every line that starts with ``<digits>.`` or ``<digits>)``."""
    if not text:
        return []

    lines = []
    for raw_line in text.split("\n"):
        match = _NUMBERED.match(raw_line.strip())
        if match:
            body = match.group(2).strip()
            if body:
                lines.append(body)
    return lines


def categorize_question(question_text: str) -> str:
    """Best-effort keyword categorization of an interview question."""
    lower = question_text.lower()
    for category, keywords in QUESTION_CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return DEFAULT_QUESTION_CATEGORY
