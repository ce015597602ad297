"""Candidate order identifier extraction from a raw transcript."""

import re
from typing import Optional

from delivery_agent.conversation.normalizer import normalize_transcript

MIN_RUN_LENGTH = 2
PREFERRED_RUN_LENGTH = 3

_DIGIT_RUN_RE = re.compile(r"\d{%d,}" % MIN_RUN_LENGTH)


def find_digit_runs(normalized: str) -> list[str]:
    """Return all maximal digit runs of at least MIN_RUN_LENGTH digits, in order."""
    return _DIGIT_RUN_RE.findall(normalized)


def extract_order_id(raw: Optional[str]) -> Optional[str]:
    """
    Extract a candidate order identifier from what the caller said.

    Catalog identifiers are three or more digits, so the first run of that
    length wins over any shorter run, even one that appears earlier. Short
    runs are usually noise ("the second one"). Only when no run reaches
    three digits is the first two-digit run returned.

    The result is a candidate only; the caller checks it against the catalog.

    Examples:
        >>> extract_order_id("one two three")
        '123'
        >>> extract_order_id("hello there") is None
        True
    """
    if not raw or not raw.strip():
        return None

    runs = find_digit_runs(normalize_transcript(raw))
    if not runs:
        return None
    return next((run for run in runs if len(run) >= PREFERRED_RUN_LENGTH), runs[0])
