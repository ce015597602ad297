"""
Transcript normalization for order identifier recovery.

Speech-to-text renders spoken digits as words, homophones ("to", "for",
"ate") or digits with stray punctuation. The normalizer folds all of these
into digit runs:

    >>> normalize_transcript("one two three")
    '123'
    >>> normalize_transcript("Order 7, 8 9 please")
    '789'

The output contains only digits and single spaces. Intent classification
reads the raw transcript, not this form.
"""

import re

# Closed, hand-tuned table. Homophones are included because recognizers
# substitute them for digits when callers read out identifiers.
SPOKEN_DIGITS: dict[str, str] = {
    "ZERO": "0", "OH": "0", "O": "0",
    "ONE": "1",
    "TWO": "2", "TO": "2", "TOO": "2",
    "THREE": "3",
    "FOUR": "4", "FOR": "4",
    "FIVE": "5",
    "SIX": "6",
    "SEVEN": "7",
    "EIGHT": "8", "ATE": "8",
    "NINE": "9",
}

_SPOKEN_DIGIT_RE = re.compile(
    r"\b(" + "|".join(sorted(SPOKEN_DIGITS, key=len, reverse=True)) + r")\b"
)
_NON_DIGIT_RUN_RE = re.compile(r"[^\d]+")
_SPACED_DIGITS_RE = re.compile(r"\d(?:\s+\d)+")


def words_to_digits(text: str) -> str:
    """Replace whole-word number names in upper-cased text with digits."""
    return _SPOKEN_DIGIT_RE.sub(lambda m: SPOKEN_DIGITS[m.group(1)], text)


def collapse_spaced_digits(text: str) -> str:
    """Join digits separated only by whitespace: ``"1 2 3"`` -> ``"123"``."""
    return _SPACED_DIGITS_RE.sub(lambda m: re.sub(r"\s+", "", m.group(0)), text)


def normalize_transcript(raw: str) -> str:
    """Fold a raw transcript into digit runs separated by single spaces."""
    text = raw.upper().strip()
    text = words_to_digits(text)
    text = _NON_DIGIT_RUN_RE.sub(" ", text).strip()
    return collapse_spaced_digits(text)
