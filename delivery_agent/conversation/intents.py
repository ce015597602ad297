"""
Keyword intent classification for caller transcripts.

Rules are data: each intent owns a list of whole-word phrases, compiled
once into a word-boundary regex. A second table of negation guards removes
negated mentions ("I don't want to keep it") before the rule is re-checked,
so a guarded intent only fires on an un-negated mention.

Classification is deliberately strict. Generic negations such as "don't"
or "do not" are not a "no" on their own ("I don't know"), and anything that
matches no rule yields an empty intent set, which callers must treat as
unclear rather than as a yes or a no.

Usage:
    classifier = IntentClassifier()
    intents = classifier.classify("no thanks, I want to return it")
    # frozenset({Intent.NEGATIVE, Intent.WANTS_RETURN})
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    """Intents a single transcript can assert. Several may fire together."""
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"
    DECLINES_OFFER = "declines_offer"
    WANTS_RETURN = "wants_return"
    WANTS_KEEP = "wants_keep"
    WANTS_TRANSFER = "wants_transfer"


@dataclass(frozen=True)
class IntentRule:
    """Whole-word phrases that assert an intent."""
    intent: Intent
    phrases: tuple[str, ...]


@dataclass(frozen=True)
class NegationGuard:
    """Pattern for negated mentions that must not count toward an intent."""
    intent: Intent
    pattern: str


INTENT_RULES: list[IntentRule] = [
    IntentRule(Intent.AFFIRMATIVE, (
        "YES", "YEAH", "YEP", "OKAY", "OK", "SURE", "ACCEPT", "APPLY", "TAKE",
    )),
    IntentRule(Intent.NEGATIVE, (
        "NO", "NOPE", "NAH", "NOT NOW", "STOP", "CANCEL",
    )),
    IntentRule(Intent.DECLINES_OFFER, (
        "NOT INTERESTED", "DECLINE", "PASS", "REFUND", "RETURN ANYWAY",
    )),
    IntentRule(Intent.WANTS_RETURN, (
        "RETURN", "RETURNING", "REFUND", "SEND BACK", "SEND IT BACK",
        "CANCEL ORDER", "CANCEL THE ORDER", "CANCEL MY ORDER", "EXCHANGE",
    )),
    IntentRule(Intent.WANTS_KEEP, (
        "KEEP", "KEEP IT", "KEEP THE ORDER", "KEEP THE PRODUCT",
    )),
    IntentRule(Intent.WANTS_TRANSFER, (
        "TRANSFER", "AGENT", "REPRESENTATIVE", "HUMAN", "LIVE PERSON", "SOMEONE",
        "SUPERVISOR", "MANAGER", "TALK TO", "SPEAK TO",
    )),
]

NEGATION_GUARDS: list[NegationGuard] = [
    NegationGuard(Intent.WANTS_KEEP, r"\b(?:DON'T|DONT|DO NOT|NOT|NEVER|NO)\b.*\bKEEP\b"),
    NegationGuard(Intent.AFFIRMATIVE, r"\bNOT\s+(?:SURE|OKAY|OK)\b"),
    # "I don't want to take it", "never accept that"
    NegationGuard(
        Intent.AFFIRMATIVE,
        r"\b(?:DON'T|DONT|DO NOT|NOT|NEVER)\b(?:\s+\w+){0,3}\s+(?:ACCEPT|APPLY|TAKE)\b",
    ),
]


def _compile_phrases(phrases: tuple[str, ...]) -> re.Pattern[str]:
    # Longest first so multi-word phrases win over their prefixes.
    alternatives = sorted(phrases, key=len, reverse=True)
    body = "|".join(r"\s+".join(map(re.escape, p.split())) for p in alternatives)
    return re.compile(rf"\b(?:{body})\b")


def prepare_transcript(text: Optional[str]) -> str:
    """Upper-case and straighten typographic apostrophes so rules see one spelling."""
    if not text:
        return ""
    return text.replace("’", "'").replace("‘", "'").upper().strip()


class IntentClassifier:
    """Maps a raw transcript to the set of intents it asserts."""

    def __init__(
        self,
        rules: Optional[list[IntentRule]] = None,
        guards: Optional[list[NegationGuard]] = None,
    ) -> None:
        self._rules = [
            (rule.intent, _compile_phrases(rule.phrases)) for rule in (rules or INTENT_RULES)
        ]
        self._guards: dict[Intent, list[re.Pattern[str]]] = {}
        for guard in guards if guards is not None else NEGATION_GUARDS:
            self._guards.setdefault(guard.intent, []).append(re.compile(guard.pattern))

    def classify(self, text: Optional[str]) -> frozenset[Intent]:
        """Return every intent asserted by ``text``. Empty set means unclear."""
        prepared = prepare_transcript(text)
        if not prepared:
            return frozenset()

        found: set[Intent] = set()
        for intent, pattern in self._rules:
            if pattern.search(prepared) and not self._negated(intent, pattern, prepared):
                found.add(intent)

        logger.debug("Classified %r as %s", text, sorted(i.value for i in found))
        return frozenset(found)

    def _negated(self, intent: Intent, pattern: re.Pattern[str], prepared: str) -> bool:
        """True when every mention of the intent sits inside a negated span."""
        guards = self._guards.get(intent)
        if not guards:
            return False
        remaining = prepared
        for guard in guards:
            remaining = guard.sub(" ", remaining)
        return pattern.search(remaining) is None

    def is_affirmative(self, text: Optional[str]) -> bool:
        return Intent.AFFIRMATIVE in self.classify(text)

    def is_negative(self, text: Optional[str]) -> bool:
        return Intent.NEGATIVE in self.classify(text)

    def wants_return(self, text: Optional[str]) -> bool:
        return Intent.WANTS_RETURN in self.classify(text)

    def wants_keep(self, text: Optional[str]) -> bool:
        return Intent.WANTS_KEEP in self.classify(text)

    def wants_transfer(self, text: Optional[str]) -> bool:
        return Intent.WANTS_TRANSFER in self.classify(text)
