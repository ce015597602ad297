"""
Turn and call counters for the delivery support agent.

Every turn is recorded with its outcome, so ambiguous answers, unknown
order numbers and silence are counted separately. Terminal actions are
recorded by disposition, which gives the retention rate (offers accepted
plus callers who kept the order) against returns and transfers.
"""

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field

from delivery_agent.schemas.call_schema import Disposition, TurnOutcome

logger = logging.getLogger(__name__)

RETAINED_DISPOSITIONS = (Disposition.OFFER_ACCEPTED, Disposition.KEPT)


@dataclass
class MetricsSnapshot:
    """Point-in-time copy of the counters."""

    turns: int = 0
    outcomes: dict[TurnOutcome, int] = field(default_factory=dict)
    dispositions: dict[Disposition, int] = field(default_factory=dict)
    sessions_created_on_turn: int = 0
    offers_presented: int = 0

    @property
    def calls_completed(self) -> int:
        return sum(self.dispositions.values())

    @property
    def reprompt_rate(self) -> float:
        reprompts = sum(
            self.outcomes.get(o, 0)
            for o in (
                TurnOutcome.AMBIGUOUS,
                TurnOutcome.ORDER_ID_MISSING,
                TurnOutcome.NOT_FOUND,
                TurnOutcome.EMPTY_INPUT,
            )
        )
        return reprompts / max(self.turns, 1)

    @property
    def retention_rate(self) -> float:
        retained = sum(self.dispositions.get(d, 0) for d in RETAINED_DISPOSITIONS)
        return retained / max(self.calls_completed, 1)


class TurnMetrics:
    """Thread-safe counters updated by the conversation engine."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcomes: Counter[TurnOutcome] = Counter()
        self._dispositions: Counter[Disposition] = Counter()
        self._sessions_created_on_turn = 0
        self._offers_presented = 0

    def record_turn(self, outcome: TurnOutcome, created_session: bool = False) -> None:
        with self._lock:
            self._outcomes[outcome] += 1
            if created_session:
                self._sessions_created_on_turn += 1

    def record_disposition(self, disposition: Disposition) -> None:
        with self._lock:
            self._dispositions[disposition] += 1

    def record_offer(self) -> None:
        with self._lock:
            self._offers_presented += 1

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            return MetricsSnapshot(
                turns=sum(self._outcomes.values()),
                outcomes=dict(self._outcomes),
                dispositions=dict(self._dispositions),
                sessions_created_on_turn=self._sessions_created_on_turn,
                offers_presented=self._offers_presented,
            )

    def reset(self) -> None:
        with self._lock:
            self._outcomes.clear()
            self._dispositions.clear()
            self._sessions_created_on_turn = 0
            self._offers_presented = 0

    def format_report(self) -> str:
        """Format the counters into a human-readable report."""
        snap = self.snapshot()

        lines = [
            "=" * 60,
            "DELIVERY ASSISTANT TURN REPORT",
            "=" * 60,
            "",
            "TURNS",
            f"  Total turns:            {snap.turns}",
        ]
        for outcome in TurnOutcome:
            lines.append(f"  {outcome.value + ':':<24}{snap.outcomes.get(outcome, 0)}")
        lines += [
            f"  Re-prompt rate:         {snap.reprompt_rate:.1%}",
            f"  Sessions created late:  {snap.sessions_created_on_turn}",
            "",
            "CALLS",
            f"  Completed calls:        {snap.calls_completed}",
            f"  Offers presented:       {snap.offers_presented}",
        ]
        for disposition in Disposition:
            lines.append(f"  {disposition.value + ':':<24}{snap.dispositions.get(disposition, 0)}")
        lines += [
            f"  Retention rate:         {snap.retention_rate:.1%}",
            "=" * 60,
        ]
        return "\n".join(lines)
