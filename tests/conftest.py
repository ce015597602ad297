"""Shared test fixtures and helpers."""

from typing import Optional

import pytest

from delivery_agent.conversation.engine import ConversationEngine, TurnResult
from delivery_agent.conversation.intents import IntentClassifier
from delivery_agent.conversation.session_store import SessionStore
from delivery_agent.evaluation.metrics import TurnMetrics
from delivery_agent.schemas.call_schema import CallStartEvent, TurnEvent
from delivery_agent.tools.catalog import default_catalog
from delivery_agent.tools.offers import OfferSequencer, parse_offers

THREE_OFFERS = "BOGO:Buy One Get One|FREE_ACC:a free accessory|50_OFF:50% discount"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(idle_timeout_sec=900, sweep_interval_sec=60, clock=clock)


@pytest.fixture
def catalog():
    return default_catalog()


@pytest.fixture
def offers():
    return OfferSequencer(parse_offers(THREE_OFFERS))


@pytest.fixture
def classifier():
    return IntentClassifier()


@pytest.fixture
def engine(store, catalog, offers, classifier):
    return ConversationEngine(
        store=store,
        catalog=catalog,
        offers=offers,
        classifier=classifier,
        metrics=TurnMetrics(),
    )


def run_call(
    engine: ConversationEngine,
    transcripts: list[str],
    call_id: str = "CALL-001",
    start: bool = True,
    follow_hints: bool = False,
) -> list[TurnResult]:
    """Drive a call through ``transcripts`` and return every TurnResult.

    With ``follow_hints`` the previous action's stage hint is sent back as
    the requested stage, the way the telephony webhook does it.
    """
    hint: Optional[str] = None
    if start:
        hint = engine.start_call(CallStartEvent(call_id=call_id)).next_stage_hint
    results = []
    for text in transcripts:
        event = TurnEvent(
            call_id=call_id,
            transcript=text,
            requested_stage=hint if follow_hints else None,
        )
        result = engine.process_turn(event)
        results.append(result)
        hint = getattr(result.action, "next_stage_hint", None)
    return results


def stages(results: list[TurnResult]) -> list[str]:
    return [r.session.stage.value for r in results]
