"""
Conversation engine: one caller turn in, one action out.

The engine is the only writer of session state. For each webhook turn it
checks the call's session out of the SessionStore, classifies the
transcript, resolves the next stage through the transition table and
returns the action the rendering layer should speak. Nothing here raises
on caller input: silence, ambiguity, unknown order numbers and unknown
calls all resolve to a re-prompt or a fresh session.

Usage:
    engine = ConversationEngine.from_settings()
    engine.start_call(CallStartEvent(call_id="CA1"))
    action = engine.handle_turn(TurnEvent(call_id="CA1", transcript="one two three"))
"""

from dataclasses import dataclass, replace
from typing import Callable, Optional

from delivery_agent.config import AppConfig, VoiceConfig, settings
from delivery_agent.conversation.intents import Intent, IntentClassifier
from delivery_agent.conversation.order_id_parser import extract_order_id
from delivery_agent.conversation.session_store import SessionStore
from delivery_agent.conversation.state_machine import TransitionTrigger, next_stage
from delivery_agent.evaluation.metrics import TurnMetrics
from delivery_agent.logging_context import call_scope, get_call_logger
from delivery_agent.prompts import voice_prompts as prompts
from delivery_agent.schemas.call_schema import (
    Action,
    CallEndEvent,
    CallStartEvent,
    Disposition,
    GatherAction,
    HangupAction,
    TurnEvent,
    TurnOutcome,
)
from delivery_agent.schemas.session_schema import ConversationStage, Session
from delivery_agent.tools.catalog import Catalog, build_catalog
from delivery_agent.tools.offers import OfferSequencer

logger = get_call_logger(__name__)

# Stages that are only reachable once an order has been verified.
ORDER_REQUIRED_STAGES = frozenset({
    ConversationStage.AFTER_DELIVERY,
    ConversationStage.RETENTION_OFFER,
    ConversationStage.HUMAN_OFFER,
    ConversationStage.RETURN_CONFIRM,
})


@dataclass
class TurnResult:
    """Outcome of one turn: the updated session copy and what to say next."""
    session: Session
    action: Action
    outcome: TurnOutcome
    trigger: TransitionTrigger
    created_session: bool = False


class ConversationEngine:
    """Deterministic dialog state machine for the delivery support call."""

    def __init__(
        self,
        store: SessionStore,
        catalog: Catalog,
        offers: OfferSequencer,
        classifier: Optional[IntentClassifier] = None,
        metrics: Optional[TurnMetrics] = None,
        voice: Optional[VoiceConfig] = None,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.offers = offers
        self.classifier = classifier or IntentClassifier()
        self.metrics = metrics or TurnMetrics()
        self.voice = voice or VoiceConfig()
        self._handlers: dict[
            ConversationStage, Callable[[Session, str, frozenset[Intent]], TurnResult]
        ] = {
            ConversationStage.VERIFY_ORDER: self._verify_order,
            ConversationStage.AFTER_DELIVERY: self._after_delivery,
            ConversationStage.RETENTION_OFFER: self._retention_offer,
            ConversationStage.HUMAN_OFFER: self._human_offer,
            ConversationStage.RETURN_CONFIRM: self._return_confirm,
        }

    @classmethod
    def from_settings(cls, config: AppConfig = settings) -> "ConversationEngine":
        """Build an engine wired from application configuration."""
        return cls(
            store=SessionStore(
                idle_timeout_sec=config.session.idle_timeout_sec,
                sweep_interval_sec=config.session.sweep_interval_sec,
            ),
            catalog=build_catalog(config.catalog.catalog_path),
            offers=OfferSequencer.from_config(config.offers.retention_offers),
            voice=config.voice,
        )

    # ------------------------------------------------------------------ #
    # Webhook entry points
    # ------------------------------------------------------------------ #

    def start_call(self, event: CallStartEvent) -> Action:
        """Create (or reset) the session at VERIFY_ORDER and greet the caller."""
        with call_scope(event.call_id):
            with self.store.checkout(event.call_id) as (session, created):
                if not created and session.stage != ConversationStage.VERIFY_ORDER:
                    logger.info(
                        "Call start for existing session at %s, restarting dialog",
                        session.stage.value,
                    )
                session.stage = ConversationStage.VERIFY_ORDER
                session.offer_index = 0
                session.order = None
            logger.info("Call started")
            return self._gather(prompts.GREETING, ConversationStage.VERIFY_ORDER)

    def handle_turn(self, event: TurnEvent) -> Action:
        """Process one caller utterance and return the next action."""
        return self.process_turn(event).action

    def process_turn(self, event: TurnEvent) -> TurnResult:
        """Like ``handle_turn`` but returns the full TurnResult."""
        with call_scope(event.call_id):
            with self.store.checkout(event.call_id) as (session, created):
                if created:
                    logger.info("No session for call, starting a fresh one")
                stage = self._effective_stage(session, event.requested_stage)
                result = self.step(session, event.transcript, stage)
                result.created_session = created

                session.stage = result.session.stage
                session.offer_index = result.session.offer_index
                session.order = result.session.order
                session.turn_count += 1

            self._record(stage, result)
            logger.info(
                "Turn at %s -> %s (outcome: %s, trigger: %s)",
                stage.value, result.session.stage.value,
                result.outcome.value, result.trigger.value,
            )
            return result

    def end_call(self, event: CallEndEvent) -> bool:
        """Drop the session for a finished call. Unknown calls are a no-op."""
        with call_scope(event.call_id):
            removed = self.store.delete(event.call_id)
            logger.info("Call ended (session %s)", "removed" if removed else "already gone")
            return removed

    # ------------------------------------------------------------------ #
    # Turn logic
    # ------------------------------------------------------------------ #

    def step(
        self,
        session: Session,
        transcript: Optional[str],
        stage: Optional[ConversationStage] = None,
    ) -> TurnResult:
        """
        Decide the next action for ``transcript`` without touching ``session``
        or the metrics; ``process_turn`` commits and counts the result.

        Returns a TurnResult holding an updated copy of the session. A
        transfer request wins over every stage; otherwise the stage handler
        decides, and anything it cannot classify is re-prompted in place.
        """
        working = replace(session)
        working.stage = stage or session.stage
        text = (transcript or "").strip()
        intents = self.classifier.classify(text) if text else frozenset()
        logger.debug("Transcript at %s: %r -> %s", working.stage.value, text, sorted(intents))

        if Intent.WANTS_TRANSFER in intents:
            logger.info("Caller asked for a transfer")
            return self._hangup(
                working, TransitionTrigger.TRANSFER_REQUESTED, prompts.TRANSFERRING,
                Disposition.TRANSFER, TurnOutcome.TRANSFER,
            )

        if working.stage == ConversationStage.DONE:
            return self._hangup(
                working, TransitionTrigger.UNCLEAR, prompts.CALL_OVER,
                Disposition.ENDED, TurnOutcome.CALL_OVER,
            )

        if not text:
            logger.info("Empty transcript at %s", working.stage.value)
            return self._reprompt(
                working, prompts.EMPTY_INPUT_PROMPTS[working.stage], TurnOutcome.EMPTY_INPUT,
            )

        return self._handlers[working.stage](working, text, intents)

    def _verify_order(self, session: Session, text: str, intents: frozenset[Intent]) -> TurnResult:
        candidate = extract_order_id(text)
        if candidate is None:
            logger.info("No order identifier in transcript")
            return self._reprompt(
                session, prompts.UNCLEAR_PROMPTS[session.stage], TurnOutcome.ORDER_ID_MISSING,
            )

        order = self.catalog.lookup(candidate)
        if order is None:
            logger.info("Order identifier %s not found in catalog", candidate)
            return self._reprompt(
                session, prompts.ORDER_NOT_FOUND, TurnOutcome.NOT_FOUND,
                trigger=TransitionTrigger.ORDER_REJECTED,
            )

        session.order = order
        logger.info("Order %s verified", order.id)
        return self._continue(
            session, TransitionTrigger.ORDER_VERIFIED, prompts.delivery_status(order),
        )

    def _after_delivery(self, session: Session, text: str, intents: frozenset[Intent]) -> TurnResult:
        wants_return = Intent.WANTS_RETURN in intents
        wants_keep = Intent.WANTS_KEEP in intents

        if wants_return and not wants_keep:
            session.offer_index = 0
            return self._continue(
                session, TransitionTrigger.WANTS_RETURN,
                prompts.first_offer(self.offers.offer_at(session.offer_index)),
            )
        if wants_keep and not wants_return:
            return self._hangup(
                session, TransitionTrigger.WANTS_KEEP, prompts.KEEP_CONFIRMED, Disposition.KEPT,
            )
        return self._reprompt(session, prompts.UNCLEAR_PROMPTS[session.stage], TurnOutcome.AMBIGUOUS)

    def _retention_offer(self, session: Session, text: str, intents: frozenset[Intent]) -> TurnResult:
        accepts = Intent.AFFIRMATIVE in intents
        declines = Intent.NEGATIVE in intents or Intent.DECLINES_OFFER in intents

        if accepts and not declines:
            offer = self.offers.offer_at(session.offer_index)
            logger.info("Retention offer %s accepted", offer.code)
            return self._hangup(
                session, TransitionTrigger.OFFER_ACCEPTED, prompts.offer_accepted(offer),
                Disposition.OFFER_ACCEPTED,
            )

        if declines and not accepts:
            if self.offers.is_last(session.offer_index):
                return self._continue(session, TransitionTrigger.OFFERS_EXHAUSTED, prompts.HUMAN_OFFER)
            session.offer_index += 1
            return self._continue(
                session, TransitionTrigger.OFFER_DECLINED,
                prompts.next_offer(self.offers.offer_at(session.offer_index)),
            )

        return self._reprompt(session, prompts.UNCLEAR_PROMPTS[session.stage], TurnOutcome.AMBIGUOUS)

    def _human_offer(self, session: Session, text: str, intents: frozenset[Intent]) -> TurnResult:
        yes = Intent.AFFIRMATIVE in intents
        no = Intent.NEGATIVE in intents

        if yes and not no:
            return self._hangup(
                session, TransitionTrigger.TRANSFER_ACCEPTED, prompts.TRANSFERRING, Disposition.TRANSFER,
            )
        if no and not yes:
            return self._continue(session, TransitionTrigger.TRANSFER_DECLINED, prompts.RETURN_CONFIRM)
        return self._reprompt(session, prompts.UNCLEAR_PROMPTS[session.stage], TurnOutcome.AMBIGUOUS)

    def _return_confirm(self, session: Session, text: str, intents: frozenset[Intent]) -> TurnResult:
        yes = Intent.AFFIRMATIVE in intents
        no = Intent.NEGATIVE in intents

        if yes and not no:
            return self._hangup(
                session, TransitionTrigger.RETURN_CONFIRMED, prompts.RETURN_CONFIRMED,
                Disposition.RETURN_CONFIRMED,
            )
        if no and not yes:
            return self._hangup(
                session, TransitionTrigger.RETURN_WITHDRAWN, prompts.RETURN_WITHDRAWN, Disposition.KEPT,
            )
        return self._reprompt(session, prompts.UNCLEAR_PROMPTS[session.stage], TurnOutcome.AMBIGUOUS)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _record(self, stage: ConversationStage, result: TurnResult) -> None:
        """Update counters for a committed turn. ``stage`` is where the turn started."""
        self.metrics.record_turn(result.outcome, created_session=result.created_session)
        if result.trigger in (TransitionTrigger.WANTS_RETURN, TransitionTrigger.OFFER_DECLINED):
            self.metrics.record_offer()
        # A turn on a finished call repeats the goodbye without a new disposition.
        if isinstance(result.action, HangupAction) and stage != ConversationStage.DONE:
            self.metrics.record_disposition(result.action.disposition)
            logger.info("Call finished with disposition %s", result.action.disposition.value)

    def _effective_stage(self, session: Session, requested: Optional[str]) -> ConversationStage:
        """Requested stage if valid, else the stored stage; never past VERIFY_ORDER without an order."""
        stage = ConversationStage.parse(requested)
        if requested and stage is None:
            logger.warning("Ignoring unknown requested stage %r", requested)
        stage = stage or session.stage

        if stage in ORDER_REQUIRED_STAGES and session.order is None:
            logger.warning("Stage %s requires a verified order, falling back to verify_order", stage.value)
            return ConversationStage.VERIFY_ORDER
        return stage

    def _gather(self, speak: str, stage: ConversationStage) -> GatherAction:
        return GatherAction(
            speak=speak,
            next_stage_hint=stage.value,
            vocabulary_hints=list(prompts.VOCABULARY_HINTS.get(stage, [])),
            language=self.voice.language,
            voice=self.voice.voice,
            speech_timeout=self.voice.speech_timeout,
        )

    def _continue(self, session: Session, trigger: TransitionTrigger, speak: str) -> TurnResult:
        session.stage = next_stage(session.stage, trigger)
        return TurnResult(session, self._gather(speak, session.stage), TurnOutcome.ADVANCED, trigger)

    def _reprompt(
        self,
        session: Session,
        speak: str,
        outcome: TurnOutcome,
        trigger: TransitionTrigger = TransitionTrigger.UNCLEAR,
    ) -> TurnResult:
        session.stage = next_stage(session.stage, trigger)
        return TurnResult(session, self._gather(speak, session.stage), outcome, trigger)

    def _hangup(
        self,
        session: Session,
        trigger: TransitionTrigger,
        speak: str,
        disposition: Disposition,
        outcome: TurnOutcome = TurnOutcome.ADVANCED,
    ) -> TurnResult:
        session.stage = next_stage(session.stage, trigger)
        action = HangupAction(
            speak=speak,
            disposition=disposition,
            language=self.voice.language,
            voice=self.voice.voice,
        )
        return TurnResult(session, action, outcome, trigger)
