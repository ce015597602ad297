"""
Transition table for the delivery support dialog.

Every stage change the engine makes is looked up here by
``(stage, trigger)``. Re-prompts are explicit self-transitions, so a turn
that cannot be classified confidently stays where it is by construction.
The transfer request is a global trigger, valid from every stage.

Usage:
    next_stage(ConversationStage.VERIFY_ORDER, TransitionTrigger.ORDER_VERIFIED)
    # ConversationStage.AFTER_DELIVERY
"""

import logging
from dataclasses import dataclass
from enum import Enum

from delivery_agent.schemas.session_schema import ConversationStage

logger = logging.getLogger(__name__)


class TransitionTrigger(str, Enum):
    """Events derived from one caller turn."""
    ORDER_VERIFIED = "order_verified"
    ORDER_REJECTED = "order_rejected"
    WANTS_RETURN = "wants_return"
    WANTS_KEEP = "wants_keep"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_DECLINED = "offer_declined"
    OFFERS_EXHAUSTED = "offers_exhausted"
    TRANSFER_ACCEPTED = "transfer_accepted"
    TRANSFER_DECLINED = "transfer_declined"
    RETURN_CONFIRMED = "return_confirmed"
    RETURN_WITHDRAWN = "return_withdrawn"
    UNCLEAR = "unclear"
    TRANSFER_REQUESTED = "transfer_requested"


@dataclass(frozen=True)
class Transition:
    """A single valid stage transition."""
    from_stage: ConversationStage
    to_stage: ConversationStage
    trigger: TransitionTrigger


class InvalidTransitionError(Exception):
    """Raised when a trigger has no transition from the given stage."""


TRANSITIONS: list[Transition] = [
    # --- Order verification ---
    Transition(ConversationStage.VERIFY_ORDER, ConversationStage.AFTER_DELIVERY,
               TransitionTrigger.ORDER_VERIFIED),
    Transition(ConversationStage.VERIFY_ORDER, ConversationStage.VERIFY_ORDER,
               TransitionTrigger.ORDER_REJECTED),
    Transition(ConversationStage.VERIFY_ORDER, ConversationStage.VERIFY_ORDER,
               TransitionTrigger.UNCLEAR),

    # --- Delivery status ---
    Transition(ConversationStage.AFTER_DELIVERY, ConversationStage.RETENTION_OFFER,
               TransitionTrigger.WANTS_RETURN),
    Transition(ConversationStage.AFTER_DELIVERY, ConversationStage.DONE,
               TransitionTrigger.WANTS_KEEP),
    Transition(ConversationStage.AFTER_DELIVERY, ConversationStage.AFTER_DELIVERY,
               TransitionTrigger.UNCLEAR),

    # --- Retention offers ---
    Transition(ConversationStage.RETENTION_OFFER, ConversationStage.DONE,
               TransitionTrigger.OFFER_ACCEPTED),
    Transition(ConversationStage.RETENTION_OFFER, ConversationStage.RETENTION_OFFER,
               TransitionTrigger.OFFER_DECLINED),
    Transition(ConversationStage.RETENTION_OFFER, ConversationStage.HUMAN_OFFER,
               TransitionTrigger.OFFERS_EXHAUSTED),
    Transition(ConversationStage.RETENTION_OFFER, ConversationStage.RETENTION_OFFER,
               TransitionTrigger.UNCLEAR),

    # --- Human agent offer ---
    Transition(ConversationStage.HUMAN_OFFER, ConversationStage.DONE,
               TransitionTrigger.TRANSFER_ACCEPTED),
    Transition(ConversationStage.HUMAN_OFFER, ConversationStage.RETURN_CONFIRM,
               TransitionTrigger.TRANSFER_DECLINED),
    Transition(ConversationStage.HUMAN_OFFER, ConversationStage.HUMAN_OFFER,
               TransitionTrigger.UNCLEAR),

    # --- Final return confirmation ---
    Transition(ConversationStage.RETURN_CONFIRM, ConversationStage.DONE,
               TransitionTrigger.RETURN_CONFIRMED),
    Transition(ConversationStage.RETURN_CONFIRM, ConversationStage.DONE,
               TransitionTrigger.RETURN_WITHDRAWN),
    Transition(ConversationStage.RETURN_CONFIRM, ConversationStage.RETURN_CONFIRM,
               TransitionTrigger.UNCLEAR),

    # --- Terminal ---
    Transition(ConversationStage.DONE, ConversationStage.DONE,
               TransitionTrigger.UNCLEAR),
]

# Applies from every stage and is checked before stage dispatch.
GLOBAL_TRIGGERS: dict[TransitionTrigger, ConversationStage] = {
    TransitionTrigger.TRANSFER_REQUESTED: ConversationStage.DONE,
}

_TABLE: dict[tuple[ConversationStage, TransitionTrigger], ConversationStage] = {
    (t.from_stage, t.trigger): t.to_stage for t in TRANSITIONS
}


def next_stage(stage: ConversationStage, trigger: TransitionTrigger) -> ConversationStage:
    """
    Resolve the stage reached from ``stage`` on ``trigger``.

    Raises:
        InvalidTransitionError: If no transition is defined for the pair.
    """
    if trigger in GLOBAL_TRIGGERS:
        target = GLOBAL_TRIGGERS[trigger]
    else:
        try:
            target = _TABLE[(stage, trigger)]
        except KeyError:
            valid = [t.value for t in valid_triggers(stage)]
            raise InvalidTransitionError(
                f"No valid transition from '{stage.value}' "
                f"with trigger '{trigger.value}'. Valid triggers: {valid}"
            ) from None

    if target != stage:
        logger.debug("Stage transition: %s -> %s (trigger: %s)", stage.value, target.value, trigger.value)
    return target


def valid_triggers(stage: ConversationStage) -> list[TransitionTrigger]:
    """Return all triggers valid from ``stage``, global ones included."""
    return [t.trigger for t in TRANSITIONS if t.from_stage == stage] + list(GLOBAL_TRIGGERS)


def is_terminal(stage: ConversationStage) -> bool:
    return stage == ConversationStage.DONE
