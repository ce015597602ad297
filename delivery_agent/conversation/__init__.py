from delivery_agent.conversation.engine import ConversationEngine, TurnResult
from delivery_agent.conversation.intents import Intent, IntentClassifier
from delivery_agent.conversation.order_id_parser import extract_order_id
from delivery_agent.conversation.session_store import SessionStore
from delivery_agent.conversation.state_machine import (
    InvalidTransitionError,
    TransitionTrigger,
    next_stage,
)

__all__ = [
    "ConversationEngine",
    "TurnResult",
    "Intent",
    "IntentClassifier",
    "extract_order_id",
    "SessionStore",
    "TransitionTrigger",
    "InvalidTransitionError",
    "next_stage",
]
