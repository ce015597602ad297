"""Per-call dialog state."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from delivery_agent.schemas.order_schema import Order


class ConversationStage(str, Enum):
    """Position of a call in the dialog."""
    VERIFY_ORDER = "verify_order"
    AFTER_DELIVERY = "after_delivery"
    RETENTION_OFFER = "retention_offer"
    HUMAN_OFFER = "human_offer"
    RETURN_CONFIRM = "return_confirm"
    DONE = "done"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ConversationStage"]:
        """Map a stage name from the transport to a stage, or None if unknown."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass
class Session:
    """
    Mutable state for one active call.

    Owned by the SessionStore. ``order`` is set once the caller's order
    identifier has been verified and is None only at VERIFY_ORDER.
    ``offer_index`` moves forward only while the call sits at RETENTION_OFFER.
    """
    call_id: str
    stage: ConversationStage = ConversationStage.VERIFY_ORDER
    offer_index: int = 0
    order: Optional[Order] = None
    turn_count: int = 0
    created_at: float = 0.0
    last_seen_at: float = 0.0
