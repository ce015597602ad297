"""Inbound webhook events and the actions handed back to the rendering layer."""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class CallStartEvent(BaseModel):
    """A new call reached the agent."""
    call_id: str


class TurnEvent(BaseModel):
    """One recognized caller utterance (possibly empty) for an existing call."""
    call_id: str
    transcript: str = ""
    requested_stage: Optional[str] = None


class CallEndEvent(BaseModel):
    """The transport reported that the call is over."""
    call_id: str


class Disposition(str, Enum):
    """How a call ended."""
    TRANSFER = "transfer"
    OFFER_ACCEPTED = "offer_accepted"
    KEPT = "kept"
    RETURN_CONFIRMED = "return_confirmed"
    ENDED = "ended"


class TurnOutcome(str, Enum):
    """How a single turn was resolved. Drives logging and metrics."""
    ADVANCED = "advanced"
    AMBIGUOUS = "ambiguous"
    ORDER_ID_MISSING = "order_id_missing"
    NOT_FOUND = "not_found"
    EMPTY_INPUT = "empty_input"
    TRANSFER = "transfer"
    CALL_OVER = "call_over"


class HangupAction(BaseModel):
    """Speak a final message and end the call."""
    speak: str
    hangup: Literal[True] = True
    disposition: Disposition = Disposition.ENDED
    language: str = "en-US"
    voice: str = "Polly.Joanna"


class GatherAction(BaseModel):
    """Speak a prompt and listen for the caller's next utterance."""
    speak: str
    expect_speech_next: Literal[True] = True
    next_stage_hint: str
    vocabulary_hints: list[str] = Field(default_factory=list)
    language: str = "en-US"
    voice: str = "Polly.Joanna"
    speech_timeout: str = "auto"


Action = Union[HangupAction, GatherAction]
