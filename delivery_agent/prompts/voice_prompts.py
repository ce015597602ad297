"""
Spoken prompt text and recognizer hints for every dialog stage.

Prompts are short, one question each, and always tell the caller which
words the agent is listening for. Empty-input re-prompts are worded
differently from re-prompts after an unclear answer so the two cases can
be told apart on a call recording.
"""

from delivery_agent.schemas.order_schema import Offer, Order
from delivery_agent.schemas.session_schema import ConversationStage

ORDER_ID_HINTS = ["one", "two", "three", "numbers"]
RETURN_KEEP_HINTS = ["return", "keep", "keep it"]
YES_NO_HINTS = ["yes", "no"]

VOCABULARY_HINTS: dict[ConversationStage, list[str]] = {
    ConversationStage.VERIFY_ORDER: ORDER_ID_HINTS,
    ConversationStage.AFTER_DELIVERY: RETURN_KEEP_HINTS,
    ConversationStage.RETENTION_OFFER: YES_NO_HINTS,
    ConversationStage.HUMAN_OFFER: YES_NO_HINTS,
    ConversationStage.RETURN_CONFIRM: YES_NO_HINTS,
}

GREETING = (
    "Hello! This is the delivery assistant. Please say your Order I D. "
    "For example, say: one two three."
)

RETURN_OR_KEEP = "If you want to return the product, say: I want to return. Otherwise say keep."

# Caller said nothing the recognizer could pick up.
EMPTY_INPUT_PROMPTS: dict[ConversationStage, str] = {
    ConversationStage.VERIFY_ORDER: "I did not catch that. Please say your Order I D, like one two three.",
    ConversationStage.AFTER_DELIVERY: RETURN_OR_KEEP,
    ConversationStage.RETENTION_OFFER: "Please say yes to accept the offer or no to hear another offer.",
    ConversationStage.HUMAN_OFFER: "Would you like me to transfer you to a live human agent?",
    ConversationStage.RETURN_CONFIRM: (
        "Are you really sure you want to return the product? Please say yes or no."
    ),
}

# Caller said something, but not a decisive answer.
UNCLEAR_PROMPTS: dict[ConversationStage, str] = {
    ConversationStage.VERIFY_ORDER: (
        "I did not hear an order number. Please say your order I D, for example: one two three."
    ),
    ConversationStage.AFTER_DELIVERY: (
        "Sorry, I did not get that. If you want to return the product, "
        "say: I want to return. Otherwise say: keep."
    ),
    ConversationStage.RETENTION_OFFER: (
        "I did not catch that. You can say yes to accept or no to hear another offer."
    ),
    ConversationStage.HUMAN_OFFER: "Please say yes to transfer to a human agent, or no to continue.",
    ConversationStage.RETURN_CONFIRM: "Please say yes to confirm return or no to keep the order.",
}

ORDER_NOT_FOUND = (
    "I couldn't find that order I D. Please say your order I D, for example: one two three."
)
HUMAN_OFFER = "Would you like me to transfer you to a live human agent to help with your return?"
RETURN_CONFIRM = "Are you really sure you want to return the product? Please say yes or no."

TRANSFERRING = "Okay, transferring the call. Goodbye."
KEEP_CONFIRMED = (
    "Okay, thanks for confirming. We will proceed with delivery as scheduled. Have a great day!"
)
RETURN_CONFIRMED = (
    "Okay. Your return request is confirmed. "
    "We will send you the return instructions by email. Thank you!"
)
RETURN_WITHDRAWN = "Okay, we will proceed with delivery as scheduled. Thank you!"
CALL_OVER = "Thanks for calling. Goodbye."


def delivery_status(order: Order) -> str:
    """Read back the verified order and ask whether the caller wants to return it."""
    return (
        f"Order {order.id} for {order.product} is scheduled for delivery on "
        f"{order.delivery_date.isoformat()}. {RETURN_OR_KEEP}"
    )


def offer_pitch(offer: Offer) -> str:
    return (
        f"We can offer you {offer.description}. Would you like to accept this offer? "
        "You can say yes or no."
    )


def first_offer(offer: Offer) -> str:
    return f"I can help with a return, but first, let me offer you something better. {offer_pitch(offer)}"


def next_offer(offer: Offer) -> str:
    return f"No problem. How about this: {offer_pitch(offer)}"


def offer_accepted(offer: Offer) -> str:
    return (
        "Okay, we will proceed with the delivery of this product with the offer of "
        f"{offer.description}. Thank you!"
    )
