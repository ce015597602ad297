"""Retention offer sequencing."""

import logging
from typing import Sequence

from delivery_agent.schemas.order_schema import Offer

logger = logging.getLogger(__name__)


def parse_offers(raw: str) -> list[Offer]:
    """
    Parse ``CODE:description|CODE:description`` into an ordered offer list.

    Examples:
        >>> [o.code for o in parse_offers("BOGO:Buy One Get One|50_OFF:50% discount")]
        ['BOGO', '50_OFF']
    """
    offers: list[Offer] = []
    for chunk in raw.split("|"):
        chunk = chunk.strip()
        if not chunk:
            continue
        code, sep, description = chunk.partition(":")
        if not sep or not code.strip() or not description.strip():
            raise ValueError(f"Invalid retention offer entry: {chunk!r}")
        offers.append(Offer(code=code.strip(), description=description.strip()))
    if not offers:
        raise ValueError("At least one retention offer is required")
    return offers


class OfferSequencer:
    """
    Fixed, ordered list of retention offers with cyclic indexing.

    The first offer is the strongest retention hook. The engine uses
    ``is_last`` to decide when to stop cycling and offer a human agent.
    """

    def __init__(self, offers: Sequence[Offer]) -> None:
        if not offers:
            raise ValueError("OfferSequencer needs at least one offer")
        self._offers: tuple[Offer, ...] = tuple(offers)

    def offer_at(self, index: int) -> Offer:
        """Return the offer at ``index`` modulo the list length. Never fails."""
        return self._offers[index % len(self._offers)]

    def is_last(self, index: int) -> bool:
        return index == len(self._offers) - 1

    def __len__(self) -> int:
        return len(self._offers)

    @classmethod
    def from_config(cls, raw: str) -> "OfferSequencer":
        offers = parse_offers(raw)
        logger.debug("Retention offers: %s", [o.code for o in offers])
        return cls(offers)
