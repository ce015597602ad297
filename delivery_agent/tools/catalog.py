"""
Order catalog lookup.

The built-in catalog is the demo data set. In production the catalog is
exported from the order system as JSON and pointed to with
ORDER_CATALOG_PATH; it is loaded once at start-up and never mutated.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import ValidationError

from delivery_agent.schemas.order_schema import Order

logger = logging.getLogger(__name__)

DEFAULT_ORDERS: list[dict] = [
    {
        "id": "123",
        "product": "Wireless Headphones",
        "price_minor_units": 2999,
        "delivery_date": "2025-10-01",
    },
    {
        "id": "789",
        "product": "Bluetooth Speaker",
        "price_minor_units": 1499,
        "delivery_date": "2025-09-25",
    },
]


class CatalogError(Exception):
    """Raised when a catalog file cannot be read or contains invalid orders."""


class Catalog:
    """Read-only mapping of order identifier to order record."""

    def __init__(self, orders: Iterable[Order]) -> None:
        self._orders: dict[str, Order] = {}
        for order in orders:
            if order.id in self._orders:
                raise CatalogError(f"Duplicate order id in catalog: {order.id}")
            self._orders[order.id] = order

    def lookup(self, order_id: str) -> Optional[Order]:
        """Exact-match lookup. Identifier cleanup happens before this call."""
        return self._orders.get(order_id)

    def ids(self) -> list[str]:
        return list(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._orders


def _parse_orders(records: list[dict]) -> list[Order]:
    try:
        return [Order.model_validate(record) for record in records]
    except ValidationError as exc:
        raise CatalogError(f"Invalid order record: {exc}") from exc


def default_catalog() -> Catalog:
    """Return the built-in demo catalog."""
    return Catalog(_parse_orders(DEFAULT_ORDERS))


def load_catalog(path: Union[str, Path]) -> Catalog:
    """
    Load a catalog from a JSON file.

    Accepts either a list of order records or an object keyed by order id
    whose values are order records (the ``id`` field may then be omitted).

    Raises:
        CatalogError: If the file is unreadable or any record is invalid.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Cannot read catalog {path}: {exc}") from exc

    if isinstance(raw, dict):
        bad = [key for key, value in raw.items() if not isinstance(value, dict)]
        if bad:
            raise CatalogError(f"Catalog {path} entries must be JSON objects: {bad}")
        records = [{"id": key, **value} for key, value in raw.items()]
    elif isinstance(raw, list):
        records = raw
    else:
        raise CatalogError(f"Catalog {path} must be a JSON list or object")

    catalog = Catalog(_parse_orders(records))
    logger.info("Loaded %d orders from %s", len(catalog), path)
    return catalog


def build_catalog(catalog_path: str = "") -> Catalog:
    """Build the catalog from a configured path, falling back to the demo data."""
    if catalog_path:
        return load_catalog(catalog_path)
    return default_catalog()
