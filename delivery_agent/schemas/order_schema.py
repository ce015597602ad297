"""Order catalog and retention offer models."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class Order(BaseModel):
    """Catalog entry for a single order. Read-only after load."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(pattern=r"^\d+$")
    product: str
    price_minor_units: int = Field(ge=0)
    delivery_date: date


class Offer(BaseModel):
    """A retention incentive presented to a caller who wants to return."""

    model_config = ConfigDict(frozen=True)

    code: str
    description: str
