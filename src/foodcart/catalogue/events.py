"""Inbound event contracts pushed by the live catalogue feed.

The catalogue service owns these facts; the cart only reacts to them. Each
event carries a fresh value, never a delta.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from foodcart.catalogue.money import Money


class CatalogueEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MenuItemPriceChanged(CatalogueEvent):
    """A menu item is now listed at a different price."""

    __version__ = "v1"

    item_id: str
    restaurant_id: str
    new_price: Money


class MenuItemAvailabilityChanged(CatalogueEvent):
    """A menu item sold out or came back."""

    __version__ = "v1"

    item_id: str
    restaurant_id: str
    is_available: bool


class RestaurantStatusChanged(CatalogueEvent):
    """A restaurant opened or closed."""

    __version__ = "v1"

    restaurant_id: str
    is_open: bool
    name: str = ""
