"""Catalogue snapshots consumed by the cart.

The catalogue (menu fetching, search, ranking) lives outside this package.
The cart only ever sees point-in-time copies of menu items and restaurants,
pushed in by the caller. Both are immutable: fresher truth arrives as a new
snapshot, never as an in-place change.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from foodcart.catalogue.money import Money


class MenuItem(BaseModel):
    """A dish as priced and stocked at the moment the snapshot was taken."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    price: Money
    restaurant_id: str = Field(min_length=1)
    is_available: bool = True
    description: str = ""
    category: str | None = None


class Restaurant(BaseModel):
    """The restaurant-level terms a cart is priced against."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    is_open: bool = True
    delivery_fee: Money = Decimal("0")
    minimum_order: Money = Decimal("0")

    @property
    def display_name(self) -> str:
        return self.name or self.id
