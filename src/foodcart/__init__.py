"""foodcart: single-restaurant cart engine for a food-ordering client."""

from foodcart.cart.cart import BoundRestaurant, Cart, CartLine, CartSnapshot, LineSnapshot
from foodcart.cart.catalogue_events import CatalogueEventInbox
from foodcart.cart.ledger import (
    CartFinding,
    ErrorLedger,
    FindingKind,
    PriceChanged,
    RestaurantClosed,
    UnavailableItem,
)
from foodcart.cart.pricing import BASE_DELIVERY_FEE, TAX_RATE, CartTotals, PricingPolicy, compute_totals
from foodcart.cart.session import CartSession
from foodcart.catalogue.menu import MenuItem, Restaurant
from foodcart.config import Settings
from foodcart.exceptions import CrossRestaurantError, ValidationError

__all__ = [
    "BASE_DELIVERY_FEE",
    "BoundRestaurant",
    "TAX_RATE",
    "Cart",
    "CartFinding",
    "CartLine",
    "CartSession",
    "CartSnapshot",
    "CartTotals",
    "CatalogueEventInbox",
    "CrossRestaurantError",
    "ErrorLedger",
    "FindingKind",
    "LineSnapshot",
    "MenuItem",
    "PriceChanged",
    "PricingPolicy",
    "Restaurant",
    "RestaurantClosed",
    "Settings",
    "UnavailableItem",
    "ValidationError",
    "compute_totals",
]
