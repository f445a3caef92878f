"""Cart totals.

``compute_totals`` is the single place cart money is derived. It is a pure
function of the lines and the bound restaurant, so the cart can call it after
every mutation and the result is always reproducible from current state.

Every part is rounded to the cent on its own and ``total`` is the sum of the
rounded parts, so a displayed total always adds up.
"""

from collections.abc import Iterable
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from foodcart.catalogue.money import ZERO, round_money

TAX_RATE = Decimal("0.08")
BASE_DELIVERY_FEE = Decimal("2.99")


class PricingPolicy(BaseModel):
    """Platform-wide pricing terms that do not belong to any single restaurant."""

    model_config = ConfigDict(frozen=True)

    tax_rate: Decimal = Field(default=TAX_RATE, ge=0, le=1)
    # Floor applied no matter what a restaurant declares
    base_delivery_fee: Decimal = Field(default=BASE_DELIVERY_FEE, ge=0)


DEFAULT_POLICY = PricingPolicy()


class CartTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = ZERO
    delivery_fee: Decimal = ZERO
    tax: Decimal = ZERO
    total: Decimal = ZERO


def compute_totals(lines: Iterable, restaurant=None, policy: PricingPolicy | None = None) -> CartTotals:
    """Derive subtotal, delivery fee, tax and total for a set of cart lines.

    Args:
        lines: Cart lines (anything with ``price`` and ``quantity``).
        restaurant: The bound restaurant terms (anything with ``delivery_fee``),
            or None for an empty cart.
        policy: Tax rate and delivery floor; defaults to the platform constants.
    """
    policy = policy or DEFAULT_POLICY

    subtotal = sum((line.price * line.quantity for line in lines), Decimal("0"))
    delivery_fee = max(policy.base_delivery_fee, restaurant.delivery_fee) if restaurant is not None else Decimal("0")
    tax = subtotal * policy.tax_rate

    subtotal, delivery_fee, tax = round_money(subtotal), round_money(delivery_fee), round_money(tax)
    return CartTotals(subtotal=subtotal, delivery_fee=delivery_fee, tax=tax, total=subtotal + delivery_fee + tax)
