"""Currency amounts.

Amounts are ``Decimal`` throughout, held to the cent. Floats coming from JSON
or UI code are converted through their shortest repr, so ``12.99`` becomes
``Decimal("12.99")`` rather than its binary expansion. Catalogue amounts are
quantized to the cent as they enter, so every total is summed from
whole-cent parts.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from pydantic import AfterValidator, BeforeValidator, Field

from foodcart.exceptions import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value, field: str = "amount") -> Decimal:
    """Convert ``value`` to a finite ``Decimal``.

    Raises:
        ValidationError: ``value`` is not a number, keyed under ``field``.
    """
    try:
        if isinstance(value, float):
            value = Decimal(repr(value))
        elif not isinstance(value, Decimal):
            value = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError({field: [f"{value!r} is not a valid amount"]}) from exc

    if not value.is_finite():
        raise ValidationError({field: [f"{value!r} is not a valid amount"]})
    return value


def round_money(value) -> Decimal:
    """Round to the currency minor unit, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value, field: str = "amount") -> Decimal:
    """Parse a caller-supplied amount and hold it to the cent. Negative amounts are rejected."""
    amount = round_money(to_decimal(value, field))
    if amount < 0:
        raise ValidationError({field: ["Amount cannot be negative"]})
    return amount


def _coerce_amount(value):
    # Leave non-numeric input for pydantic to reject with a proper error
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


Money = Annotated[
    Decimal,
    BeforeValidator(_coerce_amount),
    Field(ge=0, allow_inf_nan=False),
    AfterValidator(round_money),
]
