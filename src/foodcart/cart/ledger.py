"""Error ledger: reconciliation findings awaiting a customer decision.

Between adding an item and checking out, the catalogue can move under the
cart: an item sells out, a price changes, the restaurant closes. The ledger
records each such discrepancy as a finding. Findings are data, not errors;
the UI surfaces them and the customer either dismisses them or applies a
remedy (remove the line, accept the new price).

Findings are keyed by ``(kind, item_id)`` so reconciliation can run any number
of times without duplicating them. Nothing here removes a finding on its own:
an ``UnavailableItem`` stays put even if the item comes back, until the caller
dismisses or clears it.

Availability and open status are checked by ``reconcile``. Prices arrive on a
separate live channel and are recorded with ``report_price_change``.
"""

from collections.abc import Mapping
from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Literal, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from foodcart.catalogue.menu import MenuItem, Restaurant
from foodcart.catalogue.money import to_money

logger = structlog.get_logger(__name__)


class FindingKind(StrEnum):
    UNAVAILABLE_ITEM = "unavailable_item"
    PRICE_CHANGED = "price_changed"
    RESTAURANT_CLOSED = "restaurant_closed"


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------
class _Finding(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str = ""

    @property
    def key(self) -> tuple[str, str | None]:
        return (self.kind, getattr(self, "item_id", None))


class UnavailableItem(_Finding):
    kind: Literal["unavailable_item"] = FindingKind.UNAVAILABLE_ITEM.value
    item_id: str


class PriceChanged(_Finding):
    kind: Literal["price_changed"] = FindingKind.PRICE_CHANGED.value
    item_id: str
    original_price: Decimal
    new_price: Decimal


class RestaurantClosed(_Finding):
    kind: Literal["restaurant_closed"] = FindingKind.RESTAURANT_CLOSED.value
    restaurant_id: str | None = None


CartFinding = Annotated[
    Union[UnavailableItem, PriceChanged, RestaurantClosed],
    Field(discriminator="kind"),
]


def _index_menu_items(fresh_menu_items) -> dict[str, MenuItem]:
    if fresh_menu_items is None:
        return {}
    if isinstance(fresh_menu_items, Mapping):
        return dict(fresh_menu_items)
    return {item.id: item for item in fresh_menu_items}


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------
class ErrorLedger(BaseModel):
    findings: list[CartFinding] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return len(self.findings) > 0

    def __len__(self) -> int:
        return len(self.findings)

    def __iter__(self):
        return iter(list(self.findings))

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def _position(self, kind: FindingKind, item_id: str | None = None) -> int | None:
        return next(
            (index for index, finding in enumerate(self.findings) if finding.key == (kind, item_id)),
            None,
        )

    def find(self, kind: FindingKind, item_id: str | None = None):
        """Return the finding with the given key, or None."""
        position = self._position(FindingKind(kind), item_id)
        return self.findings[position] if position is not None else None

    # -------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------
    def _ensure(self, finding) -> bool:
        """Insert ``finding`` unless one with the same key is already recorded."""
        if self._position(*finding.key) is not None:
            return False

        self.findings.append(finding)
        logger.warning("Cart finding recorded", kind=finding.kind, item_id=finding.key[1])
        return True

    def _upsert(self, finding) -> None:
        """Insert ``finding`` or overwrite the one with the same key in place."""
        position = self._position(*finding.key)
        if position is None:
            self.findings.append(finding)
        else:
            self.findings[position] = finding
        logger.warning("Cart finding recorded", kind=finding.kind, item_id=finding.key[1])

    def record_unavailable(self, menu_item: MenuItem) -> bool:
        return self._ensure(
            UnavailableItem(
                item_id=menu_item.id,
                message=f"{menu_item.name} is no longer available",
            )
        )

    def record_closed(self, restaurant: Restaurant) -> bool:
        return self._ensure(
            RestaurantClosed(
                restaurant_id=restaurant.id,
                message=f"{restaurant.display_name} is currently closed",
            )
        )

    def reconcile(self, cart, fresh_menu_items=None, fresh_restaurant: Restaurant | None = None) -> list:
        """Compare the cart against fresh catalogue truth and record discrepancies.

        Args:
            cart: The cart to check.
            fresh_menu_items: Mapping of item id to ``MenuItem``, or an iterable
                of ``MenuItem``. Lines with no fresh counterpart are skipped.
            fresh_restaurant: Fresh snapshot of the bound restaurant, if known.

        Returns:
            A copy of the finding list after reconciliation.
        """
        fresh_items = _index_menu_items(fresh_menu_items)

        for line in cart.lines:
            fresh = fresh_items.get(line.item_id)
            if fresh is not None and not fresh.is_available:
                self.record_unavailable(fresh)

        if fresh_restaurant is not None and not fresh_restaurant.is_open and not cart.is_empty:
            if fresh_restaurant.id == cart.bound_restaurant_id:
                self.record_closed(fresh_restaurant)
            else:
                logger.warning(
                    "Ignoring restaurant status for a restaurant the cart is not bound to",
                    restaurant_id=fresh_restaurant.id,
                    bound_restaurant_id=cart.bound_restaurant_id,
                )

        return list(self.findings)

    def report_price_change(self, cart, item_id: str, new_price) -> list:
        """Record that the catalogue now lists ``item_id`` at ``new_price``.

        A no-op when the item is not in the cart or the price matches the
        price the cart holds. A repeated change for the same item overwrites
        the earlier finding, keeping the cart's price as the original.

        Raises:
            ValidationError: ``new_price`` is not a number, or is negative.
        """
        new_price = to_money(new_price, "new_price")

        line = cart.get_line(item_id)
        if line is None or new_price == line.price:
            return list(self.findings)

        original_price = line.price
        self._upsert(
            PriceChanged(
                item_id=item_id,
                original_price=original_price,
                new_price=new_price,
                message=(
                    f"{line.name} price changed from ${original_price:.2f} to ${new_price:.2f}"
                ),
            )
        )
        return list(self.findings)

    # -------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------
    def dismiss(self, index: int) -> None:
        """Remove the finding at ``index``; out-of-range positions are ignored."""
        if 0 <= index < len(self.findings):
            self.findings.pop(index)

    def discard(self, kind: FindingKind, item_id: str | None = None) -> bool:
        """Remove the finding with the given key. Returns whether one was removed."""
        position = self._position(FindingKind(kind), item_id)
        if position is None:
            return False
        self.findings.pop(position)
        return True

    def clear(self) -> None:
        self.findings.clear()
