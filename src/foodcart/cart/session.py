"""Cart session: the surface the presentation layer talks to.

A ``CartSession`` pairs one ``Cart`` with its ``ErrorLedger`` for the length
of an ordering session. It is constructed explicitly and handed to whatever
owns the UI session; there is no module-level cart.

Derived values (item count, minimum-order gap, error flag) are computed from
the cart on every read and never stored. After each call the session collects
the events the cart raised and hands them to event subscribers; snapshot
subscribers get a fresh ``CartSnapshot`` whenever the cart or its findings
changed. A subscriber that raises is logged and skipped: the change it was
told about has already happened.
"""

from collections.abc import Callable
from contextlib import contextmanager
from decimal import Decimal

import structlog

from foodcart.cart.cart import Cart, CartLine, CartSnapshot
from foodcart.cart.events import CartCleared
from foodcart.cart.ledger import ErrorLedger, FindingKind
from foodcart.cart.pricing import CartTotals
from foodcart.catalogue.menu import MenuItem, Restaurant
from foodcart.catalogue.money import ZERO, round_money
from foodcart.config import Settings
from foodcart.domain import foodcart

logger = structlog.get_logger(__name__)

Listener = Callable[[CartSnapshot], None]
EventListener = Callable[[object], None]


class CartSession:
    def __init__(self, cart: Cart | None = None, ledger: ErrorLedger | None = None):
        if cart is None:
            with foodcart.domain_context():
                cart = Cart.create()

        self.cart = cart
        self.ledger = ledger if ledger is not None else ErrorLedger()
        self._listeners: list[Listener] = []
        self._event_listeners: list[EventListener] = []

    @classmethod
    def create(cls, settings: Settings | None = None) -> "CartSession":
        """Start a session priced with the configured tax rate and delivery floor."""
        settings = settings or Settings.from_env()
        with foodcart.domain_context():
            return cls(Cart.create(policy=settings.pricing_policy()))

    # -------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------
    @staticmethod
    def _register(registry: list, listener) -> Callable[[], None]:
        registry.append(listener)

        def unsubscribe() -> None:
            if listener in registry:
                registry.remove(listener)

        return unsubscribe

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a snapshot after every change. Returns an unsubscribe callable."""
        return self._register(self._listeners, listener)

    def subscribe_events(self, listener: EventListener) -> Callable[[], None]:
        """Call ``listener`` with each domain event the cart raises. Returns an unsubscribe callable."""
        return self._register(self._event_listeners, listener)

    def _call(self, listener, payload) -> None:
        try:
            listener(payload)
        except Exception:
            logger.exception(
                "Cart subscriber failed",
                cart_id=self.cart.id,
                listener=getattr(listener, "__qualname__", repr(listener)),
            )

    def _hand_off(self, events: list) -> None:
        for event in events:
            if isinstance(event, CartCleared):
                self.ledger.clear()
            for listener in list(self._event_listeners):
                self._call(listener, event)

    @contextmanager
    def _mutation(self):
        findings_before = list(self.ledger.findings)
        try:
            with foodcart.domain_context():
                yield
        finally:
            events = self.cart.collect_events()
            self._hand_off(events)

            # Listeners only hear about calls that changed something
            if events or self.ledger.findings != findings_before:
                snapshot = self.cart.snapshot()
                for listener in list(self._listeners):
                    self._call(listener, snapshot)

    # -------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[CartLine]:
        return list(self.cart.lines)

    @property
    def restaurant(self) -> Restaurant | None:
        return self.cart.restaurant.as_restaurant() if self.cart.restaurant is not None else None

    @property
    def totals(self) -> CartTotals:
        return self.cart.totals

    @property
    def subtotal(self) -> Decimal:
        return self.cart.subtotal

    @property
    def delivery_fee(self) -> Decimal:
        return self.cart.delivery_fee

    @property
    def tax(self) -> Decimal:
        return self.cart.tax

    @property
    def total(self) -> Decimal:
        return self.cart.total

    @property
    def findings(self) -> list:
        return list(self.ledger.findings)

    def snapshot(self) -> CartSnapshot:
        return self.cart.snapshot()

    # -------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------
    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.cart.lines)

    @property
    def is_empty(self) -> bool:
        return self.cart.is_empty

    @property
    def is_minimum_order_met(self) -> bool:
        restaurant = self.cart.restaurant
        return restaurant is None or self.cart.subtotal >= restaurant.minimum_order

    @property
    def remaining_for_minimum(self) -> Decimal:
        if self.is_minimum_order_met:
            return ZERO
        return round_money(self.cart.restaurant.minimum_order - self.cart.subtotal)

    @property
    def has_errors(self) -> bool:
        return self.ledger.has_errors

    @property
    def is_ready_for_checkout(self) -> bool:
        """Advisory only; submission is gated by the caller, not here."""
        return not self.is_empty and not self.has_errors and self.is_minimum_order_met

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_line(self, item_id: str) -> CartLine | None:
        return self.cart.get_line(item_id)

    def is_item_in_cart(self, item_id: str) -> bool:
        return self.cart.get_line(item_id) is not None

    def get_quantity(self, item_id: str) -> int:
        line = self.cart.get_line(item_id)
        return line.quantity if line else 0

    def can_add(self, restaurant: Restaurant) -> bool:
        return self.cart.can_add(restaurant)

    # -------------------------------------------------------------------
    # Cart operations
    # -------------------------------------------------------------------
    def add_item(self, menu_item: MenuItem, restaurant: Restaurant, quantity: int = 1) -> CartLine:
        with self._mutation():
            return self.cart.add_line(menu_item, restaurant, quantity)

    def remove_item(self, item_id: str) -> None:
        with self._mutation():
            self.cart.remove_line(item_id)

    def set_quantity(self, item_id: str, quantity: int) -> None:
        with self._mutation():
            self.cart.set_quantity(item_id, quantity)

    def increment_line(self, item_id: str) -> None:
        line = self.cart.get_line(item_id)
        if line is None:
            return
        self.set_quantity(item_id, line.quantity + 1)

    def decrement_line(self, item_id: str) -> None:
        line = self.cart.get_line(item_id)
        if line is None:
            return
        if line.quantity - 1 <= 0:
            self.remove_item(item_id)
        else:
            self.set_quantity(item_id, line.quantity - 1)

    def clear(self) -> None:
        """Empty the cart; its findings go with it."""
        with self._mutation():
            self.cart.clear()

    def replace_cart(self, menu_item: MenuItem, restaurant: Restaurant, quantity: int = 1) -> CartLine:
        """Start over with ``menu_item``: the "replace cart?" answer to a cross-restaurant add.

        Input is checked against a fresh cart first, so invalid input leaves
        the current cart untouched.
        """
        with self._mutation():
            Cart.create(policy=self.cart.policy).add_line(menu_item, restaurant, quantity)

            logger.info(
                "Replacing cart contents",
                cart_id=self.cart.id,
                previous_restaurant_id=self.cart.bound_restaurant_id,
                restaurant_id=restaurant.id,
            )
            self.cart.clear()
            return self.cart.add_line(menu_item, restaurant, quantity)

    def refresh_restaurant(self, restaurant: Restaurant) -> None:
        with self._mutation():
            self.cart.refresh_restaurant(restaurant)

    # -------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------
    def reconcile(self, fresh_menu_items=None, fresh_restaurant: Restaurant | None = None) -> list:
        with self._mutation():
            return self.ledger.reconcile(self.cart, fresh_menu_items, fresh_restaurant)

    def report_price_change(self, item_id: str, new_price) -> list:
        with self._mutation():
            return self.ledger.report_price_change(self.cart, item_id, new_price)

    def dismiss(self, index: int) -> None:
        with self._mutation():
            self.ledger.dismiss(index)

    def clear_errors(self) -> None:
        with self._mutation():
            self.ledger.clear()

    def accept_price_change(self, item_id: str) -> bool:
        """Apply a reported price change to the line and drop its finding.

        Returns False when no price change is recorded for ``item_id``.
        """
        finding = self.ledger.find(FindingKind.PRICE_CHANGED, item_id)
        if finding is None:
            return False

        with self._mutation():
            self.cart.accept_price(item_id, finding.new_price)
            self.ledger.discard(FindingKind.PRICE_CHANGED, item_id)
        return True

    def remove_unavailable_items(self) -> list[str]:
        """Remove every line flagged unavailable and drop those findings.

        Returns the removed item ids.
        """
        item_ids = [
            finding.item_id for finding in self.ledger.findings if finding.kind == FindingKind.UNAVAILABLE_ITEM
        ]

        with self._mutation():
            for item_id in item_ids:
                self.cart.remove_line(item_id)
                self.ledger.discard(FindingKind.UNAVAILABLE_ITEM, item_id)

        if item_ids:
            logger.info("Removed unavailable items", cart_id=self.cart.id, item_ids=item_ids)
        return item_ids
