"""Inbound catalogue events: the cart reacts to live price and status pushes.

Catalogue pushes can arrive on any thread, while the cart itself is single
writer. Producers therefore only ``publish`` into the inbox; the thread that
owns the ``CartSession`` calls ``drain`` between UI events, and each event is
applied to completion before the next one is taken.

No event removes a finding. An item coming back into stock, or a restaurant
reopening, is logged and otherwise left for the customer to dismiss.
"""

import queue

import structlog

from foodcart.cart.session import CartSession
from foodcart.catalogue.events import (
    MenuItemAvailabilityChanged,
    MenuItemPriceChanged,
    RestaurantStatusChanged,
)

logger = structlog.get_logger(__name__)


class CatalogueEventInbox:
    """Queues catalogue events and applies them to one cart session."""

    def __init__(self, session: CartSession):
        self.session = session
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._handlers = {
            MenuItemPriceChanged: self.on_price_changed,
            MenuItemAvailabilityChanged: self.on_availability_changed,
            RestaurantStatusChanged: self.on_restaurant_status_changed,
        }

    def publish(self, event) -> None:
        """Enqueue ``event``. Safe to call from any thread."""
        if type(event) not in self._handlers:
            raise TypeError(f"Unsupported catalogue event: {type(event).__name__}")
        self._queue.put(event)

    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> int:
        """Apply every queued event in arrival order. Returns how many were applied."""
        applied = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            self.handle(event)
            applied += 1

        if applied:
            logger.info(
                "Catalogue events applied",
                cart_id=self.session.cart.id,
                count=applied,
                findings=len(self.session.findings),
            )
        return applied

    def handle(self, event) -> None:
        self._handlers[type(event)](event)

    # -------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------
    def on_price_changed(self, event: MenuItemPriceChanged) -> None:
        line = self.session.get_line(event.item_id)
        if line is None:
            logger.debug("Price change for an item not in the cart", item_id=event.item_id)
            return
        if line.restaurant_id != event.restaurant_id:
            logger.debug(
                "Price change from a restaurant the line does not belong to",
                item_id=event.item_id,
                restaurant_id=event.restaurant_id,
            )
            return

        self.session.report_price_change(event.item_id, event.new_price)

    def on_availability_changed(self, event: MenuItemAvailabilityChanged) -> None:
        line = self.session.get_line(event.item_id)
        if line is None:
            logger.debug("Availability change for an item not in the cart", item_id=event.item_id)
            return

        if event.is_available:
            logger.info("Item back in stock; existing findings are kept", item_id=event.item_id)
            return

        fresh = line.menu_item.model_copy(update={"is_available": False})
        self.session.reconcile(fresh_menu_items=[fresh])

    def on_restaurant_status_changed(self, event: RestaurantStatusChanged) -> None:
        restaurant = self.session.restaurant
        if restaurant is None or restaurant.id != event.restaurant_id:
            logger.debug("Status change for a restaurant the cart is not bound to", restaurant_id=event.restaurant_id)
            return

        update = {"is_open": event.is_open}
        if event.name:
            update["name"] = event.name
        fresh = restaurant.model_copy(update=update)

        # Keep the bound snapshot current either way; only a closure is a finding
        self.session.refresh_restaurant(fresh)
        if not event.is_open:
            self.session.reconcile(fresh_restaurant=fresh)
