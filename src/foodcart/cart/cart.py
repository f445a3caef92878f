"""Cart aggregate: the single-restaurant cart a customer builds before checkout.

A cart is either Empty (no lines, no restaurant) or Bound (at least one line,
every line from the same restaurant). The first ``add_line`` binds it;
removing the last line or ``clear`` unbinds it. Offering an item from a
second restaurant to a bound cart is refused with ``CrossRestaurantError``:
delivery fee, minimum order and fulfilment are all per restaurant, so a cart
never mixes them.

Every mutation checks its input first and then applies its changes inside
``atomic_change``, so the post-invariants run once against the finished
state. A rejected mutation leaves the cart exactly as it was.
"""

import decimal

import structlog
from protean import atomic_change, invariant
from protean.fields import Boolean, Decimal, HasMany, Identifier, Integer, String, Text, ValueObject
from pydantic import BaseModel, ConfigDict

from foodcart.cart.events import (
    CartCleared,
    CartLineAdded,
    CartLinePriceAccepted,
    CartLineRemoved,
    CartQuantityUpdated,
    CartRestaurantRefreshed,
)
from foodcart.cart.pricing import (
    BASE_DELIVERY_FEE,
    DEFAULT_POLICY,
    TAX_RATE,
    CartTotals,
    PricingPolicy,
    compute_totals,
)
from foodcart.catalogue.menu import MenuItem, Restaurant
from foodcart.catalogue.money import ZERO, to_money
from foodcart.domain import foodcart
from foodcart.exceptions import CrossRestaurantError, ValidationError

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@foodcart.value_object(part_of="Cart")
class BoundRestaurant:
    """The restaurant terms the cart is priced against, as last seen by the cart."""

    restaurant_id = Identifier(required=True)
    name = String(max_length=255, sanitize=False, default="")
    is_open = Boolean(default=True)
    delivery_fee = Decimal(min_value=0, default=ZERO)
    minimum_order = Decimal(min_value=0, default=ZERO)

    @classmethod
    def from_restaurant(cls, restaurant: Restaurant) -> "BoundRestaurant":
        return cls(
            restaurant_id=restaurant.id,
            name=restaurant.name,
            is_open=restaurant.is_open,
            delivery_fee=restaurant.delivery_fee,
            minimum_order=restaurant.minimum_order,
        )

    def as_restaurant(self) -> Restaurant:
        return Restaurant(
            id=self.restaurant_id,
            name=self.name or "",
            is_open=self.is_open,
            delivery_fee=self.delivery_fee,
            minimum_order=self.minimum_order,
        )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@foodcart.entity(part_of="Cart")
class CartLine:
    """One distinct menu item, priced as it was when added, and how many of it."""

    item_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    name = String(max_length=255, sanitize=False, default="")
    description = Text(sanitize=False, default="")
    category = String(max_length=100, sanitize=False)
    price = Decimal(required=True, min_value=0)
    is_available = Boolean(default=True)
    quantity = Integer(required=True, min_value=1)

    @classmethod
    def from_menu_item(cls, menu_item: MenuItem, quantity: int) -> "CartLine":
        return cls(
            item_id=menu_item.id,
            restaurant_id=menu_item.restaurant_id,
            name=menu_item.name,
            description=menu_item.description,
            category=menu_item.category,
            price=menu_item.price,
            is_available=menu_item.is_available,
            quantity=quantity,
        )

    @property
    def menu_item(self) -> MenuItem:
        return MenuItem(
            id=self.item_id,
            name=self.name or "",
            price=self.price,
            restaurant_id=self.restaurant_id,
            is_available=self.is_available,
            description=self.description or "",
            category=self.category,
        )

    @property
    def line_total(self) -> decimal.Decimal:
        return self.price * self.quantity


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------
class LineSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    menu_item: MenuItem
    quantity: int

    @property
    def item_id(self) -> str:
        return self.menu_item.id

    @property
    def price(self) -> decimal.Decimal:
        return self.menu_item.price

    @property
    def line_total(self) -> decimal.Decimal:
        return self.menu_item.price * self.quantity


class CartSnapshot(BaseModel):
    """Immutable view of a cart at one point in time, handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    cart_id: str
    lines: tuple[LineSnapshot, ...] = ()
    bound_restaurant_id: str | None = None
    subtotal: decimal.Decimal = ZERO
    delivery_fee: decimal.Decimal = ZERO
    tax: decimal.Decimal = ZERO
    total: decimal.Decimal = ZERO


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@foodcart.aggregate
class Cart:
    lines = HasMany(CartLine)
    restaurant = ValueObject(BoundRestaurant)
    subtotal = Decimal(default=ZERO)
    delivery_fee = Decimal(default=ZERO)
    tax = Decimal(default=ZERO)
    total = Decimal(default=ZERO)
    tax_rate = Decimal(min_value=0, max_value=1, default=TAX_RATE)
    base_delivery_fee = Decimal(min_value=0, default=BASE_DELIVERY_FEE)

    @invariant.post
    def cart_with_lines_must_be_bound(self):
        if self.lines and self.restaurant is None:
            raise ValidationError({"restaurant": ["A cart with items must be bound to a restaurant"]})
        if not self.lines and self.restaurant is not None:
            raise ValidationError({"restaurant": ["An empty cart cannot be bound to a restaurant"]})

    @invariant.post
    def lines_must_come_from_the_bound_restaurant(self):
        if self.restaurant is None:
            return
        foreign = [line.item_id for line in self.lines if line.restaurant_id != self.restaurant.restaurant_id]
        if foreign:
            raise ValidationError(
                {"lines": [f"Items {foreign} do not belong to restaurant {self.restaurant.restaurant_id}"]}
            )

    @invariant.post
    def each_item_must_appear_on_one_line(self):
        item_ids = [line.item_id for line in self.lines]
        if len(item_ids) != len(set(item_ids)):
            raise ValidationError({"lines": ["Each menu item may appear on only one line"]})

    @invariant.post
    def line_quantities_must_be_positive(self):
        if any(line.quantity < 1 for line in self.lines):
            raise ValidationError({"lines": ["Line quantities must be at least 1"]})

    @invariant.post
    def totals_must_match_lines(self):
        if self.totals != compute_totals(self.lines, self.restaurant, self.policy):
            raise ValidationError({"totals": ["Totals are out of date with the cart lines"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, policy: PricingPolicy | None = None):
        policy = policy or DEFAULT_POLICY
        return cls(lines=[], tax_rate=policy.tax_rate, base_delivery_fee=policy.base_delivery_fee)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def policy(self) -> PricingPolicy:
        return PricingPolicy(tax_rate=self.tax_rate, base_delivery_fee=self.base_delivery_fee)

    @property
    def bound_restaurant_id(self) -> str | None:
        return self.restaurant.restaurant_id if self.restaurant is not None else None

    @property
    def is_empty(self) -> bool:
        return len(self.lines) == 0

    @property
    def totals(self) -> CartTotals:
        return CartTotals(subtotal=self.subtotal, delivery_fee=self.delivery_fee, tax=self.tax, total=self.total)

    def get_line(self, item_id: str) -> CartLine | None:
        return next((line for line in self.lines if line.item_id == item_id), None)

    def can_add(self, restaurant: Restaurant) -> bool:
        """Whether items from ``restaurant`` may go into this cart right now."""
        return self.is_empty or restaurant.id == self.bound_restaurant_id

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(
            cart_id=self.id,
            lines=tuple(LineSnapshot(menu_item=line.menu_item, quantity=line.quantity) for line in self.lines),
            bound_restaurant_id=self.bound_restaurant_id,
            subtotal=self.subtotal,
            delivery_fee=self.delivery_fee,
            tax=self.tax,
            total=self.total,
        )

    def collect_events(self) -> list:
        """Return the events raised since the last call and forget them.

        This is the cart's commit point: the line change tracking a repository
        would flush is reset too, and the next events are numbered under a new
        version.
        """
        events = list(self._events)
        self._events.clear()
        for changes in self._temp_cache.values():
            changes.clear()
        if events:
            self._version += 1
        return events

    def _reprice(self) -> None:
        totals = compute_totals(self.lines, self.restaurant, self.policy)
        self.subtotal = totals.subtotal
        self.delivery_fee = totals.delivery_fee
        self.tax = totals.tax
        self.total = totals.total

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_line(self, menu_item: MenuItem, restaurant: Restaurant, quantity: int = 1) -> CartLine:
        """Add ``quantity`` of ``menu_item``, merging with an existing line for the same item.

        Raises:
            CrossRestaurantError: the cart is bound to a different restaurant.
            ValidationError: ``quantity`` is below 1, or the item does not
                belong to ``restaurant``.
        """
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if menu_item.restaurant_id != restaurant.id:
            message = f"Item {menu_item.id} belongs to restaurant {menu_item.restaurant_id}, not {restaurant.id}"
            raise ValidationError({"menu_item": [message]})
        if not self.can_add(restaurant):
            logger.warning(
                "Rejected item from a different restaurant",
                cart_id=self.id,
                item_id=menu_item.id,
                bound_restaurant_id=self.bound_restaurant_id,
                restaurant_id=restaurant.id,
            )
            raise CrossRestaurantError(self.bound_restaurant_id, restaurant.id)

        line = self.get_line(menu_item.id)
        with atomic_change(self):
            if line is None:
                line = CartLine.from_menu_item(menu_item, quantity)
                self.add_lines(line)
            else:
                line.quantity += quantity
            self.restaurant = BoundRestaurant.from_restaurant(restaurant)
            self._reprice()

        logger.info(
            "Cart line added",
            cart_id=self.id,
            item_id=menu_item.id,
            quantity=quantity,
            line_quantity=line.quantity,
        )
        self.raise_(
            CartLineAdded(
                cart_id=self.id,
                item_id=menu_item.id,
                restaurant_id=restaurant.id,
                quantity=quantity,
                new_quantity=line.quantity,
            )
        )
        return line

    def remove_line(self, item_id: str) -> None:
        """Remove the line for ``item_id``. Removing an absent item does nothing."""
        line = self.get_line(item_id)
        if line is None:
            return

        with atomic_change(self):
            self.remove_lines(line)
            if not self.lines:
                self.restaurant = None
            self._reprice()

        logger.info("Cart line removed", cart_id=self.id, item_id=item_id, cart_emptied=self.is_empty)
        self.raise_(CartLineRemoved(cart_id=self.id, item_id=item_id, cart_emptied=self.is_empty))

    def set_quantity(self, item_id: str, quantity: int) -> None:
        """Set the quantity of an existing line.

        A quantity of zero or less removes the line. An absent item is
        ignored, since UI controls routinely fire twice.
        """
        if quantity <= 0:
            self.remove_line(item_id)
            return

        line = self.get_line(item_id)
        if line is None or line.quantity == quantity:
            return

        previous_quantity = line.quantity
        with atomic_change(self):
            line.quantity = quantity
            self._reprice()

        logger.debug(
            "Cart quantity updated",
            cart_id=self.id,
            item_id=item_id,
            previous_quantity=previous_quantity,
            new_quantity=quantity,
        )
        self.raise_(
            CartQuantityUpdated(
                cart_id=self.id,
                item_id=item_id,
                previous_quantity=previous_quantity,
                new_quantity=quantity,
            )
        )

    def accept_price(self, item_id: str, new_price) -> None:
        """Reprice a line, e.g. after the customer accepts a price change."""
        new_price = to_money(new_price, "new_price")

        line = self.get_line(item_id)
        if line is None or line.price == new_price:
            return

        previous_price = line.price
        with atomic_change(self):
            line.price = new_price
            self._reprice()

        logger.info(
            "Cart line repriced",
            cart_id=self.id,
            item_id=item_id,
            previous_price=str(previous_price),
            new_price=str(new_price),
        )
        self.raise_(
            CartLinePriceAccepted(
                cart_id=self.id,
                item_id=item_id,
                previous_price=previous_price,
                new_price=new_price,
            )
        )

    def refresh_restaurant(self, restaurant: Restaurant) -> None:
        """Swap in a fresher snapshot of the bound restaurant and reprice.

        An empty cart is never bound, so there is nothing to refresh. An
        identical snapshot changes nothing and raises no event.
        """
        if self.is_empty:
            return
        if restaurant.id != self.bound_restaurant_id:
            raise CrossRestaurantError(self.bound_restaurant_id, restaurant.id)

        terms = BoundRestaurant.from_restaurant(restaurant)
        if terms == self.restaurant:
            return

        with atomic_change(self):
            self.restaurant = terms
            self._reprice()

        self.raise_(CartRestaurantRefreshed(cart_id=self.id, restaurant_id=restaurant.id))

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def clear(self) -> None:
        """Empty the cart and unbind the restaurant."""
        restaurant_id = self.bound_restaurant_id

        with atomic_change(self):
            if self.lines:
                self.remove_lines(list(self.lines))
            self.restaurant = None
            self._reprice()

        logger.info("Cart cleared", cart_id=self.id, restaurant_id=restaurant_id)
        self.raise_(CartCleared(cart_id=self.id, restaurant_id=restaurant_id))
