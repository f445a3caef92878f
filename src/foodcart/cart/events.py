"""Domain events for the Cart aggregate."""

from protean.fields import Boolean, Decimal, Identifier, Integer

from foodcart.domain import foodcart


@foodcart.event(part_of="Cart")
class CartLineAdded:
    """A menu item was added to the cart, as a new line or onto an existing one."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
    quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@foodcart.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart line was changed."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@foodcart.event(part_of="Cart")
class CartLineRemoved:
    """A line was removed from the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    cart_emptied = Boolean(default=False)


@foodcart.event(part_of="Cart")
class CartCleared:
    """All lines were discarded and the restaurant unbound."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    restaurant_id = Identifier()


@foodcart.event(part_of="Cart")
class CartLinePriceAccepted:
    """The customer accepted a new catalogue price for a line."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_price = Decimal(required=True)
    new_price = Decimal(required=True)


@foodcart.event(part_of="Cart")
class CartRestaurantRefreshed:
    """The bound restaurant snapshot was replaced with fresher terms."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    restaurant_id = Identifier(required=True)
