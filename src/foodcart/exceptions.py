"""Exceptions raised by the cart engine.

Rejected mutations raise protean's ``ValidationError``, whose ``messages`` is
a dict of field name to list of messages. Reconciliation findings are NOT
exceptions; see ``foodcart.cart.ledger``.
"""

from protean.exceptions import ValidationError


class CrossRestaurantError(ValidationError):
    """An item from a second restaurant was offered to a cart bound to another one.

    Callers are expected to turn this into a "replace cart?" decision rather
    than resolve it silently.
    """

    def __init__(self, bound_restaurant_id: str, attempted_restaurant_id: str):
        self.bound_restaurant_id = bound_restaurant_id
        self.attempted_restaurant_id = attempted_restaurant_id
        super().__init__(
            {
                "restaurant": [
                    f"Cart already holds items from restaurant {bound_restaurant_id}; "
                    f"cannot add items from restaurant {attempted_restaurant_id}"
                ]
            }
        )
