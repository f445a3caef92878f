"""Tests for Cart aggregate creation, snapshots and invariants."""

from decimal import Decimal

import pytest
from foodcart.cart.cart import BoundRestaurant, Cart, CartLine, CartSnapshot
from foodcart.cart.pricing import PricingPolicy
from foodcart.exceptions import ValidationError


class TestCartCreation:
    def test_starts_empty(self, cart):
        assert cart.lines == []
        assert cart.is_empty
        assert cart.bound_restaurant_id is None
        assert cart.restaurant is None

    def test_starts_with_zero_totals(self, cart):
        assert cart.subtotal == 0
        assert cart.delivery_fee == 0
        assert cart.tax == 0
        assert cart.total == 0

    def test_generates_id(self, cart):
        assert cart.id
        assert Cart.create().id != cart.id

    def test_uses_given_policy(self):
        policy = PricingPolicy(tax_rate=Decimal("0.1"), base_delivery_fee=Decimal("1.99"))
        assert Cart.create(policy=policy).policy == policy

    def test_rejects_tax_rate_above_one(self):
        with pytest.raises(ValidationError):
            Cart(lines=[], tax_rate=Decimal("1.5"))

    def test_no_events_on_creation(self, cart):
        assert cart._events == []


class TestSnapshot:
    def test_empty_snapshot(self, cart):
        snapshot = cart.snapshot()
        assert isinstance(snapshot, CartSnapshot)
        assert snapshot.cart_id == cart.id
        assert snapshot.lines == ()
        assert snapshot.bound_restaurant_id is None
        assert snapshot.total == 0

    def test_snapshot_reflects_lines_and_totals(self, cart, pizza, restaurant):
        cart.add_line(pizza, restaurant, 2)
        snapshot = cart.snapshot()
        assert len(snapshot.lines) == 1
        assert snapshot.lines[0].quantity == 2
        assert snapshot.lines[0].menu_item == pizza
        assert snapshot.bound_restaurant_id == restaurant.id
        assert snapshot.subtotal == cart.subtotal
        assert snapshot.total == cart.total

    def test_snapshot_does_not_follow_later_changes(self, cart, pizza, salad, restaurant):
        cart.add_line(pizza, restaurant)
        snapshot = cart.snapshot()
        cart.add_line(salad, restaurant)
        cart.set_quantity("p1", 4)
        assert len(snapshot.lines) == 1
        assert snapshot.lines[0].quantity == 1

    def test_equal_snapshots_for_unchanged_cart(self, cart, pizza, restaurant):
        cart.add_line(pizza, restaurant)
        assert cart.snapshot() == cart.snapshot()


class TestCartLine:
    def test_line_total(self, pizza):
        line = CartLine.from_menu_item(pizza, 3)
        assert line.line_total == Decimal("38.97")

    def test_copies_item_details(self, pizza):
        line = CartLine.from_menu_item(pizza, 1)
        assert line.item_id == "p1"
        assert line.restaurant_id == "rest-001"
        assert line.name == "Margherita"
        assert line.price == Decimal("12.99")

    def test_rebuilds_menu_item(self, pizza):
        assert CartLine.from_menu_item(pizza, 1).menu_item == pizza

    def test_zero_quantity_rejected(self, pizza):
        with pytest.raises(ValidationError) as exc:
            CartLine.from_menu_item(pizza, 0)
        assert "quantity" in exc.value.messages


class TestBoundRestaurant:
    def test_round_trips_restaurant_terms(self, restaurant):
        assert BoundRestaurant.from_restaurant(restaurant).as_restaurant() == restaurant

    def test_equal_for_identical_terms(self, restaurant):
        assert BoundRestaurant.from_restaurant(restaurant) == BoundRestaurant.from_restaurant(restaurant)

    def test_differs_when_terms_change(self, restaurant):
        closed = restaurant.model_copy(update={"is_open": False})
        assert BoundRestaurant.from_restaurant(restaurant) != BoundRestaurant.from_restaurant(closed)


class TestInvariants:
    def test_cart_after_mutations_is_consistent(self, cart, pizza, salad, restaurant):
        cart.add_line(pizza, restaurant, 2)
        cart.add_line(salad, restaurant)
        cart.set_quantity("p1", 5)
        cart.remove_line("p2")
        assert cart.subtotal == Decimal("64.95")
        assert cart.bound_restaurant_id == restaurant.id

    def test_lines_without_restaurant_are_rejected(self, cart, pizza):
        with pytest.raises(ValidationError) as exc:
            cart.add_lines(CartLine.from_menu_item(pizza, 1))
        assert "restaurant" in exc.value.messages

    def test_line_from_another_restaurant_is_rejected(self, cart, pizza, sushi, restaurant):
        cart.add_line(pizza, restaurant)
        with pytest.raises(ValidationError) as exc:
            cart.add_lines(CartLine.from_menu_item(sushi, 1))
        assert "lines" in exc.value.messages

    def test_second_line_for_the_same_item_is_rejected(self, cart, pizza, restaurant):
        cart.add_line(pizza, restaurant)
        with pytest.raises(ValidationError) as exc:
            cart.add_lines(CartLine.from_menu_item(pizza, 1))
        assert "lines" in exc.value.messages

    def test_stale_totals_are_rejected(self, cart, pizza, restaurant):
        cart.add_line(pizza, restaurant)
        with pytest.raises(ValidationError) as exc:
            cart.subtotal = Decimal("99.99")
        assert "totals" in exc.value.messages

    def test_binding_an_empty_cart_is_rejected(self, cart, restaurant):
        with pytest.raises(ValidationError) as exc:
            cart.restaurant = BoundRestaurant.from_restaurant(restaurant)
        assert "restaurant" in exc.value.messages

    def test_line_quantity_cannot_drop_below_one(self, cart, pizza, restaurant):
        line = cart.add_line(pizza, restaurant)
        with pytest.raises(ValidationError):
            line.quantity = 0
        assert cart.get_line("p1").quantity == 1

    def test_inconsistent_state_cannot_be_constructed(self, pizza):
        with pytest.raises(ValidationError):
            Cart(lines=[CartLine.from_menu_item(pizza, 1)])
