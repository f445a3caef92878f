"""Shared domain and catalogue fixtures for the cart tests."""

from decimal import Decimal

import pytest
from foodcart.cart.cart import Cart
from foodcart.cart.ledger import ErrorLedger
from foodcart.cart.session import CartSession
from foodcart.catalogue.menu import MenuItem, Restaurant
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def foodcart_bed():
    from foodcart.domain import foodcart

    bed = DomainFixture(foodcart)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(foodcart_bed):
    with foodcart_bed.domain_context():
        yield


@pytest.fixture()
def restaurant():
    return Restaurant(
        id="rest-001",
        name="Luigi's",
        delivery_fee=Decimal("3.99"),
        minimum_order=Decimal("15"),
    )


@pytest.fixture()
def other_restaurant():
    return Restaurant(
        id="rest-002",
        name="Sakura",
        delivery_fee=Decimal("1.50"),
        minimum_order=Decimal("20"),
    )


@pytest.fixture()
def pizza(restaurant):
    return MenuItem(id="p1", name="Margherita", price=Decimal("12.99"), restaurant_id=restaurant.id)


@pytest.fixture()
def salad(restaurant):
    return MenuItem(id="p2", name="Caesar Salad", price=Decimal("8.50"), restaurant_id=restaurant.id)


@pytest.fixture()
def sushi(other_restaurant):
    return MenuItem(id="s1", name="Salmon Nigiri", price=Decimal("6.00"), restaurant_id=other_restaurant.id)


@pytest.fixture()
def cart():
    return Cart.create()


@pytest.fixture()
def session():
    return CartSession()


@pytest.fixture()
def ledger():
    return ErrorLedger()
