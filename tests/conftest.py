"""Shared fixtures for the cart pricing tests."""
import os
import sys
from datetime import date

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from cart_pricing.config.settings import Settings
from cart_pricing.engine import Cart, Customer, Item, Product

TODAY = date(2026, 10, 18)


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    return Settings()


@pytest.fixture
def customer():
    return Customer(id="customer1", email="test@test.com", is_new_customer=False)


@pytest.fixture
def new_customer():
    return Customer(id="customer2", email="new@test.com", is_new_customer=True)


@pytest.fixture
def birthday_customer():
    return Customer(id="customer3", email="bday@test.com", birthday=date(1990, TODAY.month, TODAY.day))


@pytest.fixture
def make_cart(settings):
    """Build a cart for a customer with a fixed calculation date."""
    def _make(customer, *components, today=TODAY):
        cart = Cart(customer, settings=settings, today=today)
        for component in components:
            cart.add_component(component)
        return cart
    return _make


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_product():
    """Shorthand for a Product wrapping a fresh Item."""
    def _make(item_id="item1", price=100, qty=1, **flags):
        return Product(Item(id=item_id, name=f"Product {item_id}", unit_price=price, quantity=qty, **flags))
    return _make
