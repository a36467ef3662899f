"""Shared pytest fixtures for the dealership admin tests."""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from api_client import SessionContext
from domain.models import CartLineItem, CustomerDetails
from fixtures import FakeClock, make_product


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    return SessionContext(token="test-token", base_url="http://backend.test/api")


@pytest.fixture
def client(session):
    """ApiClient stand-in: each verb is a MagicMock, the session is real."""
    mock = MagicMock()
    mock.session = session
    mock.get.return_value = []
    mock.post.return_value = None
    mock.put.return_value = None
    mock.delete.return_value = None
    return mock


@pytest.fixture
def product():
    return make_product(product_id="p1")


@pytest.fixture
def customer():
    return CustomerDetails(
        customer_name="Asha Patil",
        phone="9876543210",
        address="12 MG Road",
        city="Nashik",
        state="Maharashtra",
        code="27",
        payment_type="upi",
    )


@pytest.fixture
def two_unit_cart():
    """rate 50000 x 2, model accessory charge 1000."""
    return [CartLineItem(product=make_product(rate=50000, accessory_charge=1000, product_id="p1"), quantity=2)]


@pytest.fixture
def cart_total():
    return Decimal("100000")
