"""Shared BDD fixtures and step definitions for the Ordering domain."""

import pytest
from ordering.cart.cart import Cart
from ordering.cart.items import AddCartItem
from ordering.catalogue.port import SaleStatus
from ordering.order.events import OrderCancelled, OrderItemStatusChanged, OrderStatusChanged
from protean import current_domain
from protean.exceptions import ProteanException
from pytest_bdd import given, parsers, then

_ORDER_EVENT_CLASSES = {
    "OrderStatusChanged": OrderStatusChanged,
    "OrderItemStatusChanged": OrderItemStatusChanged,
    "OrderCancelled": OrderCancelled,
}


def _product_id(name):
    return "prod-" + name.lower().replace(" ", "-")


def _cart_of(user_id):
    return current_domain.repository_for(Cart).find_by_user(user_id)


@pytest.fixture()
def error():
    """Container for the failure captured by a When step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps: catalogue
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name}" priced {price:d} with {stock:d} in stock'))
def product_in_stock(catalog, name, price, stock):
    catalog.register(_product_id(name), name, float(price), stock)


@given(parsers.cfparse('the product "{name}" is no longer for sale'))
def product_withdrawn(catalog, name):
    catalog.update(_product_id(name), sale_status=SaleStatus.INACTIVE)


@given(parsers.cfparse('the stock of "{name}" drops to {stock:d}'))
def stock_drops(catalog, name, stock):
    catalog.update(_product_id(name), stock_quantity=stock)


# ---------------------------------------------------------------------------
# Given steps: cart
# ---------------------------------------------------------------------------
@given(parsers.cfparse('"{user_id}" has {qty:d} of "{name}" in the cart'))
def cart_holds(user_id, qty, name):
    current_domain.process(
        AddCartItem(user_id=user_id, product_id=_product_id(name), quantity=qty),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the request fails with a "{kind}" error'))
def request_fails(error, kind):
    assert error["exc"] is not None, "Expected a failure but none was raised"
    assert isinstance(error["exc"], ProteanException)
    assert error["exc"].kind.value == kind


@then(parsers.cfparse('the error message reads "{message}"'))
def error_message(error, message):
    messages = [m for field_messages in error["exc"].messages.values() for m in field_messages]
    assert message in messages, messages


@then("the request succeeds")
def request_succeeds(error):
    assert error["exc"] is None, error["exc"]


@then(parsers.cfparse('the cart of "{user_id}" holds {qty:d} of "{name}"'))
def cart_quantity(user_id, qty, name):
    assert _cart_of(user_id).product_quantity(_product_id(name)) == qty



@then(parsers.cfparse("an {event_type} order event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in order._events)
