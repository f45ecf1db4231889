"""Shared BDD fixtures and step definitions for the storefront."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then
from storefront.cart.store import add_item, get_cart
from storefront.exceptions import CheckoutError
from storefront.order.order import Order


@pytest.fixture()
def checkout_state():
    """Results and failures captured by When steps for the Then steps."""
    return {"result": None, "error": None, "payment_id": None}


@given(parsers.cfparse('the catalogue has product "{product_id}" named "{name}" priced at {price:f}'))
def catalogue_product(make_product, product_id, name, price):
    make_product(id=product_id, name=name, price=price)


@given(parsers.cfparse('session "{session_id}" has {quantity:d} of product "{product_id}" in the cart'))
def cart_with_product(session_id, quantity, product_id):
    add_item(session_id, product_id, quantity)


@then(parsers.cfparse('the checkout fails with "{category}"'))
def checkout_fails(checkout_state, category):
    error = checkout_state["error"]
    assert isinstance(error, CheckoutError), f"Expected a checkout failure, got {error!r}"
    assert error.category == category


@then("no order exists")
def no_order_exists():
    assert current_domain.repository_for(Order)._dao.query.all().items == []


@then(parsers.cfparse('an order is placed with status "{status}" and payment status "{payment_status}"'))
def order_placed(checkout_state, status, payment_status):
    result = checkout_state["result"]
    assert result is not None, f"Checkout failed: {checkout_state['error']!r}"

    order = current_domain.repository_for(Order).get(result.order_id)
    assert order.status == status
    assert order.payment_status == payment_status


@then(parsers.cfparse('the cart for session "{session_id}" is empty'))
def cart_is_empty(session_id):
    assert get_cart(session_id) == []


@then(parsers.cfparse('the cart for session "{session_id}" still has {count:d} line'))
def cart_has_lines(session_id, count):
    assert len(get_cart(session_id)) == count
