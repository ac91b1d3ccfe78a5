"""Shared BDD fixtures and step definitions for the Ordering domain."""

import json

import pytest
from ordering.order.fulfillment import UpdateOrderStatus
from ordering.order.order import Order
from ordering.order.payment import UpdatePaymentStatus
from ordering.order.placement import PlaceOrder
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when

_REFERENCES = {
    "card": "pi_bdd_001",
    "bank_transfer": "BANK-1700000000000",
    "cod": "COD-1700000000000",
}

_METHODS = {
    "card": "card",
    "bank transfer": "bank_transfer",
    "cash on delivery": "cod",
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def error():
    """Container for the validation error raised by the last When step."""
    return {"exc": None}


def _place_order(customer_id, method):
    return current_domain.process(
        PlaceOrder(
            customer_id=customer_id,
            items=json.dumps(
                [
                    {
                        "product_id": "sofa-1",
                        "name": "Three Seater Sofa",
                        "unit_price": 30000.0,
                        "size": "L",
                        "color": "Grey",
                        "quantity": 1,
                    }
                ]
            ),
            shipping_address=json.dumps(
                {
                    "first_name": "Asha",
                    "last_name": "Shrestha",
                    "country": "Nepal",
                    "street_address": "Lazimpat 12",
                    "city": "Kathmandu",
                    "province": "Bagmati Province",
                    "zip_code": "44600",
                    "phone": "9800000000",
                    "email": "asha@example.com",
                }
            ),
            payment_reference=_REFERENCES[method],
            payment_method=method,
            subtotal=30000.0,
            shipping_cost=500.0,
            total=30500.0,
        ),
        asynchronous=False,
    )


def _attempt(error, command):
    try:
        current_domain.process(command, asynchronous=False)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a {method} order was placed"), target_fixture="order_id")
def _(customer_id, method):
    return _place_order(customer_id, _METHODS[method])


@given(parsers.cfparse('the order was moved to "{status}"'))
def _(order_id, status):
    current_domain.process(UpdateOrderStatus(order_id=order_id, order_status=status), asynchronous=False)


@given(parsers.cfparse('the payment was marked "{status}"'))
def _(order_id, status):
    current_domain.process(UpdatePaymentStatus(order_id=order_id, payment_status=status), asynchronous=False)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the operator moves the order to "{status}"'))
def _(order_id, status, error):
    _attempt(error, UpdateOrderStatus(order_id=order_id, order_status=status))


@when(parsers.cfparse('the operator marks the payment "{status}"'))
def _(order_id, status, error):
    _attempt(error, UpdatePaymentStatus(order_id=order_id, payment_status=status))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).order_status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def _(order_id, status):
    assert current_domain.repository_for(Order).get(order_id).payment_status == status


@then("the order records when it was paid")
def _(order_id):
    assert current_domain.repository_for(Order).get(order_id).paid_at is not None


@then("the order records when it was delivered")
def _(order_id):
    assert current_domain.repository_for(Order).get(order_id).delivered_at is not None


@then(parsers.cfparse('the change is rejected for "{field}"'))
def _(error, field):
    assert error["exc"] is not None
    assert field in error["exc"].messages
