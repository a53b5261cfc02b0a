"""Shared BDD fixtures and step definitions for the Dining domain."""

import pytest
from dining.order.checkout import generate_order_number
from dining.order.events import (
    OrderPlaced,
    ReservationCancelled,
    ReservationCheckedIn,
    ReservationCompleted,
    ReservationExtended,
    ReservationFlaggedOverdue,
)
from dining.order.order import Order, OrderTotals
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup in Then steps
_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "ReservationCheckedIn": ReservationCheckedIn,
    "ReservationExtended": ReservationExtended,
    "ReservationFlaggedOverdue": ReservationFlaggedOverdue,
    "ReservationCompleted": ReservationCompleted,
    "ReservationCancelled": ReservationCancelled,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


@pytest.fixture()
def tables():
    """Tables created by Given steps, keyed by table code."""
    return {}


# ---------------------------------------------------------------------------
# Given steps — reservations (aggregate level)
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse('a dine-in order holding table "{table_code}" from {checkin} to {checkout}'),
    target_fixture="order",
)
def _(table_code, checkin, checkout, dining_date):
    order = Order.place(
        actor_id="actor-001",
        order_number=generate_order_number(),
        service_method="dine-in",
        payment_method="cash",
        totals=OrderTotals(subtotal=0.0, delivery_fee=0.0, discount_amount=0.0, total_amount=0.0),
        reservation={
            "table_id": f"table-{table_code}",
            "table_code": table_code,
            "guests_count": 2,
            "dining_date": dining_date,
            "checkin_time": checkin,
            "checkout_time": checkout,
        },
    )
    order._events.clear()
    return order


@given("the reservation was checked out", target_fixture="order")
def _(order):
    order.check_out()
    order._events.clear()
    return order


@given(parsers.cfparse("the reservation was extended {times:d} times"), target_fixture="order")
def _(order, times):
    for _ in range(times):
        order.extend_reservation()
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Given steps — tables and slots (persisted)
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a time slot from {start} to {end}'), target_fixture="slot")
def _(start, end, make_slot):
    return make_slot(start, end)


@given(parsers.cfparse('a table "{table_code}" seating {capacity:d}'))
def _(table_code, capacity, tables, make_table):
    tables[table_code] = make_table(table_code, capacity)


@given(parsers.cfparse('a table "{table_code}" seating {capacity:d} under maintenance'))
def _(table_code, capacity, tables, make_table):
    tables[table_code] = make_table(table_code, capacity, is_available=False)


@given(parsers.cfparse('table "{table_code}" is reserved from {checkin} to {checkout}'), target_fixture="booking")
def _(table_code, checkin, checkout, tables, make_reservation):
    return make_reservation(tables[table_code], checkin, checkout)


# ---------------------------------------------------------------------------
# Then steps — shared
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the reservation status is "{status}"'))
def _(order, status):
    assert order.reservation_status == status


@then(parsers.cfparse("a {event_type} event is raised"))
def _(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"


@then(parsers.cfparse("the action fails with {error_name}"))
def _(error, error_name):
    assert error["exc"] is not None, f"Expected {error_name} but nothing was raised"
    assert type(error["exc"]).__name__ == error_name
