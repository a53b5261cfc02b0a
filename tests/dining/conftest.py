"""Shared fixtures for the Dining domain: a live domain context per test and
small factories for slots, tables, carts and reservations."""

import json
from datetime import date

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def dining_bed():
    from dining.domain import dining

    bed = DomainFixture(dining)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(dining_bed):
    with dining_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def actor_id():
    return "actor-001"


@pytest.fixture()
def dining_date():
    return date(2025, 9, 1)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_slot():
    from dining.timeslot.timeslot import TimeSlot

    def _make(start_time, end_time):
        slot = TimeSlot.define(start_time, end_time)
        current_domain.repository_for(TimeSlot).add(slot)
        return slot

    return _make


@pytest.fixture()
def make_table():
    from dining.table.table import DiningTable

    def _make(table_code, capacity, is_available=True, location="Main Hall"):
        table = DiningTable.register(
            table_code=table_code,
            capacity=capacity,
            location=location,
            is_available=is_available,
        )
        current_domain.repository_for(DiningTable).add(table)
        return table

    return _make


@pytest.fixture()
def make_reservation(dining_date):
    """Persist a pending dine-in order holding ``table`` between two clock times."""
    from dining.order.checkout import generate_order_number
    from dining.order.order import Order, OrderTotals

    def _make(table, checkin_time="12:00", checkout_time="13:00", on=None, actor_id="actor-999", guests_count=2):
        order = Order.place(
            actor_id=actor_id,
            order_number=generate_order_number(),
            service_method="dine-in",
            payment_method="cash",
            totals=OrderTotals(subtotal=0.0, delivery_fee=0.0, discount_amount=0.0, total_amount=0.0),
            reservation={
                "table_id": str(table.id),
                "table_code": table.table_code,
                "guests_count": guests_count,
                "dining_date": on or dining_date,
                "checkin_time": checkin_time,
                "checkout_time": checkout_time,
            },
        )
        current_domain.repository_for(Order).add(order)
        return order

    return _make


@pytest.fixture()
def fill_cart(actor_id):
    """Put one dish (28.00 + 5.00 addon, quantity 2) in the actor's cart."""
    from dining.cart.management import AddDishToCart

    def _fill(owner=None, base_price=28.0, addon_price=5.0, quantity=2):
        return current_domain.process(
            AddDishToCart(
                actor_id=owner or actor_id,
                dish_id="dish-beef-noodle",
                name="Beef Noodle Soup",
                base_price=base_price,
                quantity=quantity,
                addons=json.dumps([{"option_id": "addon-egg", "name": "Extra egg", "price": addon_price}]),
                variants=json.dumps([]),
            ),
            asynchronous=False,
        )

    return _fill
