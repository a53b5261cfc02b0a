"""BDD tests for the table availability resolver."""

from dining.order.order import Order
from dining.table.availability import find_available
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/table_availability.feature")


@given("the booking was extended once", target_fixture="booking")
def _(booking):
    booking.extend_reservation()
    current_domain.repository_for(Order).add(booking)
    return booking


@given("the booking was cancelled", target_fixture="booking")
def _(booking):
    booking.cancel_reservation()
    current_domain.repository_for(Order).add(booking)
    return booking


@when(parsers.cfparse("availability is checked for {party_size:d} guests"), target_fixture="availability")
def _(slot, dining_date, party_size):
    return {table.table_code: table for table in find_available(dining_date, str(slot.id), party_size)}


@then(parsers.cfparse('table "{table_code}" is "{status}"'))
def _(availability, table_code, status):
    assert availability[table_code].status == status


@then(parsers.cfparse('table "{table_code}" is not offered'))
def _(availability, table_code):
    assert table_code not in availability
