"""BDD tests for the reservation state machine."""

from datetime import datetime, time

from dining.shared.clock import at
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/reservation_lifecycle.feature")


def _at(order, clock):
    return datetime.combine(order.dining_date, time.fromisoformat(clock))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse("the guests are checked in at {clock}"))
def _(order, clock):
    order.check_in(_at(order, clock))


@when("the reservation is checked out")
def _(order):
    order.check_out()


@when("the reservation is cancelled")
def _(order, error):
    try:
        order.cancel_reservation()
    except ValidationError as exc:
        error["exc"] = exc


@when("the reservation is extended")
def _(order, error):
    try:
        order.extend_reservation()
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the reservation ends at {clock}"))
def _(order, clock):
    assert order.reserved_until == at(order.dining_date, clock)


@then(parsers.cfparse("the reservation is overdue at {clock}"))
def _(order, clock):
    assert order.is_overdue(_at(order, clock))


@then(parsers.cfparse("the reservation is not overdue at {clock}"))
def _(order, clock):
    assert not order.is_overdue(_at(order, clock))
