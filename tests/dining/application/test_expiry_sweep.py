"""Application tests for the overdue reservation sweep."""

from datetime import datetime

import pytest
from dining.order.expiry import ProcessExpiredReservations, SweepAction
from dining.order.order import Order, OverdueReason
from protean import current_domain


def _sweep(as_of, dry_run=False):
    return current_domain.process(
        ProcessExpiredReservations(as_of=as_of, dry_run=dry_run),
        asynchronous=False,
    )


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


def _state(order):
    reloaded = _reload(order)
    return reloaded.auto_extend_count, reloaded.total_extended_minutes, reloaded.overdue_flagged_at


@pytest.fixture()
def table(make_table):
    return make_table("A01", capacity=4)


class TestExtension:
    def test_reservation_inside_its_window_is_left_alone(self, table, make_reservation):
        reservation = make_reservation(table, "12:00", "13:00")
        assert _sweep(datetime(2025, 9, 1, 12, 45)) == []
        assert _reload(reservation).auto_extend_count == 0

    def test_slightly_overdue_reservation_gets_one_extension(self, table, make_reservation):
        reservation = make_reservation(table, "12:00", "13:00")

        outcomes = _sweep(datetime(2025, 9, 1, 13, 10))

        assert len(outcomes) == 1
        assert outcomes[0].action == SweepAction.EXTENDED
        assert outcomes[0].extensions_applied == 1
        reloaded = _reload(reservation)
        assert reloaded.auto_extend_count == 1
        assert reloaded.total_extended_minutes == 30

    def test_extends_until_no_longer_overdue(self, table, make_reservation):
        reservation = make_reservation(table, "12:00", "13:00")

        outcomes = _sweep(datetime(2025, 9, 1, 13, 45))

        assert outcomes[0].extensions_applied == 2
        assert outcomes[0].action == SweepAction.EXTENDED
        assert _reload(reservation).total_extended_minutes == 60


class TestFlagging:
    def test_exhausted_extensions_are_flagged(self, table, make_reservation):
        reservation = make_reservation(table, "12:00", "13:00")

        outcomes = _sweep(datetime(2025, 9, 1, 14, 30))

        assert outcomes[0].action == SweepAction.FLAGGED
        assert outcomes[0].reason == OverdueReason.EXTENSION_LIMIT.value
        reloaded = _reload(reservation)
        assert reloaded.auto_extend_count == 2
        assert reloaded.is_flagged_overdue
        assert reloaded.overdue_reason == "extension_limit"

    def test_next_booking_blocks_extension(self, table, make_reservation):
        reservation = make_reservation(table, "12:00", "13:00")
        make_reservation(table, "13:00", "14:00")

        outcomes = _sweep(datetime(2025, 9, 1, 13, 5))

        flagged = [o for o in outcomes if o.order_id == str(reservation.id)][0]
        assert flagged.action == SweepAction.FLAGGED
        assert flagged.reason == OverdueReason.NEXT_BOOKING.value
        assert flagged.extensions_applied == 0
        assert _reload(reservation).auto_extend_count == 0

    def test_bookings_on_other_tables_do_not_block(self, table, make_table, make_reservation):
        other = make_table("A02", capacity=4)
        reservation = make_reservation(table, "12:00", "13:00")
        make_reservation(other, "13:00", "14:00")

        _sweep(datetime(2025, 9, 1, 13, 5))

        assert _reload(reservation).auto_extend_count == 1


class TestSweepProperties:
    def test_second_run_changes_nothing(self, table, make_reservation):
        extended = make_reservation(table, "12:00", "13:00")
        flagged = make_reservation(table, "09:00", "10:00")
        as_of = datetime(2025, 9, 1, 13, 10)

        _sweep(as_of)
        first = [_state(extended), _state(flagged)]

        assert _sweep(as_of) == []
        assert [_state(extended), _state(flagged)] == first
        assert first[0][0] == 1
        assert first[1][2] is not None

    def test_counter_never_exceeds_two(self, table, make_reservation):
        reservation = make_reservation(table, "12:00", "13:00")
        for hour in (14, 16, 18, 20):
            _sweep(datetime(2025, 9, 1, hour, 0))
        assert _reload(reservation).auto_extend_count == 2

    def test_dry_run_reports_without_saving(self, table, make_reservation):
        reservation = make_reservation(table, "12:00", "13:00")

        outcomes = _sweep(datetime(2025, 9, 1, 14, 30), dry_run=True)

        assert outcomes[0].action == SweepAction.FLAGGED
        reloaded = _reload(reservation)
        assert reloaded.auto_extend_count == 0
        assert reloaded.is_flagged_overdue is False

    def test_completed_reservations_are_ignored(self, table, make_reservation):
        reservation = make_reservation(table, "12:00", "13:00")
        reservation.check_out()
        current_domain.repository_for(Order).add(reservation)

        assert _sweep(datetime(2025, 9, 1, 15, 0)) == []
