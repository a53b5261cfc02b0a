"""Application tests for the table availability resolver."""

from datetime import datetime

import pytest
from dining.order.order import Order
from dining.table.availability import check_table, current_table_status, find_available
from dining.table.table import TableAvailabilityStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


def _by_code(results):
    return {result.table_code: result for result in results}


class TestCapacity:
    def test_small_tables_are_excluded_entirely(self, make_slot, make_table, dining_date):
        slot = make_slot("12:00", "13:00")
        make_table("A01", capacity=4)
        make_table("B01", capacity=2)

        results = find_available(dining_date, slot.id, party_size=4)

        assert [result.table_code for result in results] == ["A01"]
        assert results[0].status == TableAvailabilityStatus.AVAILABLE.value
        assert results[0].is_available

    def test_larger_tables_are_offered(self, make_slot, make_table, dining_date):
        slot = make_slot("12:00", "13:00")
        make_table("A01", capacity=4)
        make_table("VIP1", capacity=10)

        assert set(_by_code(find_available(dining_date, slot.id, party_size=3))) == {"A01", "VIP1"}


class TestMaintenance:
    def test_maintenance_tables_are_kept_and_tagged(self, make_slot, make_table, dining_date):
        slot = make_slot("12:00", "13:00")
        make_table("OUT03", capacity=4, is_available=False)

        result = find_available(dining_date, slot.id, party_size=2)[0]

        assert result.status == TableAvailabilityStatus.MAINTENANCE.value
        assert result.is_under_maintenance is True
        assert result.has_conflict is False


class TestConflicts:
    def test_back_to_back_booking_is_available(self, make_slot, make_table, make_reservation, dining_date):
        make_slot("12:00", "13:00")
        next_slot = make_slot("13:00", "14:00")
        table = make_table("A01", capacity=4)
        make_reservation(table, "12:00", "13:00")

        result = find_available(dining_date, next_slot.id, party_size=4)[0]

        assert result.status == TableAvailabilityStatus.AVAILABLE.value
        assert result.has_conflict is False

    def test_overlapping_booking_is_occupied(self, make_slot, make_table, make_reservation, dining_date):
        half_slot = make_slot("12:30", "13:30")
        table = make_table("A01", capacity=4)
        make_reservation(table, "12:00", "13:00")

        result = find_available(dining_date, half_slot.id, party_size=4)[0]

        assert result.status == TableAvailabilityStatus.OCCUPIED.value
        assert result.has_conflict is True

    def test_other_dates_do_not_conflict(self, make_slot, make_table, make_reservation, dining_date):
        slot = make_slot("12:00", "13:00")
        table = make_table("A01", capacity=4)
        make_reservation(table, "12:00", "13:00", on=dining_date.replace(day=2))

        assert find_available(dining_date, slot.id, party_size=4)[0].is_available

    def test_extensions_widen_the_existing_window(self, make_slot, make_table, make_reservation, dining_date):
        next_slot = make_slot("13:00", "14:00")
        table = make_table("A01", capacity=4)
        reservation = make_reservation(table, "12:00", "13:00")
        reservation.extend_reservation()
        current_domain.repository_for(Order).add(reservation)

        result = find_available(dining_date, next_slot.id, party_size=4)[0]

        assert result.status == TableAvailabilityStatus.OCCUPIED.value

    def test_finished_reservations_free_the_table(self, make_slot, make_table, make_reservation, dining_date):
        slot = make_slot("12:00", "13:00")
        table = make_table("A01", capacity=4)
        completed = make_reservation(table, "12:00", "13:00")
        completed.check_out()
        cancelled = make_reservation(table, "12:00", "13:00")
        cancelled.cancel_reservation()
        current_domain.repository_for(Order).add(completed)
        current_domain.repository_for(Order).add(cancelled)

        assert find_available(dining_date, slot.id, party_size=4)[0].is_available

    def test_maintenance_wins_over_conflict(self, make_slot, make_table, make_reservation, dining_date):
        slot = make_slot("12:00", "13:00")
        table = make_table("A01", capacity=4, is_available=False)
        make_reservation(table, "12:00", "13:00")

        result = find_available(dining_date, slot.id, party_size=4)[0]

        assert result.status == TableAvailabilityStatus.MAINTENANCE.value
        assert result.is_under_maintenance is True
        assert result.has_conflict is True


class TestCheckTable:
    def test_single_table_re_evaluation(self, make_slot, make_table, make_reservation, dining_date):
        slot = make_slot("12:00", "13:00")
        table = make_table("A01", capacity=4)
        make_reservation(table, "12:30", "13:30")

        result = check_table(table.id, dining_date, slot.id, party_size=2)

        assert result.status == TableAvailabilityStatus.OCCUPIED.value

    def test_too_small_table_yields_none(self, make_slot, make_table, dining_date):
        slot = make_slot("12:00", "13:00")
        table = make_table("B01", capacity=2)
        assert check_table(table.id, dining_date, slot.id, party_size=6) is None

    def test_unknown_slot(self, make_table, dining_date):
        table = make_table("A01", capacity=4)
        with pytest.raises(ObjectNotFoundError):
            check_table(table.id, dining_date, "missing-slot", party_size=2)


class TestCurrentTableStatus:
    def test_free_table(self, make_table):
        table = make_table("A01", capacity=4)
        status = current_table_status(table.id, datetime(2025, 9, 1, 12, 15))
        assert status.is_occupied is False
        assert status.order_id is None

    def test_table_held_by_seated_reservation(self, make_table, make_reservation):
        table = make_table("A01", capacity=4)
        reservation = make_reservation(table, "12:00", "13:00", guests_count=3)

        status = current_table_status(table.id, datetime(2025, 9, 1, 12, 15))

        assert status.is_occupied is True
        assert status.order_number == reservation.order_number
        assert status.guests_count == 3
        assert status.checkout_at == datetime(2025, 9, 1, 13, 0)
        assert status.is_overdue is False

    def test_table_still_held_when_overdue(self, make_table, make_reservation):
        table = make_table("A01", capacity=4)
        make_reservation(table, "12:00", "13:00")

        status = current_table_status(table.id, datetime(2025, 9, 1, 13, 20))

        assert status.is_occupied is True
        assert status.is_overdue is True

    def test_future_reservation_does_not_hold_the_table(self, make_table, make_reservation):
        table = make_table("A01", capacity=4)
        make_reservation(table, "18:00", "19:00")
        assert current_table_status(table.id, datetime(2025, 9, 1, 12, 0)).is_occupied is False
