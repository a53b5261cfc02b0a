"""Table availability resolver.

Decides which tables can seat a party for a requested date and time slot:

1. resolve the slot into an absolute ``[check-in, check-out)`` window,
2. keep only tables whose capacity fits the party (maintenance tables stay
   in the result, tagged, so callers can tell why they are not offered),
3. test the window against every pending reservation on each table that day,
4. a table is available iff it is not under maintenance and nothing overlaps.

Windows are half-open, so a reservation ending at 13:00 does not conflict with
one starting at 13:00. Existing reservations count with their extensions.
"""

import structlog
from protean.utils.globals import current_domain

from dining.order.order import Order
from dining.shared.clock import at, local_now
from dining.table.table import DiningTable, TableAvailability, TableAvailabilityStatus, TableOccupancy
from dining.timeslot.catalog import resolve_time_slot

logger = structlog.get_logger(__name__)


def intervals_overlap(start, end, other_start, other_end) -> bool:
    """Half-open interval intersection: touching boundaries do not overlap."""
    return start < other_end and end > other_start


def requested_window(dining_date, time_slot_id):
    start, end = resolve_time_slot(time_slot_id)
    return at(dining_date, start), at(dining_date, end)


def has_conflict(table_id, dining_date, check_in, check_out) -> bool:
    reservations = current_domain.repository_for(Order).pending_reservations_for(table_id, dining_date)
    return any(
        intervals_overlap(reservation.reserved_from, reservation.reserved_until, check_in, check_out)
        for reservation in reservations
    )


def evaluate(table: DiningTable, dining_date, check_in, check_out) -> TableAvailability:
    conflict = has_conflict(table.id, dining_date, check_in, check_out)
    if table.is_under_maintenance:
        status = TableAvailabilityStatus.MAINTENANCE
    elif conflict:
        status = TableAvailabilityStatus.OCCUPIED
    else:
        status = TableAvailabilityStatus.AVAILABLE

    return TableAvailability(
        table_id=str(table.id),
        table_code=table.table_code,
        capacity=table.capacity,
        location=table.location,
        status=status.value,
        is_under_maintenance=table.is_under_maintenance,
        has_conflict=conflict,
    )


def find_available(dining_date, time_slot_id, party_size) -> list[TableAvailability]:
    """Availability of every table that can seat ``party_size`` for the slot."""
    check_in, check_out = requested_window(dining_date, time_slot_id)
    tables = current_domain.repository_for(DiningTable).seating_at_least(party_size)

    results = [evaluate(table, dining_date, check_in, check_out) for table in tables]

    logger.debug(
        "Resolved table availability",
        dining_date=str(dining_date),
        time_slot_id=str(time_slot_id),
        party_size=party_size,
        candidates=len(results),
        available=sum(1 for result in results if result.is_available),
    )
    return results


def check_table(table_id, dining_date, time_slot_id, party_size) -> TableAvailability | None:
    """Re-evaluate one table; ``None`` when it cannot seat the party at all.

    Raises ``ObjectNotFoundError`` for unknown tables or slots.
    """
    table = current_domain.repository_for(DiningTable).get(table_id)
    check_in, check_out = requested_window(dining_date, time_slot_id)
    if not table.seats(party_size):
        return None
    return evaluate(table, dining_date, check_in, check_out)


def current_table_status(table_id, as_of=None) -> TableOccupancy:
    """Whether a table is held right now, and by which reservation.

    A table stays held from check-in until the reservation is checked out or
    cancelled, even after its window has run out (it is then overdue).
    """
    now = local_now(as_of)
    table = current_domain.repository_for(DiningTable).get(table_id)
    reservations = current_domain.repository_for(Order).pending_reservations_for(table.id, now.date())

    started = [reservation for reservation in reservations if reservation.reserved_from <= now]
    if not started:
        return TableOccupancy(
            table_id=str(table.id),
            table_code=table.table_code,
            is_under_maintenance=table.is_under_maintenance,
            is_occupied=False,
        )

    holder = max(started, key=lambda reservation: reservation.reserved_from)
    return TableOccupancy(
        table_id=str(table.id),
        table_code=table.table_code,
        is_under_maintenance=table.is_under_maintenance,
        is_occupied=True,
        order_id=str(holder.id),
        order_number=holder.order_number,
        guests_count=holder.guests_count,
        checkin_at=holder.reserved_from,
        checkout_at=holder.reserved_until,
        auto_extend_count=holder.auto_extend_count,
        total_extended_minutes=holder.total_extended_minutes,
        is_overdue=holder.is_overdue(now),
    )
