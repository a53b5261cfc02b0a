"""Overdue reservation sweep — command and handler.

Triggered on demand (admin endpoint, ``manage.py check-reservations`` or an
external scheduler). For every pending reservation past its window that has
not been flagged yet, the sweep grants 30-minute extensions while the
reservation is still overdue and an extension is allowed. When it is not
allowed, because the counter is exhausted or the longer window would run into
the next booking of the same table, the reservation is flagged for manual
resolution. Flagged reservations are left alone by later sweeps, so running
the sweep twice in a row changes nothing the second time.
"""

from datetime import timedelta

import structlog
from protean import handle
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.order.order import MAX_AUTO_EXTENSIONS, Order, OverdueReason
from dining.shared.clock import local_now
from dining.shared.settings import setting
from dining.table.availability import intervals_overlap

logger = structlog.get_logger(__name__)


class SweepAction:
    EXTENDED = "extended"
    FLAGGED = "flagged"


@dining.value_object(part_of="Order")
class SweepOutcome:
    """What the sweep did to one overdue reservation."""

    order_id = Identifier(required=True)
    order_number = String(required=True)
    table_id = Identifier(required=True)
    table_code = String()
    action = String(required=True)  # extended | flagged
    extensions_applied = Integer(default=0)
    auto_extend_count = Integer(default=0)
    total_extended_minutes = Integer(default=0)
    reserved_until = DateTime()
    reason = String()  # set when flagged


@dining.command(part_of="Order")
class ProcessExpiredReservations:
    """Extend or flag every overdue pending reservation."""

    as_of = DateTime()  # Optional: defaults to now
    dry_run = Boolean(default=False)


def _next_booking(reservation, pending):
    """The earliest other pending reservation on the same table and day that starts later."""
    later = [
        other
        for other in pending
        if other.id != reservation.id
        and str(other.table_id) == str(reservation.table_id)
        and other.dining_date == reservation.dining_date
        and other.reserved_from >= reservation.reserved_from
    ]
    return min(later, key=lambda other: other.reserved_from, default=None)


def plan_resolution(reservation, next_booking, as_of, minutes):
    """How many extensions to grant, and why the reservation still needs staff.

    Returns ``(extensions, reason)``; ``reason`` is ``None`` when the granted
    extensions bring the reservation back inside its window.
    """
    extensions = 0
    until = reservation.reserved_until
    count = reservation.auto_extend_count or 0

    while as_of > until:
        if count + extensions >= MAX_AUTO_EXTENSIONS:
            return extensions, OverdueReason.EXTENSION_LIMIT
        extended_until = until + timedelta(minutes=minutes)
        if next_booking is not None and intervals_overlap(
            reservation.reserved_from, extended_until, next_booking.reserved_from, next_booking.reserved_until
        ):
            return extensions, OverdueReason.NEXT_BOOKING
        extensions += 1
        until = extended_until

    return extensions, None


@dining.command_handler(part_of=Order)
class ProcessExpiredReservationsHandler:
    @handle(ProcessExpiredReservations)
    def process_expired_reservations(self, command):
        as_of = local_now(command.as_of)
        minutes = setting("RESERVATION_EXTENSION_MINUTES")
        repo = current_domain.repository_for(Order)

        pending = repo.pending_reservations()
        overdue = sorted(
            (r for r in pending if not r.is_flagged_overdue and r.is_overdue(as_of)),
            key=lambda r: r.reserved_until,
        )

        logger.info(
            "Checking overdue reservations",
            as_of=as_of.isoformat(),
            pending=len(pending),
            overdue=len(overdue),
            dry_run=bool(command.dry_run),
        )

        outcomes = []
        for reservation in overdue:
            applied, reason = plan_resolution(reservation, _next_booking(reservation, pending), as_of, minutes)
            granted = timedelta(minutes=applied * minutes)

            outcomes.append(
                SweepOutcome(
                    order_id=str(reservation.id),
                    order_number=reservation.order_number,
                    table_id=str(reservation.table_id),
                    table_code=reservation.table_code,
                    action=SweepAction.FLAGGED if reason else SweepAction.EXTENDED,
                    extensions_applied=applied,
                    auto_extend_count=(reservation.auto_extend_count or 0) + applied,
                    total_extended_minutes=(reservation.total_extended_minutes or 0) + applied * minutes,
                    reserved_until=reservation.reserved_until + granted,
                    reason=reason.value if reason else None,
                )
            )

            if not command.dry_run:
                for _ in range(applied):
                    reservation.extend_reservation(minutes)
                if reason is not None:
                    reservation.flag_overdue(reason.value, as_of)
                repo.add(reservation)

            logger.info(
                "Overdue reservation flagged" if reason else "Reservation auto-extended",
                order_number=reservation.order_number,
                table_id=str(reservation.table_id),
                extensions_applied=applied,
                reason=reason.value if reason else None,
            )

        logger.info("Overdue reservation sweep complete", processed=len(outcomes), dry_run=bool(command.dry_run))
        return outcomes
