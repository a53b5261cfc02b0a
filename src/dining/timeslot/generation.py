"""Slot generation — command and handler.

Splits an opening window into consecutive fixed-length slots, creating only the
slots that do not exist yet so the command can be re-run safely.
"""

from datetime import datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from dining.domain import dining
from dining.shared.clock import parse_clock
from dining.timeslot.timeslot import TimeSlot

logger = structlog.get_logger(__name__)


def generate_slot_bounds(start, end, interval_minutes):
    """Consecutive ``(start, end)`` clock pairs covering ``[start, end)``.

    A trailing fragment shorter than the interval is dropped.
    """
    opening = datetime.combine(datetime.min.date(), parse_clock(start))
    closing = datetime.combine(datetime.min.date(), parse_clock(end))
    if interval_minutes <= 0:
        raise ValidationError({"interval_minutes": ["Interval must be positive"]})
    if opening >= closing:
        raise ValidationError({"start_time": ["Start time must be earlier than end time"]})

    step = timedelta(minutes=interval_minutes)
    bounds = []
    cursor = opening
    while cursor + step <= closing:
        bounds.append((cursor.time(), (cursor + step).time()))
        cursor += step
    return bounds


@dining.command(part_of="TimeSlot")
class GenerateTimeSlots:
    """Create the fixed slots between two clock times."""

    start_time = String(required=True, max_length=5)
    end_time = String(required=True, max_length=5)
    interval_minutes = Integer(default=60, min_value=1)


@dining.command_handler(part_of=TimeSlot)
class GenerateTimeSlotsHandler:
    @handle(GenerateTimeSlots)
    def generate_time_slots(self, command):
        repo = current_domain.repository_for(TimeSlot)

        created = 0
        for start, end in generate_slot_bounds(command.start_time, command.end_time, command.interval_minutes or 60):
            if repo.find_by_bounds(start, end) is not None:
                continue
            repo.add(TimeSlot.define(start, end))
            created += 1

        logger.info(
            "Time slots generated",
            start_time=command.start_time,
            end_time=command.end_time,
            created=created,
        )
        return created
