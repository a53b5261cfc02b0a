"""Read-only time slot lookups consumed by the table availability resolver."""

from protean.utils.globals import current_domain

from dining.timeslot.timeslot import TimeSlot


def resolve_time_slot(time_slot_id):
    """Return the ``(start, end)`` clock bounds of a slot.

    Raises ``ObjectNotFoundError`` for unknown ids.
    """
    return current_domain.repository_for(TimeSlot).get(time_slot_id).bounds


def list_time_slots() -> list[TimeSlot]:
    """All slots ordered by start time."""
    return current_domain.repository_for(TimeSlot).ordered()
