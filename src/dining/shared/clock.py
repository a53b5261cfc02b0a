"""Wall-clock helpers for slot and reservation times.

Reservation times are restaurant-local wall-clock values: naive datetimes,
``HH:MM`` strings for clock times.
"""

from datetime import date, datetime, time


def parse_clock(value) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a ``time``."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    return time.fromisoformat(str(value).strip()).replace(second=0, microsecond=0)


def format_clock(value) -> str:
    return parse_clock(value).strftime("%H:%M")


def at(day: date, clock) -> datetime:
    """Absolute wall-clock instant of ``clock`` on ``day``."""
    return datetime.combine(day, parse_clock(clock))


def local_now(as_of: datetime | None = None) -> datetime:
    """Naive wall-clock ``as_of`` (defaults to now)."""
    if as_of is None:
        return datetime.now()
    if as_of.tzinfo is not None:
        return as_of.astimezone().replace(tzinfo=None)
    return as_of
