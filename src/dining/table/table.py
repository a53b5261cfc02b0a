"""DiningTable aggregate — a physical table guests can reserve.

``is_available`` is the administrator's maintenance switch. It says nothing
about occupancy, which is derived from pending reservations on orders.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from dining.domain import dining


class TableAvailabilityStatus(Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


@dining.value_object(part_of="DiningTable")
class TableAvailability:
    """Availability of one table for a requested slot, with the flags behind it."""

    table_id = Identifier(required=True)
    table_code = String(required=True, max_length=10)
    capacity = Integer(required=True)
    location = String(max_length=50)
    status = String(required=True, choices=TableAvailabilityStatus)
    is_under_maintenance = Boolean(default=False)
    has_conflict = Boolean(default=False)

    @property
    def is_available(self) -> bool:
        return self.status == TableAvailabilityStatus.AVAILABLE.value


@dining.value_object(part_of="DiningTable")
class TableOccupancy:
    """Who, if anyone, holds a table at a given instant."""

    table_id = Identifier(required=True)
    table_code = String(required=True, max_length=10)
    is_under_maintenance = Boolean(default=False)
    is_occupied = Boolean(default=False)
    order_id = Identifier()
    order_number = String(max_length=50)
    guests_count = Integer()
    checkin_at = DateTime()
    checkout_at = DateTime()  # includes extensions
    auto_extend_count = Integer()
    total_extended_minutes = Integer()
    is_overdue = Boolean(default=False)


@dining.aggregate
class DiningTable:
    table_code = String(required=True, max_length=10, unique=True)
    description = String(max_length=255)
    capacity = Integer(required=True, min_value=1)
    location = String(max_length=50)
    is_available = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def register(cls, table_code, capacity, location=None, description=None, is_available=True):
        return cls(
            table_code=table_code,
            capacity=capacity,
            location=location,
            description=description,
            is_available=is_available,
            created_at=datetime.now(UTC),
        )

    @property
    def is_under_maintenance(self) -> bool:
        return not self.is_available

    def seats(self, party_size) -> bool:
        return self.capacity >= party_size


@dining.repository(part_of=DiningTable)
class DiningTableRepository:
    def seating_at_least(self, party_size) -> list[DiningTable]:
        """Tables whose capacity fits the party, ordered by code."""
        return self._dao.query.filter(capacity__gte=party_size).order_by("table_code").all().items
