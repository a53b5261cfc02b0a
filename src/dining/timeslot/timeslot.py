"""TimeSlot aggregate — fixed clock intervals that quantize reservation requests.

Slots are curated by administrators (e.g. 10:00-11:00, 11:00-12:00). A slot's
(start, end) pair is unique and slots are expected not to overlap.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, String

from dining.domain import dining
from dining.shared.clock import format_clock, parse_clock


@dining.aggregate
class TimeSlot:
    start_time = String(required=True, max_length=5)  # HH:MM
    end_time = String(required=True, max_length=5)  # HH:MM
    created_at = DateTime()

    @invariant.post
    def slot_must_end_after_it_starts(self):
        if parse_clock(self.start_time) >= parse_clock(self.end_time):
            raise ValidationError({"end_time": ["A time slot must end after it starts"]})

    @classmethod
    def define(cls, start_time, end_time):
        return cls(
            start_time=format_clock(start_time),
            end_time=format_clock(end_time),
            created_at=datetime.now(UTC),
        )

    @property
    def bounds(self):
        return parse_clock(self.start_time), parse_clock(self.end_time)


@dining.repository(part_of=TimeSlot)
class TimeSlotRepository:
    def find_by_bounds(self, start_time, end_time) -> TimeSlot | None:
        return self._dao.query.filter(
            start_time=format_clock(start_time),
            end_time=format_clock(end_time),
        ).all().first

    def ordered(self) -> list[TimeSlot]:
        return self._dao.query.order_by("start_time").all().items
