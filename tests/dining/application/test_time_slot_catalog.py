"""Application tests for time slot generation and lookups."""

from datetime import time

import pytest
from dining.timeslot.catalog import list_time_slots, resolve_time_slot
from dining.timeslot.generation import GenerateTimeSlots
from dining.timeslot.timeslot import TimeSlot
from protean import current_domain
from protean.exceptions import ObjectNotFoundError


class TestGenerateTimeSlots:
    def test_generates_hourly_slots(self):
        created = current_domain.process(
            GenerateTimeSlots(start_time="10:00", end_time="22:00", interval_minutes=60),
            asynchronous=False,
        )
        assert created == 12
        assert len(list_time_slots()) == 12

    def test_generation_is_idempotent(self):
        command = GenerateTimeSlots(start_time="10:00", end_time="14:00", interval_minutes=60)
        current_domain.process(command, asynchronous=False)
        created = current_domain.process(command, asynchronous=False)
        assert created == 0
        assert len(list_time_slots()) == 4

    def test_only_missing_slots_are_created(self, make_slot):
        make_slot("11:00", "12:00")
        created = current_domain.process(
            GenerateTimeSlots(start_time="10:00", end_time="13:00", interval_minutes=60),
            asynchronous=False,
        )
        assert created == 2


class TestLookups:
    def test_resolve_returns_clock_bounds(self, make_slot):
        slot = make_slot("12:00", "13:00")
        assert resolve_time_slot(slot.id) == (time(12, 0), time(13, 0))

    def test_resolve_unknown_slot(self):
        with pytest.raises(ObjectNotFoundError):
            resolve_time_slot("missing-slot")

    def test_list_is_ordered_by_start(self, make_slot):
        make_slot("18:00", "19:00")
        make_slot("10:00", "11:00")
        make_slot("12:00", "13:00")
        assert [slot.start_time for slot in list_time_slots()] == ["10:00", "12:00", "18:00"]

    def test_find_by_bounds(self, make_slot):
        slot = make_slot("12:00", "13:00")
        found = current_domain.repository_for(TimeSlot).find_by_bounds("12:00:00", "13:00")
        assert found.id == slot.id
