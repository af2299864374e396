"""Tests for the timeslot catalog."""

from __future__ import annotations

from sectionsched.data.models import Day, time_to_minutes
from sectionsched.data.timeslots import (
    DAILY_BANDS,
    SLOT_MINUTES,
    Timeslot,
    TimeslotCatalog,
    generate_timeslots,
)


class TestGenerateTimeslots:
    """Tests for catalog generation."""

    def test_slot_count(self):
        # Morning: 08:00, 09:30, 11:00; afternoon: 13:00, 14:30, 16:00, 17:30, 19:00
        assert len(generate_timeslots()) == 6 * 8

    def test_ids_are_sequential(self):
        slots = generate_timeslots()
        assert [ts.id for ts in slots] == list(range(1, len(slots) + 1))

    def test_first_slot_is_monday_morning(self):
        first = generate_timeslots()[0]
        assert first.day == Day.MONDAY
        assert first.start_minutes == time_to_minutes("08:00")
        assert first.end_minutes == time_to_minutes("09:30")

    def test_covers_monday_to_saturday(self):
        days = {ts.day for ts in generate_timeslots()}
        assert days == set(Day)

    def test_slots_stay_inside_bands(self):
        for ts in generate_timeslots():
            assert any(start <= ts.start_minutes and ts.end_minutes <= end for start, end in DAILY_BANDS)
            assert ts.end_minutes - ts.start_minutes <= SLOT_MINUTES

    def test_last_window_ends_at_band_boundary(self):
        monday = [ts for ts in generate_timeslots() if ts.day == Day.MONDAY]
        ends = {ts.end_minutes for ts in monday}
        assert time_to_minutes("12:30") in ends
        assert time_to_minutes("20:30") in ends

    def test_deterministic(self):
        first = [(ts.id, ts.day, ts.start_minutes, ts.end_minutes) for ts in generate_timeslots()]
        second = [(ts.id, ts.day, ts.start_minutes, ts.end_minutes) for ts in generate_timeslots()]
        assert first == second


class TestTimeslotIdentity:
    """Timeslots compare by identity, never by fields."""

    def test_equal_fields_are_not_equal(self):
        a = Timeslot(id=1, day=Day.MONDAY, start_minutes=480, end_minutes=570)
        b = Timeslot(id=1, day=Day.MONDAY, start_minutes=480, end_minutes=570)
        assert a != b
        assert len({a, b}) == 2

    def test_separate_generations_do_not_collide(self):
        first = generate_timeslots()
        second = generate_timeslots()
        assert first[0] != second[0]
        assert first[0] == first[0]

    def test_str(self):
        ts = Timeslot(id=1, day=Day.TUESDAY, start_minutes=780, end_minutes=870)
        assert str(ts) == "Tuesday 13:00-14:30"


class TestTimeslotCatalog:
    """Tests for catalog lookups."""

    def test_get_by_id(self):
        catalog = TimeslotCatalog()
        assert catalog.get(1).day == Day.MONDAY
        assert catalog.get(None) is None
        assert catalog.get(999) is None

    def test_find_by_day_and_start(self):
        catalog = TimeslotCatalog()
        ts = catalog.find(Day.WEDNESDAY, time_to_minutes("14:30"))
        assert ts is not None
        assert ts.day == Day.WEDNESDAY
        assert ts.start_minutes == 870

    def test_find_off_grid_returns_none(self):
        catalog = TimeslotCatalog()
        assert catalog.find(Day.MONDAY, time_to_minutes("08:30")) is None

    def test_on_day(self):
        catalog = TimeslotCatalog()
        friday = catalog.on_day(Day.FRIDAY)
        assert len(friday) == 8
        assert [ts.start_minutes for ts in friday] == sorted(ts.start_minutes for ts in friday)

    def test_days(self):
        assert TimeslotCatalog().days == list(Day)

    def test_iteration_and_len(self):
        catalog = TimeslotCatalog()
        assert len(list(catalog)) == len(catalog) == 48
