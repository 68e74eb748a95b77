"""Tests for the data models: rooms, slots and project lookups."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from breakouts.models import Room, Slot, minutes_to_time, normalize_time, time_to_minutes


class TestTimes:
    """Test time conversion helpers."""

    def test_leading_zero_is_ignored(self):
        """09:00 and 9:00 designate the same time."""
        assert normalize_time("09:00") == "9:00"
        assert time_to_minutes("9:30") == 570

    def test_minutes_to_time(self):
        assert minutes_to_time(13 * 60 + 5) == "13:05"

    def test_invalid_time_raises(self):
        with pytest.raises(ValueError):
            time_to_minutes("9h00")


class TestRoomFromName:
    """Test room metadata parsing from display names."""

    def test_plain_name(self):
        room = Room.from_name("Room 1")
        assert room.label == "Room 1"
        assert room.capacity is None
        assert room.vip is False

    def test_capacity_location_and_vip(self):
        """Capacity, location and VIP flag are all extracted."""
        room = Room.from_name("Business (25 - 2nd floor) (VIP)")
        assert room.name == "Business (25 - 2nd floor) (VIP)"
        assert room.label == "Business"
        assert room.capacity == 25
        assert room.location == "2nd floor"
        assert room.vip is True

    def test_effective_capacity_defaults(self):
        """Rooms without capacity are assumed to hold the default."""
        assert Room.from_name("Room 1").effective_capacity() == 30
        assert Room.from_name("Room 1").effective_capacity(12) == 12
        assert Room.from_name("Big (100)").effective_capacity() == 100


class TestSlot:
    """Test slot parsing and derived values."""

    def test_from_string(self):
        slot = Slot.from_string("2042-02-11 09:00 - 10:30")
        assert slot.date == "2042-02-11"
        assert slot.start == "9:00"
        assert slot.end == "10:30"
        assert slot.duration == 90
        assert slot.weekday == "Tuesday"
        assert slot.name == "9:00 - 10:30"
        assert slot.day_label == "Tuesday (2042-02-11)"

    def test_malformed_string_raises(self):
        with pytest.raises(ValueError):
            Slot.from_string("Tuesday 9:00")

    def test_invalid_date_raises(self):
        with pytest.raises(ValidationError):
            Slot(date="2042-13-45", start="9:00", end="10:00")


class TestProject:
    """Test project construction and lookups."""

    def test_slots_are_sorted(self, build_project):
        """Slots are ordered by (date, start) whatever the input order."""
        project = build_project([], slots=["2042-02-13 9:00 - 11:00", "2042-02-11 11:00 - 13:00", "2042-02-11 9:00 - 11:00"])
        assert [(s.date, s.start) for s in project.slots] == [
            ("2042-02-11", "9:00"),
            ("2042-02-11", "11:00"),
            ("2042-02-13", "9:00"),
        ]

    def test_days(self, build_project):
        project = build_project([])
        assert project.days == ["2042-02-11", "2042-02-13"]

    def test_get_room_by_name_case_and_label(self, build_project):
        """Rooms are found by exact name, case-insensitive name, then label."""
        project = build_project([])
        assert project.get_room("Room 2 (50)").name == "Room 2 (50)"
        assert project.get_room("room 2 (50)").name == "Room 2 (50)"
        assert project.get_room("Plenary").name == "Plenary (200)"
        assert project.get_room("Nowhere") is None

    def test_find_day(self, build_project):
        """Days resolve from dates, weekdays and labels."""
        project = build_project([])
        assert project.find_day("2042-02-11") == "2042-02-11"
        assert project.find_day("thursday") == "2042-02-13"
        assert project.find_day("Tuesday (2042-02-11)") == "2042-02-11"
        assert project.find_day("Friday") is None

    def test_find_slot(self, build_project):
        project = build_project([])
        assert project.find_slot("09:00", day="2042-02-13").date == "2042-02-13"
        assert project.find_slot("11:00", "13:00").start == "11:00"
        assert project.find_slot("11:00", "12:00") is None
        assert project.slot_index("2042-02-13", "11:00") == 3

    def test_requested_times_are_normalized(self, build_project, make_session):
        """Requested times given as weekday and padded time become (date, start)."""
        project = build_project(
            [make_session(1, description={"times": [{"day": "Thursday", "slot": "09:00"}]})]
        )
        time = project.sessions[0].description.times[0]
        assert (time.day, time.slot) == ("2042-02-13", "9:00")

    def test_author_and_chairs_from_strings(self, make_session, build_project):
        project = build_project([make_session(1, author="alice", chairs=["Bob Smith"])])
        session = project.sessions[0]
        assert session.author.login == "alice"
        assert session.chairs[0].name == "Bob Smith"

    def test_plenary_metadata_aliases(self, build_project):
        """Metadata keys with spaces are accepted."""
        project = build_project([], metadata={"plenary room": "Room 1", "plenary holds": 3})
        assert project.metadata.plenary_room == "Room 1"
        assert project.metadata.plenary_holds == 3
