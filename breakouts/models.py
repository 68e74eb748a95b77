"""
Data models for the assignment engine: rooms, slots, sessions and meetings.

Rooms and slots are immutable once loaded. Sessions carry their raw
scheduling fields (`room`, `day`, `slot`, `meeting`) plus the already-parsed
description; the scheduler mutates the scheduling fields in place.
"""

from __future__ import annotations

import re
from datetime import date
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")

# "Label (capacity - location) (vip)", e.g. "Business (25 - 2nd floor) (VIP)"
ROOM_NAME_PATTERN = re.compile(
    r"^(.*?)(?:\s*\((\d+)\s*(?:-\s*([^)]+))?\))?(?:\s*\((vip)\))?$",
    re.IGNORECASE,
)

# "2042-02-10 9:00 - 11:00"
SLOT_STRING_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})\s+(\d+:\d+)\s*-\s*(\d+:\d+)$")

# "Monday (2042-02-10)"
DAY_LABEL_PATTERN = re.compile(r"^(.*)\s+\((\d{4}-\d{2}-\d{2})\)$")

DEFAULT_ROOM_CAPACITY = 30


def weekday_name(day: str) -> str:
    """English weekday name of an ISO date."""
    return date.fromisoformat(day).strftime("%A")


def time_to_minutes(value: str) -> int:
    """Convert "H:MM" or "HH:MM" to minutes since midnight."""
    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError(f'Invalid time "{value}", expected "H:MM"')
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 24 or minutes > 59:
        raise ValueError(f'Invalid time "{value}"')
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as "H:MM"."""
    return f"{minutes // 60}:{minutes % 60:02d}"


def normalize_time(value: str) -> str:
    """Normalize a time so that "09:00" and "9:00" compare equal."""
    return minutes_to_time(time_to_minutes(value))


class Room(BaseModel):
    """A room sessions can be assigned to. Referenced by name."""

    model_config = ConfigDict(frozen=True)

    name: str
    label: str | None = None
    capacity: int | None = Field(default=None, ge=0)
    location: str | None = None
    vip: bool = False

    @classmethod
    def from_name(cls, name: str) -> Room:
        """Build a room from its display name, e.g. "Business (25) (VIP)"."""
        name = name.strip()
        # Every group in the pattern is optional so it always matches
        label, capacity, location, vip = ROOM_NAME_PATTERN.match(name).groups()  # type: ignore[union-attr]
        return cls(
            name=name,
            label=label.strip() or name,
            capacity=int(capacity) if capacity else None,
            location=location.strip() if location else None,
            vip=bool(vip),
        )

    def effective_capacity(self, default: int = DEFAULT_ROOM_CAPACITY) -> int:
        return self.capacity if self.capacity is not None else default


class Slot(BaseModel):
    """A (date, start, end) triple. Slots are totally ordered by (date, start)."""

    model_config = ConfigDict(frozen=True)

    date: str
    start: str
    end: str

    @field_validator("date")
    @classmethod
    def _check_date(cls, value: str) -> str:
        return date.fromisoformat(value.strip()).isoformat()

    @field_validator("start", "end")
    @classmethod
    def _check_time(cls, value: str) -> str:
        return normalize_time(value)

    @classmethod
    def from_string(cls, value: str) -> Slot:
        """Build a slot from "YYYY-MM-DD H:MM - H:MM"."""
        match = SLOT_STRING_PATTERN.match(value.strip())
        if not match:
            raise ValueError(f'Invalid slot "{value}", expected "YYYY-MM-DD H:MM - H:MM"')
        return cls(date=match.group(1), start=match.group(2), end=match.group(3))

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end)

    @property
    def duration(self) -> int:
        """Duration in minutes."""
        return self.end_minutes - self.start_minutes

    @property
    def weekday(self) -> str:
        return weekday_name(self.date)

    @property
    def name(self) -> str:
        return f"{self.start} - {self.end}"

    @property
    def day_label(self) -> str:
        return f"{self.weekday} ({self.date})"

    @property
    def sort_key(self) -> tuple[str, int]:
        return (self.date, self.start_minutes)


class Meeting(BaseModel):
    """
    One atomic occurrence of a session.

    An absent field means the axis is not constrained yet. `day` is an ISO
    date and `slot` the start time of a project slot on that day. A meeting
    with `invalid` set carries the original entry text and matches nothing.
    """

    room: str | None = None
    day: str | None = None
    slot: str | None = None
    actual_start: str | None = None
    actual_end: str | None = None
    invalid: str | None = None

    @property
    def is_scheduled(self) -> bool:
        """True when room, day and slot are all set."""
        return bool(self.room and self.day and self.slot)

    @property
    def has_time(self) -> bool:
        return bool(self.day and self.slot)


class GroupedMeeting(BaseModel):
    """A run of contiguous meetings in the same room and day."""

    room: str
    day: str
    start: str
    end: str


class Chair(BaseModel):
    login: str | None = None
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.login or ""

    def matches(self, other: Chair) -> bool:
        """Same person when logins or names match, case-insensitively."""
        if self.login and other.login and self.login.lower() == other.login.lower():
            return True
        return bool(self.name and other.name and self.name.lower() == other.name.lower())


class Group(BaseModel):
    name: str
    type: str | None = None
    abbr_name: str | None = Field(default=None, validation_alias=AliasChoices("abbr_name", "abbrName"))

    def same_group(self, other: Group) -> bool:
        if self.abbr_name is None or other.abbr_name is None:
            return self.name == other.name
        return self.type == other.type and self.abbr_name == other.abbr_name


class RequestedTime(BaseModel):
    """A requested (day, slot) pair. Normalized to (ISO date, slot start) on project load."""

    day: str
    slot: str


class SessionType(str, Enum):
    BREAKOUT = "breakout"
    PLENARY = "plenary"


class SessionDescription(BaseModel):
    """Parsed session metadata as provided by the project-tracking store."""

    type: SessionType = SessionType.BREAKOUT
    capacity: int | None = Field(default=None, ge=0)
    duration: int | None = Field(default=None, ge=0)
    conflicts: list[int] | None = None
    times: list[RequestedTime] | None = None
    slots: list[RequestedTime] | None = None
    nbslots: int | None = Field(default=None, ge=0)
    shortname: str | None = None
    comments: str | None = None
    exclude_author: bool = False  # author is not implicitly a chair


class SessionValidation(BaseModel):
    """Stored validation summary: comma-separated type lists per severity."""

    error: str = ""
    warning: str = ""
    check: str = ""
    note: str = ""


class Session(BaseModel):
    """The unit of scheduling."""

    number: int
    title: str = ""
    author: Chair | None = None
    chairs: list[Chair] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)
    highlight: str | None = None
    tracks: list[str] = Field(default_factory=list)

    # Raw scheduling fields
    room: str | None = None
    day: str | None = None
    slot: str | None = None
    meeting: str | None = None

    description: SessionDescription | None = None
    format_errors: list[str] = Field(default_factory=list)
    participants: int | None = None
    blocking_error: bool = False
    validation: SessionValidation = Field(default_factory=SessionValidation)

    # Set by the scheduler
    meetings: list[Meeting] = Field(default_factory=list)
    updated: bool = False

    @field_validator("author", mode="before")
    @classmethod
    def _author_from_login(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"login": value}
        return value

    @field_validator("chairs", mode="before")
    @classmethod
    def _chairs_from_names(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value

    @property
    def is_plenary(self) -> bool:
        return self.description is not None and self.description.type == SessionType.PLENARY

    @property
    def declared_conflicts(self) -> list[int]:
        if self.description is None or not self.description.conflicts:
            return []
        return self.description.conflicts


class EventType(str, Enum):
    GROUPS = "groups"
    BREAKOUTS = "breakouts"


class EventMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    meeting: str | None = None
    timezone: str | None = None
    type: EventType = EventType.BREAKOUTS
    plenary_room: str | None = Field(default=None, validation_alias=AliasChoices("plenary_room", "plenary room"))
    plenary_holds: int | None = Field(
        default=None, ge=1, validation_alias=AliasChoices("plenary_holds", "plenary holds")
    )


class Project(BaseModel):
    """A snapshot of an event: rooms, slots, sessions and event metadata."""

    title: str = ""
    metadata: EventMetadata = Field(default_factory=EventMetadata)
    allow_multiple_meetings: bool = False
    rooms: list[Room] = Field(default_factory=list)
    slots: list[Slot] = Field(default_factory=list)
    sessions: list[Session] = Field(default_factory=list)

    @field_validator("rooms", mode="before")
    @classmethod
    def _rooms_from_names(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [Room.from_name(item) if isinstance(item, str) else item for item in value]
        return value

    @field_validator("slots", mode="before")
    @classmethod
    def _slots_from_strings(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [Slot.from_string(item) if isinstance(item, str) else item for item in value]
        return value

    @field_validator("slots")
    @classmethod
    def _sort_slots(cls, value: list[Slot]) -> list[Slot]:
        return sorted(value, key=lambda slot: slot.sort_key)

    @model_validator(mode="after")
    def _normalize_requested_times(self) -> Project:
        for session in self.sessions:
            if session.description is None:
                continue
            for times in (session.description.times, session.description.slots):
                for time in times or []:
                    day = self.find_day(time.day)
                    slot = self.find_slot(time.slot, day=day)
                    if day and slot:
                        time.day = day
                        time.slot = slot.start
        return self

    @property
    def is_groups_event(self) -> bool:
        return self.metadata.type == EventType.GROUPS

    @property
    def days(self) -> list[str]:
        """Distinct slot dates, in order."""
        return list(dict.fromkeys(slot.date for slot in self.slots))

    def get_room(self, name: str | None) -> Room | None:
        """Find a room by name (exact, then case-insensitive), then by label."""
        if not name:
            return None
        for room in self.rooms:
            if room.name == name:
                return room
        lowered = name.strip().lower()
        for room in self.rooms:
            if room.name.lower() == lowered:
                return room
        for room in self.rooms:
            if room.label and room.label.lower() == lowered:
                return room
        return None

    def get_session(self, number: int) -> Session | None:
        return next((s for s in self.sessions if s.number == number), None)

    def find_day(self, token: str | None) -> str | None:
        """Resolve an ISO date, a weekday name or a "Weekday (date)" label to a slot date."""
        if not token:
            return None
        token = token.strip().lower()
        label = DAY_LABEL_PATTERN.match(token)
        if label:
            token = label.group(2)
        for slot in self.slots:
            if slot.date == token or slot.weekday.lower() == token:
                return slot.date
        return None

    def find_slot(self, start: str | None, end: str | None = None, day: str | None = None) -> Slot | None:
        """First slot starting at `start` (and ending at `end`, on `day`, when given)."""
        if not start:
            return None
        try:
            start_minutes = time_to_minutes(start)
            end_minutes = time_to_minutes(end) if end else None
        except ValueError:
            return None
        for slot in self.slots:
            if day and slot.date != day:
                continue
            if slot.start_minutes != start_minutes:
                continue
            if end_minutes is not None and slot.end_minutes != end_minutes:
                continue
            return slot
        return None

    def get_slot(self, day: str | None, start: str | None) -> Slot | None:
        """Slot at exactly (day, start)."""
        if not day or not start:
            return None
        return self.find_slot(start, day=day)

    def slot_index(self, day: str | None, start: str | None) -> int:
        slot = self.get_slot(day, start)
        return self.slots.index(slot) if slot is not None else -1

    def weekday_is_unique(self, day: str) -> bool:
        """True when no other date of the event falls on the same weekday."""
        weekday = weekday_name(day)
        return sum(1 for d in self.days if weekday_name(d) == weekday) == 1
