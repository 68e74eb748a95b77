"""
Meeting field parser, serializer and grouping.

The meeting field is a boundary format: entries are separated by ";" or "|"
and each entry is a comma-separated list of tokens. A token is a slot
expression "H:MM[<H:MM>][ - H:MM[<H:MM>]]", a room name, or a day (ISO
date, weekday or "Weekday (date)" label), classified in that order.

Malformed entries never raise: they come back as meetings with `invalid`
set to the original entry text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .models import (
    GroupedMeeting,
    Meeting,
    Project,
    Session,
    Slot,
    normalize_time,
    time_to_minutes,
    weekday_name,
)

logger = logging.getLogger(__name__)

ENTRY_SEPARATOR = re.compile(r"[;|]")

# Captures slot start (1), actual start (2), slot end (3) and actual end (4)
SLOT_EXPRESSION = re.compile(r"^(\d+:\d+)(?:<(\d+:\d+)>)?(?:\s*-\s*(\d+:\d+)(?:<(\d+:\d+)>)?)?$")


class TokenKind(str, Enum):
    SLOT = "slot"
    ROOM = "room"
    DAY = "day"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Token:
    """A classified token. `value` is the room name, ISO date or slot start."""

    kind: TokenKind
    text: str
    value: str | None = None
    end: str | None = None
    actual_start: str | None = None
    actual_end: str | None = None


@dataclass(frozen=True)
class SerializedMeetings:
    """Meeting field value, with the room promoted out when all meetings share it."""

    room: str | None
    meeting: str | None


def split_entries(text: str) -> list[str]:
    return [entry.strip() for entry in ENTRY_SEPARATOR.split(text)]


def split_tokens(entry: str) -> list[str]:
    return [token.strip().lower() for token in entry.split(",")]


def classify_token(token: str, project: Project) -> Token:
    """Classify one token against the project's slots, rooms and days.

    A token that looks like a slot expression is never reinterpreted as a room
    or a day, even when no slot matches it.
    """
    match = SLOT_EXPRESSION.match(token)
    if match:
        start, actual_start, end, actual_end = match.groups()
        slot = project.find_slot(start, end)
        if slot is None:
            return Token(TokenKind.UNKNOWN, token)
        try:
            return Token(
                TokenKind.SLOT,
                token,
                value=slot.start,
                end=slot.end if end else None,
                actual_start=normalize_time(actual_start) if actual_start else None,
                actual_end=normalize_time(actual_end) if actual_end else None,
            )
        except ValueError:
            return Token(TokenKind.UNKNOWN, token)

    room = project.get_room(token)
    if room is not None:
        return Token(TokenKind.ROOM, token, value=room.name)

    day = project.find_day(token)
    if day is not None:
        return Token(TokenKind.DAY, token, value=day)

    return Token(TokenKind.UNKNOWN, token)


def actual_times_are_valid(
    slot: Slot,
    actual_start: str | None,
    actual_end: str | None,
    project: Project,
) -> bool:
    """Check actual start/end overrides against the slot and its same-day neighbours.

    An override must differ from the slot boundary it replaces, stay on the
    right side of the other boundary, and not encroach on the adjacent slot.
    """
    index = project.slots.index(slot)
    previous = project.slots[index - 1] if index > 0 else None
    if previous is not None and previous.date != slot.date:
        previous = None
    following = project.slots[index + 1] if index + 1 < len(project.slots) else None
    if following is not None and following.date != slot.date:
        following = None

    start = time_to_minutes(actual_start) if actual_start else None
    end = time_to_minutes(actual_end) if actual_end else None

    if start is not None:
        if start == slot.start_minutes or start >= slot.end_minutes:
            return False
        if previous is not None and start < previous.end_minutes:
            return False
    if end is not None:
        if end == slot.end_minutes or end <= slot.start_minutes:
            return False
        if following is not None and end > following.start_minutes:
            return False
    if start is not None and end is not None and start > end:
        return False
    return True


def _resolve_legacy_slot(value: str | None, day: str | None, project: Project) -> Slot | None:
    if not value:
        return None
    match = SLOT_EXPRESSION.match(value.strip())
    if not match:
        return None
    start, _, end, _ = match.groups()
    return project.find_slot(start, end, day=day)


def default_meeting(session: Session, project: Project) -> Meeting:
    """Meeting built from the session's legacy room/day/slot fields."""
    room = project.get_room(session.room)
    day = project.find_day(session.day)
    slot = _resolve_legacy_slot(session.slot, day, project)
    return Meeting(
        room=room.name if room is not None else session.room or None,
        day=day,
        slot=slot.start if slot is not None else None,
    )


def parse_entry(entry: str, defaults: Meeting, project: Project) -> Meeting:
    """Parse one meeting entry, starting from the session defaults."""
    room, day = defaults.room, defaults.day
    slot_start: str | None = defaults.slot
    slot_end: str | None = None
    actual_start: str | None = None
    actual_end: str | None = None

    for text in split_tokens(entry):
        token = classify_token(text, project)
        if token.kind == TokenKind.UNKNOWN:
            return Meeting(invalid=entry)
        if token.kind == TokenKind.SLOT:
            slot_start, slot_end = token.value, token.end
            actual_start, actual_end = token.actual_start, token.actual_end
        elif token.kind == TokenKind.ROOM:
            room = token.value
        else:
            day = token.value

    slot = None
    if slot_start:
        slot = project.find_slot(slot_start, slot_end, day=day)
        if slot is None or not actual_times_are_valid(slot, actual_start, actual_end, project):
            return Meeting(invalid=entry)

    return Meeting(
        room=room,
        day=day,
        slot=slot.start if slot is not None else None,
        actual_start=actual_start,
        actual_end=actual_end,
    )


def parse_session_meetings(session: Session, project: Project) -> list[Meeting]:
    """
    Turn a session's scheduling fields into a list of atomic meetings.

    With a meeting field, returns one meeting per entry. Otherwise falls back
    to a single meeting built from the legacy room/day/slot fields, or an
    empty list when none of them is set.
    """
    defaults = default_meeting(session, project)
    if session.meeting:
        meetings = [parse_entry(entry, defaults, project) for entry in split_entries(session.meeting)]
        for meeting in meetings:
            if meeting.invalid is not None:
                logger.debug(f"Session #{session.number}: invalid meeting entry {meeting.invalid!r}")
        return meetings
    if defaults.room or defaults.day or defaults.slot:
        return [defaults]
    return []


def _day_token(day: str, project: Project) -> str:
    if day not in project.days:
        return day
    # Weekdays only round-trip when the event has a single date on that weekday
    if project.weekday_is_unique(day):
        return weekday_name(day)
    return day


def _slot_token(meeting: Meeting, project: Project) -> str:
    slot = project.find_slot(meeting.slot, day=meeting.day) or project.find_slot(meeting.slot)
    if slot is None:
        return meeting.slot or ""
    if meeting.actual_end:
        if meeting.actual_start:
            return f"{slot.start}<{meeting.actual_start}> - {slot.end}<{meeting.actual_end}>"
        return f"{slot.start} - {slot.end}<{meeting.actual_end}>"
    if meeting.actual_start:
        return f"{slot.start}<{meeting.actual_start}>"
    return slot.start


def serialize_meetings(meetings: list[Meeting], project: Project) -> SerializedMeetings:
    """
    Serialize meetings back to a meeting field value.

    When every meeting uses the same room, the room is returned separately
    and left out of the entries.
    """
    if not meetings:
        return SerializedMeetings(room=None, meeting=None)

    first_room = meetings[0].room
    room = first_room if first_room and all(m.room == first_room for m in meetings) else None

    entries = []
    for meeting in meetings:
        if meeting.invalid:
            entries.append(meeting.invalid)
            continue
        tokens = []
        if meeting.day:
            tokens.append(_day_token(meeting.day, project))
        if meeting.slot:
            tokens.append(_slot_token(meeting, project))
        if meeting.room and not room:
            tokens.append(meeting.room)
        entries.append(", ".join(tokens))

    return SerializedMeetings(room=room, meeting="; ".join(entries))


@dataclass
class _Run:
    room: str
    day: str
    start: str
    end: str
    end_index: int


def group_meetings(meetings: list[Meeting], project: Project) -> list[GroupedMeeting]:
    """
    Merge meetings in the same room and day that occupy contiguous slots.

    Runs start and end at the actual times of their boundary meetings when
    those are set.
    """
    groups: dict[tuple[str, str], list[tuple[int, Meeting]]] = {}
    for meeting in meetings:
        if not meeting.is_scheduled:
            continue
        index = project.slot_index(meeting.day, meeting.slot)
        if index < 0:
            continue
        groups.setdefault((meeting.room, meeting.day), []).append((index, meeting))  # type: ignore[arg-type]

    runs: list[_Run] = []
    for (room, day), group in groups.items():
        group.sort(key=lambda item: item[0])
        current: _Run | None = None
        for index, meeting in group:
            slot = project.slots[index]
            if current is not None and index == current.end_index + 1:
                current.end = meeting.actual_end or slot.end
                current.end_index = index
                continue
            current = _Run(
                room=room,
                day=day,
                start=meeting.actual_start or slot.start,
                end=meeting.actual_end or slot.end,
                end_index=index,
            )
            runs.append(current)

    return [GroupedMeeting(room=run.room, day=run.day, start=run.start, end=run.end) for run in runs]


class MeetingCache:
    """
    Caller-owned memo of parsed meetings, keyed by session number.

    Invalidate a session after changing its scheduling fields.
    """

    def __init__(self) -> None:
        self._meetings: dict[int, list[Meeting]] = {}

    def get(self, session: Session, project: Project) -> list[Meeting]:
        meetings = self._meetings.get(session.number)
        if meetings is None:
            meetings = parse_session_meetings(session, project)
            self._meetings[session.number] = meetings
        return meetings

    def invalidate(self, number: int) -> None:
        self._meetings.pop(number, None)

    def reset(self) -> None:
        self._meetings.clear()

    def __contains__(self, number: object) -> bool:
        return number in self._meetings

    def __len__(self) -> int:
        return len(self._meetings)


def session_meetings(session: Session, project: Project, cache: MeetingCache | None = None) -> list[Meeting]:
    """Parsed meetings of a session, through the cache when one is given."""
    if cache is not None:
        return cache.get(session, project)
    return parse_session_meetings(session, project)


def group_session_meetings(
    session: Session,
    project: Project,
    cache: MeetingCache | None = None,
) -> list[GroupedMeeting]:
    """Calendar-ready grouped meetings of a session."""
    return group_meetings(session_meetings(session, project, cache), project)
