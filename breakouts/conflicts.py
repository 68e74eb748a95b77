"""
Conflict oracle.

Pure predicates over a project snapshot, used both by the grid validator
and by the scheduler to probe candidate placements. None of them mutate
sessions.

"At" means same day and slot, in the same room when the probe names one.
"In parallel" means same day and slot in a different room, or where either
room is unknown.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from .config import ConfigLoader
from .meetings import MeetingCache, session_meetings
from .models import Chair, Meeting, Project, Session, Slot


class ConflictKind(str, Enum):
    """Reason a candidate (day, slot) is rejected for a session."""

    TRACK = "track"
    CHAIR = "chair"
    GROUP = "group"
    SESSION = "session"
    DURATION = "duration"


@dataclass(frozen=True)
class PlenarySettings:
    room: str
    holds: int

    def is_plenary_room(self, name: str | None) -> bool:
        return bool(name) and name.lower() == self.room.lower()  # type: ignore[union-attr]


def plenary_settings(project: Project, config: ConfigLoader | None = None) -> PlenarySettings:
    """Plenary room name and cap, from project metadata first, then configuration."""
    config = config or ConfigLoader.get_instance()
    room = project.metadata.plenary_room or config.get_str("plenary.room")
    holds = project.metadata.plenary_holds or config.get_int("plenary.holds")
    # "Plenary" also designates a room named "Plenary (200)"
    known = project.get_room(room)
    return PlenarySettings(room=known.name if known is not None else room, holds=holds)


def meets_at(session: Session, meeting: Meeting, project: Project, cache: MeetingCache | None = None) -> bool:
    """True if the session meets on the meeting's day and slot (and in its room, if set)."""
    if not meeting.has_time:
        return False
    return any(
        (not meeting.room or m.room == meeting.room) and m.day == meeting.day and m.slot == meeting.slot
        for m in session_meetings(session, project, cache)
    )


def meets_in_parallel_with(
    session: Session,
    meeting: Meeting,
    project: Project,
    cache: MeetingCache | None = None,
) -> bool:
    """True if the session meets on the meeting's day and slot in another (or an unknown) room."""
    if not meeting.has_time:
        return False
    return any(
        (not m.room or not meeting.room or m.room != meeting.room) and m.day == meeting.day and m.slot == meeting.slot
        for m in session_meetings(session, project, cache)
    )


def meets_in_room(session: Session, room: str, project: Project, cache: MeetingCache | None = None) -> bool:
    return any(m.room == room for m in session_meetings(session, project, cache))


def session_chairs(session: Session) -> list[Chair]:
    """Chairs of a session. The author counts as a chair unless the description says otherwise."""
    chairs = list(session.chairs)
    author = session.author
    if author is None or session.description is None or session.description.exclude_author:
        return chairs
    if not any(chair.matches(author) for chair in chairs):
        chairs.insert(0, author)
    return chairs


def shared_chairs(session: Session, other: Session) -> list[str]:
    """Names of `other`'s chairs who also chair `session`."""
    mine = session_chairs(session)
    names = [chair.display_name for chair in session_chairs(other) if any(chair.matches(m) for m in mine)]
    return list(dict.fromkeys(names))


def shared_groups(session: Session, other: Session) -> list[str]:
    """Names of `other`'s groups that also meet in `session`."""
    return [group.name for group in other.groups if any(group.same_group(mine) for mine in session.groups)]


def both_plenary(session: Session, other: Session) -> bool:
    return session.is_plenary and other.is_plenary


def is_meeting_available_for_session(
    session: Session,
    meeting: Meeting,
    sessions: Iterable[Session],
    project: Project,
    plenary: PlenarySettings,
    cache: MeetingCache | None = None,
) -> bool:
    """
    Whether `session` may take the (room, day, slot) of `meeting`.

    A plenary session may join a plenary slot that only holds plenary
    sessions and is not full. Any other session needs the exact tuple to be
    free and no plenary session to run at the same time.
    """
    others = [s for s in sessions if s is not session]
    if session.is_plenary:
        already_there = [s for s in others if meets_at(s, meeting, project, cache)]
        return all(s.is_plenary for s in already_there) and len(already_there) < plenary.holds

    if any(meets_at(s, meeting, project, cache) for s in others):
        return False
    return not any(s.is_plenary and meets_in_parallel_with(s, meeting, project, cache) for s in others)


def day_slot_conflict(
    session: Session,
    slot: Slot,
    sessions: Iterable[Session],
    project: Project,
    *,
    avoid_track_conflicts: bool = True,
    avoid_session_conflicts: bool = True,
    meet_duration: bool = True,
    strict_duration: bool = True,
    cache: MeetingCache | None = None,
) -> ConflictKind | None:
    """
    First reason why `session` cannot meet during `slot`, or None.

    Chair and group conflicts are always enforced. Two plenary sessions never
    conflict through a shared track, chair or group.
    """
    probe = Meeting(day=slot.date, slot=slot.start)
    concurrent = [s for s in sessions if s is not session and meets_at(s, probe, project, cache)]

    if avoid_track_conflicts:
        for other in concurrent:
            if set(other.tracks) & set(session.tracks) and not both_plenary(session, other):
                return ConflictKind.TRACK

    for other in concurrent:
        if both_plenary(session, other):
            continue
        if project.is_groups_event:
            if shared_groups(session, other):
                return ConflictKind.GROUP
        elif shared_chairs(session, other):
            return ConflictKind.CHAIR

    if avoid_session_conflicts:
        for other in concurrent:
            if other.number in session.declared_conflicts or session.number in other.declared_conflicts:
                return ConflictKind.SESSION

    duration = session.description.duration if session.description else None
    if meet_duration and duration:
        if strict_duration and slot.duration != duration:
            return ConflictKind.DURATION
        if not strict_duration and slot.duration < duration:
            return ConflictKind.DURATION

    return None


def indirect_conflicts(session: Session, project: Project) -> list[int]:
    """
    Conflicts a group meeting inherits beyond its own declared list.

    A joint meeting inherits the declared conflicts of each participating
    group's own session. A conflict with a single-group session extends to
    every other session of that group.
    """
    direct = session.declared_conflicts
    inherited: list[int] = []
    if len(session.groups) > 1:
        for group in session.groups:
            group_session = next(
                (s for s in project.sessions if len(s.groups) == 1 and s.groups[0].same_group(group)),
                None,
            )
            if group_session is not None:
                inherited.extend(group_session.declared_conflicts)

    result = list(inherited)
    for number in [*direct, *inherited]:
        if number == session.number:
            continue
        conflicting = project.get_session(number)
        if conflicting is None or len(conflicting.groups) != 1:
            # Joint meetings flagged as conflicting are not expanded
            continue
        conflicting_group = conflicting.groups[0]
        for other in project.sessions:
            if other.number in (number, session.number) or other.number in direct:
                continue
            if any(group.same_group(conflicting_group) for group in other.groups):
                result.append(other.number)

    return list(dict.fromkeys(result))
