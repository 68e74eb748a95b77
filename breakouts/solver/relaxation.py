"""
Relaxation ladder for the scheduler.

A session is first scheduled under the strictest constraint record. When no
placement exists, exactly one constraint is relaxed, in the order of
`RELAXATION_ORDER`, and the search is retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..models import Room


class Relaxation(str, Enum):
    SAME_ROOM = "same_room"
    STRICT_DURATION = "strict_duration"
    TRACK_ROOM = "track_room"
    DURATION = "duration"
    CAPACITY = "capacity"
    SESSION_CONFLICTS = "session_conflicts"
    TRACK_CONFLICTS = "track_conflicts"
    STRICT_TIMES = "strict_times"
    MEETING_COUNT = "meeting_count"


RELAXATION_ORDER: tuple[Relaxation, ...] = tuple(Relaxation)

RELAXATION_MESSAGES = {
    Relaxation.SAME_ROOM: 'relax "same room" constraint',
    Relaxation.STRICT_DURATION: "relax duration comparison",
    Relaxation.TRACK_ROOM: "relax track room constraint",
    Relaxation.DURATION: "forget duration constraint",
    Relaxation.CAPACITY: "forget capacity constraint",
    Relaxation.SESSION_CONFLICTS: "forget session conflicts",
    Relaxation.TRACK_CONFLICTS: "forget track conflicts",
    Relaxation.STRICT_TIMES: "relax times constraint",
    Relaxation.MEETING_COUNT: "decrement number of meetings",
}


@dataclass
class SchedulingConstraints:
    """Constraint record for one session, strictest by default."""

    track_room: Room | None
    number_of_meetings: int = 1
    same_room: bool = True
    strict_duration: bool = True
    meet_duration: bool = True
    meet_capacity: bool = True
    avoid_session_conflicts: bool = True
    avoid_track_conflicts: bool = True
    strict_times: bool = True

    # Facts about the session that decide which steps apply
    min_meetings: int = 1
    has_duration: bool = False
    has_requested_times: bool = False

    def is_applicable(self, step: Relaxation) -> bool:
        """Whether relaxing `step` would change anything for this session."""
        if step == Relaxation.SAME_ROOM:
            return self.same_room and self.number_of_meetings > 1
        if step == Relaxation.STRICT_DURATION:
            return self.strict_duration and self.has_duration
        if step == Relaxation.TRACK_ROOM:
            return self.track_room is not None
        if step == Relaxation.DURATION:
            return self.meet_duration and self.has_duration
        if step == Relaxation.CAPACITY:
            return self.meet_capacity
        if step == Relaxation.SESSION_CONFLICTS:
            return self.avoid_session_conflicts
        if step == Relaxation.TRACK_CONFLICTS:
            return self.avoid_track_conflicts
        if step == Relaxation.STRICT_TIMES:
            return self.strict_times and self.has_requested_times
        return self.number_of_meetings > self.min_meetings

    def apply(self, step: Relaxation) -> None:
        if step == Relaxation.SAME_ROOM:
            self.same_room = False
        elif step == Relaxation.STRICT_DURATION:
            self.strict_duration = False
        elif step == Relaxation.TRACK_ROOM:
            self.track_room = None
        elif step == Relaxation.DURATION:
            self.meet_duration = False
        elif step == Relaxation.CAPACITY:
            self.meet_capacity = False
        elif step == Relaxation.SESSION_CONFLICTS:
            self.avoid_session_conflicts = False
        elif step == Relaxation.TRACK_CONFLICTS:
            self.avoid_track_conflicts = False
        elif step == Relaxation.STRICT_TIMES:
            self.strict_times = False
        else:
            self.number_of_meetings -= 1

    def relax(self) -> Relaxation | None:
        """
        Relax the first applicable constraint.

        Returns:
            The step that was applied, or None when the ladder is exhausted
        """
        for step in RELAXATION_ORDER:
            if self.is_applicable(step):
                self.apply(step)
                return step
        return None
