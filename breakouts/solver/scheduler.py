"""
Greedy track-based grid scheduler.

Sessions are shuffled with a seeded generator, then scheduled track by
track: the synthetic plenary track first, real tracks in discovery order,
and the untracked pool last. Each session is placed under the strictest
constraint record that admits a placement, relaxing one constraint at a
time. Sessions that cannot be placed are left as they are.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable

from pydantic import BaseModel, Field

from ..config import ConfigLoader
from ..conflicts import day_slot_conflict, is_meeting_available_for_session, meets_at, plenary_settings
from ..errors import SchedulingInvariantError
from ..logging_config import TRACE
from ..meetings import MeetingCache, default_meeting, serialize_meetings, split_entries
from ..models import Meeting, Project, Room, Session, Slot
from ..project_validator import ensure_valid_project
from .context import SchedulingContext
from .logging import RelaxationLogger
from .relaxation import RELAXATION_MESSAGES, SchedulingConstraints
from .srand import Srand

logger = logging.getLogger(__name__)

PLENARY_TRACK = "_plenary"
MAIN_TRACK = ""


class ScheduleResult(BaseModel):
    """Outcome of a scheduling run."""

    seed: int
    updated: list[int] = Field(default_factory=list)
    unscheduled: list[int] = Field(default_factory=list)
    skipped: list[int] = Field(default_factory=list)
    relaxations: dict[int, list[str]] = Field(default_factory=dict)


def requested_meeting_count(session: Session) -> int:
    """Number of meetings a session asks for: requested times, explicit count, meeting entries, or 1."""
    description = session.description
    if description is not None and description.times:
        return len(description.times)
    if description is not None and description.nbslots:
        return description.nbslots
    if session.meeting:
        return len(split_entries(session.meeting))
    return 1


class GridScheduler:
    """Schedules the sessions of a project in place."""

    def __init__(
        self,
        project: Project,
        seed: int | str | None = None,
        config: ConfigLoader | None = None,
    ) -> None:
        self.project = project
        self.config = config or ConfigLoader.get_instance()
        self.rnd = Srand(seed)

        # Debug mode from SCHEDULER_LOG_LEVEL env var or the scheduler.debug key
        scheduler_log_level = os.getenv("SCHEDULER_LOG_LEVEL", "INFO").upper()
        self.debug_mode = scheduler_log_level == "DEBUG" or self.config.get_bool("scheduler.debug")
        self.relaxation_logger = RelaxationLogger(debug_mode=self.debug_mode)

        self.cache = MeetingCache()
        self.plenary = plenary_settings(project, self.config)
        self.plenary_room = project.get_room(self.plenary.room)
        self.ctx = SchedulingContext(
            project=project,
            sessions=[],
            plenary=self.plenary,
            cache=self.cache,
            default_capacity=self.config.get_int("room.default_capacity"),
        )
        self.unscheduled: list[int] = []
        self.skipped: list[int] = []

    @property
    def seed(self) -> int:
        return self.rnd.current_seed

    def run(self) -> ScheduleResult:
        """
        Schedule every schedulable session.

        Raises:
            ProjectValidationError: If the project itself is malformed
            SchedulingInvariantError: If the relaxation state becomes inconsistent
        """
        ensure_valid_project(self.project, self.config)

        sessions = self.rnd.shuffle(list(self.project.sessions))
        self.relaxation_logger.log_progress(
            f'Shuffled sessions with seed "{self.seed}" to: {", ".join(str(s.number) for s in sessions)}'
        )
        self._prepare_pool(sessions)

        for track in self._tracks():
            track_room = self.choose_track_room(track)
            if track:
                room_name = track_room.name if track_room is not None else "none"
                self.relaxation_logger.log_progress(f'Schedule sessions in track "{track}" favoring room "{room_name}"')
            else:
                self.relaxation_logger.log_progress("Schedule sessions in main track")

            session = self.select_next_session(track)
            while session is not None:
                self.schedule_session(session, track_room)
                session = self.select_next_session(track)

        result = ScheduleResult(
            seed=self.seed,
            updated=[s.number for s in self.project.sessions if s.updated],
            unscheduled=self.unscheduled,
            skipped=self.skipped,
            relaxations=dict(self.relaxation_logger.relaxations),
        )
        logger.info(
            f"Scheduling done with seed {result.seed}: {len(result.updated)} updated, "
            f"{len(result.unscheduled)} unscheduled, {len(result.skipped)} skipped"
        )
        return result

    def save_log(self, log_dir: str | None = None) -> str:
        return self.relaxation_logger.save_to_file(self.seed, log_dir or self.config.get_str("scheduler.log_dir"))

    def _prepare_pool(self, sessions: list[Session]) -> None:
        pool = []
        for session in sessions:
            if session.description is None:
                self.relaxation_logger.log_skipped(session.number, "description could not be parsed")
                self.skipped.append(session.number)
            elif session.blocking_error:
                self.relaxation_logger.log_skipped(session.number, "session has a blocking error")
                self.skipped.append(session.number)
            else:
                pool.append(session)

        self.ctx.sessions = pool
        for session in pool:
            session.meetings = list(self.cache.get(session, self.project))
            invalid = [m.invalid for m in session.meetings if m.invalid is not None]
            if invalid:
                # Still occupies its valid meetings, but is never moved
                self.ctx.processed.add(session.number)
                self.relaxation_logger.log_skipped(session.number, f"invalid meeting entries {invalid}")
                self.skipped.append(session.number)
        self.ctx.build_usage()

    def _tracks(self) -> list[str]:
        tracks = []
        if self.plenary_room is not None:
            # No plenary room means no plenary
            tracks.append(PLENARY_TRACK)
        for session in self.ctx.sessions:
            for track in session.tracks:
                if track and track not in tracks:
                    tracks.append(track)
        tracks.append(MAIN_TRACK)
        return tracks

    def _belongs_to_track(self, session: Session, track: str) -> bool:
        if track == PLENARY_TRACK:
            return session.is_plenary
        return track == MAIN_TRACK or track in session.tracks

    def select_next_session(self, track: str) -> Session | None:
        """
        Pick the next unprocessed session of the track and flag it as processed.

        A session whose time is already imposed wins immediately. Otherwise
        the first session requiring the most meetings wins.
        """
        candidate: Session | None = None
        candidate_count = 0
        for session in self.ctx.sessions:
            if session.number in self.ctx.processed or not self._belongs_to_track(session, track):
                continue
            count = requested_meeting_count(session)
            imposed = any(m.slot for m in self.cache.get(session, self.project))
            if candidate is None or imposed or candidate_count < count:
                candidate, candidate_count = session, count
                if imposed:
                    break
        if candidate is not None:
            self.ctx.processed.add(candidate.number)
        return candidate

    def choose_track_room(self, track: str) -> Room | None:
        """
        Room that sessions of the track should share, if any.

        Rooms requested by sessions of the track come first, then the other
        rooms, each ordered by availability. The first room that has enough
        capacity and enough free slots wins, then capacity alone, then free
        slots alone.
        """
        if track == PLENARY_TRACK:
            return self.plenary_room
        if not track:
            return None

        track_sessions = [s for s in self.ctx.sessions if track in s.tracks]
        largest = max((s.description.capacity or 0 for s in track_sessions if s.description), default=0)

        def slots_taken(room: Room) -> int:
            return sum(1 for s in self.ctx.sessions_in(room) if track not in s.tracks)

        def meets_capacity(room: Room) -> bool:
            return self.ctx.capacity_of(room) >= largest

        def fits_track(room: Room) -> bool:
            return slots_taken(room) + len(track_sessions) <= len(self.project.slots)

        def meets_all(room: Room) -> bool:
            return meets_capacity(room) and fits_track(room)

        requested: list[Room] = []
        for session in track_sessions:
            room = self.project.get_room(session.room)
            if room is not None and room not in requested:
                requested.append(room)
        others = [
            room
            for room in self.project.rooms
            if room not in requested and not room.vip and not self.plenary.is_plenary_room(room.name)
        ]
        candidates = sorted(requested, key=slots_taken) + sorted(others, key=slots_taken)

        predicates: list[Callable[[Room], bool]] = [meets_all, meets_capacity, fits_track]
        for predicate in predicates:
            room = next((r for r in candidates if predicate(r)), None)
            if room is not None:
                return room
        return candidates[0] if candidates else None

    def schedule_session(self, session: Session, track_room: Room | None) -> bool:
        """Place one session, relaxing constraints until a placement exists or none is left."""
        description = session.description
        assert description is not None
        parsed = self.cache.get(session, self.project)
        pinned = sum(1 for m in parsed if m.is_scheduled)
        constraints = SchedulingConstraints(
            track_room=track_room,
            number_of_meetings=max(requested_meeting_count(session), pinned),
            min_meetings=max(1, pinned),
            has_duration=bool(description.duration),
            has_requested_times=bool(description.times or description.nbslots),
        )

        requested = constraints.number_of_meetings

        while not self.choose_session_meetings(session, constraints):
            step = constraints.relax()
            if step is None:
                self.relaxation_logger.log_unscheduled(session.number, "could not find a suitable meeting")
                self.unscheduled.append(session.number)
                self._release_pinned_meetings(session)
                return False
            self.relaxation_logger.log_relaxation(session.number, step.value, RELAXATION_MESSAGES[step])

        self.relaxation_logger.log_assignment(session.number, session.meetings)
        if constraints.number_of_meetings < requested:
            self.relaxation_logger.log_unscheduled(
                session.number,
                f"only {constraints.number_of_meetings} of {requested} meetings could be scheduled",
            )
            self.unscheduled.append(session.number)
            return False
        return True

    def _placed_sessions(self) -> list[Session]:
        """Sessions whose placement is settled, including those that are never moved."""
        return [s for s in self.ctx.sessions if s.number in self.ctx.processed]

    def _release_pinned_meetings(self, session: Session) -> None:
        """
        Clear the times of an unscheduled session whose pinned meetings clash
        with settled sessions, so that the grid does not keep the overlap.

        The requested room, if any, is kept.
        """
        placed = self._placed_sessions()
        for meeting in self.cache.get(session, self.project):
            if not meeting.has_time:
                continue
            slot = self.project.get_slot(meeting.day, meeting.slot)
            clashes = (
                meeting.room is not None
                and not is_meeting_available_for_session(
                    session, meeting, placed, self.project, self.plenary, self.cache
                )
            ) or (
                slot is not None
                and day_slot_conflict(
                    session,
                    slot,
                    placed,
                    self.project,
                    avoid_track_conflicts=False,
                    avoid_session_conflicts=False,
                    meet_duration=False,
                    cache=self.cache,
                )
                is not None
            )
            if clashes:
                break
        else:
            return

        logger.info(f"#{session.number}: clearing pinned times that clash with settled sessions")
        for sessions in self.ctx.slot_usage.values():
            if any(s is session for s in sessions):
                sessions[:] = [s for s in sessions if s is not session]
        if self.project.allow_multiple_meetings:
            session.meeting = None
        session.day = session.slot = None
        session.updated = True
        self.cache.invalidate(session.number)
        session.meetings = list(self.cache.get(session, self.project))

    def _base_meetings(self, session: Session, constraints: SchedulingConstraints) -> list[Meeting]:
        """Meetings to fill in. Some may already be partially or fully set."""
        parsed = self.cache.get(session, self.project)
        default = default_meeting(session, self.project)
        legacy_unpinned = len(parsed) == 1 and not session.meeting and not parsed[0].is_scheduled

        if not parsed or legacy_unpinned:
            description = session.description
            if constraints.strict_times and constraints.has_requested_times and description is not None:
                times = description.slots or description.times or []
                return [Meeting(room=default.room, day=t.day, slot=t.slot) for t in times]
            return [default.model_copy() for _ in range(constraints.number_of_meetings)]

        base = [m.model_copy() for m in parsed]
        while len(base) < constraints.number_of_meetings:
            base.append(default.model_copy())
        return base

    def _possible_rooms(
        self,
        session: Session,
        meeting: Meeting,
        constraints: SchedulingConstraints,
        previous_room: Room | None = None,
    ) -> list[Room]:
        """
        Candidate rooms for a meeting.

        An assigned room is the only possibility. Otherwise the track room,
        then the room of the first meeting when meetings share a room.
        Otherwise every room large enough, smallest first, followed by the
        smaller rooms, largest first, once capacity is relaxed.
        """
        if meeting.room:
            room = self.project.get_room(meeting.room)
            return [room] if room is not None else []
        if constraints.track_room is not None:
            return [constraints.track_room]
        if previous_room is not None and constraints.same_room:
            return [previous_room]

        capacity = session.description.capacity if session.description else None
        allowed = [
            room
            for room in self.project.rooms
            if not room.vip and (session.is_plenary or not self.plenary.is_plenary_room(room.name))
        ]
        rooms = sorted(
            (r for r in allowed if self.ctx.capacity_of(r) >= (capacity or 0)),
            key=self.ctx.capacity_of,
        )
        if not constraints.meet_capacity and capacity:
            rooms.extend(
                sorted(
                    (r for r in allowed if self.ctx.capacity_of(r) < capacity),
                    key=self.ctx.capacity_of,
                    reverse=True,
                )
            )
        return rooms

    def _plenary_load(self, slot: Slot) -> int:
        if self.plenary_room is None:
            return 0
        probe = Meeting(room=self.plenary_room.name, day=slot.date, slot=slot.start)
        return sum(1 for s in self.ctx.sessions_at(slot) if meets_at(s, probe, self.project, self.cache))

    def _possible_slots(
        self,
        session: Session,
        meeting: Meeting,
        meetings: list[Meeting],
        room: Room,
        pool: list[Session],
        constraints: SchedulingConstraints,
    ) -> list[Slot]:
        """
        Candidate slots for a meeting in a given room, in preference order.

        Plenary sessions fill the busiest plenary slot first. Sessions
        without a track room take the least used slots first. Others take
        slots in order.
        """

        def is_available(slot: Slot) -> bool:
            probe = Meeting(room=room.name, day=slot.date, slot=slot.start)
            if not is_meeting_available_for_session(
                session, probe, pool, self.project, self.plenary, self.cache
            ):
                return False
            return not any(
                other is not meeting and other.day == slot.date and other.slot == slot.start for other in meetings
            )

        if meeting.day and meeting.slot:
            slot = self.project.get_slot(meeting.day, meeting.slot)
            return [slot] if slot is not None and is_available(slot) else []

        candidates = [
            slot
            for slot in self.project.slots
            if (not meeting.day or slot.date == meeting.day)
            and (not meeting.slot or slot.start == meeting.slot)
            and is_available(slot)
        ]
        if session.is_plenary:
            candidates.sort(key=lambda s: (-self._plenary_load(s), -self.ctx.slot_position(s)))
        elif constraints.track_room is None:
            candidates.sort(key=lambda s: (len(self.ctx.sessions_at(s)), self.ctx.slot_position(s)))
        return candidates

    def _is_non_conflicting(
        self, session: Session, slot: Slot, pool: list[Session], constraints: SchedulingConstraints
    ) -> bool:
        conflict = day_slot_conflict(
            session,
            slot,
            pool,
            self.project,
            avoid_track_conflicts=constraints.avoid_track_conflicts,
            avoid_session_conflicts=constraints.avoid_session_conflicts,
            meet_duration=constraints.meet_duration,
            strict_duration=constraints.strict_duration,
            cache=self.cache,
        )
        logger.log(TRACE, f"#{session.number}: probing {slot.date} {slot.start}")
        if conflict is not None:
            logger.debug(f"#{session.number}: {slot.date} {slot.start} rejected ({conflict.value} conflict)")
        return conflict is None

    def choose_session_meetings(self, session: Session, constraints: SchedulingConstraints) -> bool:
        """
        Try to place the session under the given constraints.

        Returns:
            True when all the session's meetings are placed (the session is
            updated if anything changed), False otherwise

        Raises:
            SchedulingInvariantError: If the number of retained meetings does
                not match the number of meetings sought
        """
        base = self._base_meetings(session, constraints)
        count = constraints.number_of_meetings
        if len(base) < count:
            return False

        first_rooms: list[Room | None]
        if constraints.same_room:
            first_rooms = list(self._possible_rooms(session, base[0], constraints))
        else:
            first_rooms = [None]

        for first_room in first_rooms:
            meetings = [m.model_copy() for m in base]
            placed = [False] * len(meetings)

            for index, meeting in enumerate(meetings):
                # Fixed times only compete with settled sessions
                pool = self._placed_sessions() if meeting.has_time else self.ctx.sessions
                for room in self._possible_rooms(session, meeting, constraints, previous_room=first_room):
                    slot = next(
                        (
                            s
                            for s in self._possible_slots(session, meeting, meetings, room, pool, constraints)
                            if self._is_non_conflicting(session, s, pool, constraints)
                        ),
                        None,
                    )
                    if slot is None:
                        continue
                    if not meeting.room:
                        meeting.room = room.name
                    if not meeting.has_time:
                        meeting.day, meeting.slot = slot.date, slot.start
                    placed[index] = True
                    break
                if sum(placed) >= count:
                    break

            # Drop unplaced meetings beyond the number sought
            while len(meetings) > count and not all(placed):
                index = placed.index(False)
                del meetings[index]
                del placed[index]
            if len(meetings) != count:
                raise SchedulingInvariantError(
                    f"Unexpected number of meetings scheduled for #{session.number}: "
                    f"{len(meetings)} instead of {count}"
                )

            if all(placed):
                if meetings != self.cache.get(session, self.project):
                    self._commit(session, meetings)
                return True
        return False

    def _commit(self, session: Session, meetings: list[Meeting]) -> None:
        if self.project.allow_multiple_meetings:
            serialized = serialize_meetings(meetings, self.project)
            if serialized.room:
                session.room = serialized.room
            session.meeting = serialized.meeting
        else:
            first = meetings[0]
            session.room, session.day, session.slot = first.room, first.day, first.slot
        session.meetings = meetings
        session.updated = True
        self.cache.invalidate(session.number)

        for meeting in meetings:
            room = self.project.get_room(meeting.room)
            if room is not None and all(s is not session for s in self.ctx.sessions_in(room)):
                self.ctx.sessions_in(room).append(session)
            slot = self.project.get_slot(meeting.day, meeting.slot)
            if slot is not None and all(s is not session for s in self.ctx.sessions_at(slot)):
                self.ctx.sessions_at(slot).append(session)


def suggest_schedule(
    project: Project,
    seed: int | str | None = None,
    config: ConfigLoader | None = None,
) -> ScheduleResult:
    """
    Suggest a schedule for the project, updating its sessions in place.

    Args:
        project: Project snapshot; sessions are mutated
        seed: Shuffle seed; a random one is drawn (and returned) when omitted
        config: Configuration, defaults to the global loader

    Returns:
        ScheduleResult with the seed actually used
    """
    return GridScheduler(project, seed=seed, config=config).run()
