"""Tests for the relaxation ladder."""

from __future__ import annotations

from breakouts.models import Room
from breakouts.solver.relaxation import RELAXATION_MESSAGES, RELAXATION_ORDER, Relaxation, SchedulingConstraints


def drain(constraints: SchedulingConstraints) -> list[Relaxation]:
    steps = []
    step = constraints.relax()
    while step is not None:
        steps.append(step)
        step = constraints.relax()
    return steps


class TestRelaxationOrder:
    def test_order(self):
        assert RELAXATION_ORDER == (
            Relaxation.SAME_ROOM,
            Relaxation.STRICT_DURATION,
            Relaxation.TRACK_ROOM,
            Relaxation.DURATION,
            Relaxation.CAPACITY,
            Relaxation.SESSION_CONFLICTS,
            Relaxation.TRACK_CONFLICTS,
            Relaxation.STRICT_TIMES,
            Relaxation.MEETING_COUNT,
        )

    def test_every_step_has_a_message(self):
        assert set(RELAXATION_MESSAGES) == set(Relaxation)


class TestSchedulingConstraints:
    """Test which steps apply and how they change the record."""

    def test_full_ladder(self):
        """Every step applies once, then the meeting count goes down to the floor."""
        constraints = SchedulingConstraints(
            track_room=Room.from_name("Room 1"),
            number_of_meetings=3,
            min_meetings=2,
            has_duration=True,
            has_requested_times=True,
        )
        assert drain(constraints) == list(RELAXATION_ORDER)
        assert constraints.number_of_meetings == 2
        assert constraints.track_room is None
        assert not constraints.same_room
        assert not constraints.meet_capacity

    def test_single_meeting_session(self):
        """Steps that would change nothing are skipped."""
        constraints = SchedulingConstraints(track_room=None)
        assert drain(constraints) == [
            Relaxation.CAPACITY,
            Relaxation.SESSION_CONFLICTS,
            Relaxation.TRACK_CONFLICTS,
        ]

    def test_meeting_count_decrements_one_at_a_time(self):
        constraints = SchedulingConstraints(
            track_room=None,
            number_of_meetings=3,
            same_room=False,
            meet_capacity=False,
            avoid_session_conflicts=False,
            avoid_track_conflicts=False,
        )
        assert constraints.relax() == Relaxation.MEETING_COUNT
        assert constraints.number_of_meetings == 2
        assert constraints.relax() == Relaxation.MEETING_COUNT
        assert constraints.relax() is None
        assert constraints.number_of_meetings == 1

    def test_duration_relaxed_in_two_steps(self):
        constraints = SchedulingConstraints(track_room=None, has_duration=True)
        assert constraints.relax() == Relaxation.STRICT_DURATION
        assert constraints.meet_duration
        assert constraints.relax() == Relaxation.DURATION
        assert not constraints.meet_duration
