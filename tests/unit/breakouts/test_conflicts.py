"""Tests for the conflict oracle predicates."""

from __future__ import annotations

from breakouts.config import ConfigLoader
from breakouts.conflicts import (
    ConflictKind,
    day_slot_conflict,
    indirect_conflicts,
    is_meeting_available_for_session,
    meets_at,
    meets_in_parallel_with,
    meets_in_room,
    plenary_settings,
    session_chairs,
    shared_chairs,
)
from breakouts.models import Meeting

TUESDAY = "2042-02-11"


def tuesday_9(room: str | None = None) -> Meeting:
    return Meeting(room=room, day=TUESDAY, slot="9:00")


class TestMeetingPredicates:
    """Test meets_at, meets_in_parallel_with and meets_in_room."""

    def test_meets_at_same_room_and_time(self, build_project, make_session):
        project = build_project([make_session(1, room="Room 1", meeting="Tuesday, 9:00")])
        session = project.sessions[0]
        assert meets_at(session, tuesday_9("Room 1"), project)
        assert meets_at(session, tuesday_9(), project)
        assert not meets_at(session, tuesday_9("Small (10)"), project)

    def test_parallel_means_other_or_unknown_room(self, build_project, make_session):
        """Same room and same time is "at", not "in parallel"."""
        project = build_project([make_session(1, room="Room 1", meeting="Tuesday, 9:00")])
        session = project.sessions[0]
        assert meets_in_parallel_with(session, tuesday_9("Small (10)"), project)
        assert meets_in_parallel_with(session, tuesday_9(), project)
        assert not meets_in_parallel_with(session, tuesday_9("Room 1"), project)

    def test_meeting_without_time_matches_nothing(self, build_project, make_session):
        project = build_project([make_session(1, room="Room 1", meeting="Tuesday, 9:00")])
        session = project.sessions[0]
        assert not meets_at(session, Meeting(room="Room 1"), project)
        assert not meets_in_parallel_with(session, Meeting(room="Small (10)"), project)

    def test_meets_in_room(self, build_project, make_session):
        project = build_project([make_session(1, room="Room 1")])
        assert meets_in_room(project.sessions[0], "Room 1", project)
        assert not meets_in_room(project.sessions[0], "Small (10)", project)


class TestPlenarySettings:
    """Test plenary room and cap resolution."""

    def test_defaults_resolve_room_label(self, build_project):
        """The default "Plenary" designates the room labelled Plenary."""
        settings = plenary_settings(build_project([]))
        assert settings.room == "Plenary (200)"
        assert settings.holds == 5

    def test_metadata_wins_over_config(self, build_project):
        project = build_project([], metadata={"plenary room": "Room 1", "plenary holds": 2})
        config = ConfigLoader(overrides={"plenary.holds": 3})
        settings = plenary_settings(project, config)
        assert settings.room == "Room 1"
        assert settings.holds == 2

    def test_config_override(self, build_project):
        config = ConfigLoader(overrides={"plenary.holds": 3})
        assert plenary_settings(build_project([]), config).holds == 3


class TestChairs:
    """Test chair identity."""

    def test_author_is_implicit_chair(self, build_project, make_session):
        project = build_project([make_session(1, author="alice", chairs=[{"login": "bob"}])])
        logins = [chair.login for chair in session_chairs(project.sessions[0])]
        assert logins == ["alice", "bob"]

    def test_excluded_author(self, build_project, make_session):
        project = build_project(
            [make_session(1, author="alice", chairs=[{"login": "bob"}], description={"exclude_author": True})]
        )
        assert [chair.login for chair in session_chairs(project.sessions[0])] == ["bob"]

    def test_shared_chairs_match_case_insensitively(self, build_project, make_session):
        project = build_project(
            [
                make_session(1, author="alice"),
                make_session(2, author="bob", chairs=[{"login": "Alice"}]),
            ]
        )
        assert shared_chairs(project.sessions[0], project.sessions[1]) == ["Alice"]


class TestAvailability:
    """Test is_meeting_available_for_session."""

    def test_breakout_needs_free_tuple(self, build_project, make_session):
        project = build_project(
            [
                make_session(1, room="Room 1", meeting="Tuesday, 9:00"),
                make_session(2),
            ]
        )
        plenary = plenary_settings(project)
        candidate = project.sessions[1]
        assert not is_meeting_available_for_session(candidate, tuesday_9("Room 1"), project.sessions, project, plenary)
        assert is_meeting_available_for_session(candidate, tuesday_9("Small (10)"), project.sessions, project, plenary)

    def test_breakout_never_parallel_to_plenary(self, build_project, make_session):
        project = build_project(
            [
                make_session(1, room="Plenary", meeting="Tuesday, 9:00", description={"type": "plenary"}),
                make_session(2),
            ]
        )
        plenary = plenary_settings(project)
        assert not is_meeting_available_for_session(
            project.sessions[1], tuesday_9("Small (10)"), project.sessions, project, plenary
        )

    def test_plenary_slot_holds_up_to_cap(self, build_project, make_session):
        """Plenary sessions share the plenary slot up to the configured cap."""
        sessions = [
            make_session(n, room="Plenary", meeting="Tuesday, 9:00", description={"type": "plenary"})
            for n in (1, 2)
        ]
        sessions.append(make_session(3, description={"type": "plenary"}))
        project = build_project(sessions, metadata={"plenary holds": 3})
        plenary = plenary_settings(project)
        probe = tuesday_9("Plenary (200)")
        assert is_meeting_available_for_session(project.sessions[2], probe, project.sessions, project, plenary)

        full = build_project(sessions, metadata={"plenary holds": 2})
        assert not is_meeting_available_for_session(
            full.sessions[2], probe, full.sessions, full, plenary_settings(full)
        )


class TestDaySlotConflict:
    """Test the non-conflict check used by the scheduler."""

    def test_track_conflict_can_be_relaxed(self, build_project, make_session):
        project = build_project(
            [
                make_session(1, room="Room 1", meeting="Tuesday, 9:00", tracks=["web"]),
                make_session(2, tracks=["web"]),
            ]
        )
        slot = project.slots[0]
        candidate = project.sessions[1]
        assert day_slot_conflict(candidate, slot, project.sessions, project) == ConflictKind.TRACK
        assert day_slot_conflict(candidate, slot, project.sessions, project, avoid_track_conflicts=False) is None

    def test_chair_conflict_is_always_enforced(self, build_project, make_session):
        project = build_project(
            [
                make_session(1, author="alice", room="Room 1", meeting="Tuesday, 9:00"),
                make_session(2, author="alice"),
            ]
        )
        conflict = day_slot_conflict(
            project.sessions[1],
            project.slots[0],
            project.sessions,
            project,
            avoid_track_conflicts=False,
            avoid_session_conflicts=False,
            meet_duration=False,
        )
        assert conflict == ConflictKind.CHAIR

    def test_declared_conflict_either_way(self, build_project, make_session):
        """A conflict declared by the other session counts too."""
        project = build_project(
            [
                make_session(1, room="Room 1", meeting="Tuesday, 9:00", description={"conflicts": [2]}),
                make_session(2),
            ]
        )
        candidate = project.sessions[1]
        slot = project.slots[0]
        assert day_slot_conflict(candidate, slot, project.sessions, project) == ConflictKind.SESSION
        assert day_slot_conflict(candidate, slot, project.sessions, project, avoid_session_conflicts=False) is None

    def test_duration_strict_then_minimum(self, build_project, make_session):
        project = build_project([make_session(1, description={"duration": 90})])
        session = project.sessions[0]
        slot = project.slots[0]
        assert day_slot_conflict(session, slot, project.sessions, project) == ConflictKind.DURATION
        assert day_slot_conflict(session, slot, project.sessions, project, strict_duration=False) is None

    def test_plenary_sessions_share_tracks_and_chairs(self, build_project, make_session):
        project = build_project(
            [
                make_session(
                    1,
                    author="alice",
                    room="Plenary",
                    meeting="Tuesday, 9:00",
                    tracks=["web"],
                    description={"type": "plenary"},
                ),
                make_session(2, author="alice", tracks=["web"], description={"type": "plenary"}),
            ]
        )
        assert day_slot_conflict(project.sessions[1], project.slots[0], project.sessions, project) is None


class TestIndirectConflicts:
    """Test conflict inheritance in group meetings."""

    def test_joint_meeting_inherits_and_expands(self, build_project, make_session):
        """A joint meeting inherits its groups' conflicts, expanded to all their sessions."""
        css = {"name": "CSS WG", "type": "working group", "abbrName": "css"}
        html = {"name": "HTML WG", "type": "working group", "abbrName": "html"}
        svg = {"name": "SVG WG", "type": "working group", "abbrName": "svg"}
        project = build_project(
            [
                make_session(1, title="CSS WG", groups=[css], description={"conflicts": [3]}),
                make_session(2, title="HTML WG", groups=[html]),
                make_session(3, title="SVG WG", groups=[svg]),
                make_session(4, title="SVG WG", groups=[svg], highlight="Day 2"),
                make_session(5, title="CSS WG & HTML WG Joint Meeting", groups=[css, html]),
            ],
            metadata={"type": "groups"},
        )
        assert indirect_conflicts(project.sessions[4], project) == [3, 4]
        assert indirect_conflicts(project.sessions[0], project) == [4]
