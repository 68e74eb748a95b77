"""
Breakouts - meeting grid assignment engine.

This package contains:
- models: Rooms, slots, sessions and meetings
- meetings: Meeting field parser, serializer and grouping
- conflicts: Conflict oracle predicates
- grid_validator: Session and grid validation
- solver: Greedy track-based scheduler with constraint relaxation
"""

from breakouts.errors import (
    BreakoutsError,
    ProjectValidationError,
    SchedulingInvariantError,
    UnknownSessionError,
)
from breakouts.grid_validator import (
    GridValidationResult,
    GridValidator,
    ValidationIssue,
    validate_grid,
    validate_session,
)
from breakouts.meetings import (
    MeetingCache,
    group_session_meetings,
    parse_session_meetings,
    serialize_meetings,
)
from breakouts.models import GroupedMeeting, Meeting, Project, Room, Session, Slot
from breakouts.project_loader import load_project, project_from_dict
from breakouts.solver import GridScheduler, ScheduleResult, suggest_schedule

__all__ = [
    "BreakoutsError",
    "GridScheduler",
    "GridValidationResult",
    "GridValidator",
    "GroupedMeeting",
    "Meeting",
    "MeetingCache",
    "Project",
    "ProjectValidationError",
    "Room",
    "ScheduleResult",
    "SchedulingInvariantError",
    "Session",
    "Slot",
    "UnknownSessionError",
    "ValidationIssue",
    "group_session_meetings",
    "load_project",
    "parse_session_meetings",
    "project_from_dict",
    "serialize_meetings",
    "suggest_schedule",
    "validate_grid",
    "validate_session",
]
