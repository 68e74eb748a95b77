"""
Grid validation system to audit session placements and report issues.

Each session goes through an ordered battery of independent checks. Every
check returns zero or more issues tagged with a severity and a type; the
"severity: type" pairs are what gets stored in a session's validation
summary.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .config import ConfigLoader
from .conflicts import (
    both_plenary,
    indirect_conflicts,
    meets_at,
    meets_in_parallel_with,
    plenary_settings,
    session_chairs,
    shared_chairs,
    shared_groups,
)
from .errors import UnknownSessionError
from .meetings import MeetingCache
from .models import Meeting, Project, Session, SessionValidation
from .project_validator import ensure_valid_project

logger = logging.getLogger(__name__)


# Issues that depend on where and when sessions are scheduled
SCHEDULING_TYPES = frozenset(
    {
        "error: chair conflict",
        "error: group conflict",
        "error: scheduling",
        "error: irc",
        "error: times",
        "warning: capacity",
        "warning: conflict",
        "warning: duration",
        "warning: switch",
        "warning: track",
        "warning: times",
    }
)

JOINT_MEETING_TITLE = re.compile(r"^(.*)\s+Joint Meeting(?=$|\s*([:>].*))", re.IGNORECASE)


class ValidationSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    CHECK = "check"


class ValidationWhat(str, Enum):
    EVERYTHING = "everything"
    SCHEDULING = "scheduling"


class ValidationIssue(BaseModel):
    """Single validation issue found for a session."""

    session: int
    severity: ValidationSeverity
    type: str
    messages: list[str]
    details: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.severity.value}: {self.type}"


class SessionValidationChange(BaseModel):
    """New validation summary for a session whose stored summary is out of date."""

    number: int
    validation: SessionValidation


class GridValidationResult(BaseModel):
    errors: list[ValidationIssue] = Field(default_factory=list)
    changes: list[SessionValidationChange] = Field(default_factory=list)

    def by_severity(self, severity: ValidationSeverity) -> list[ValidationIssue]:
        return [issue for issue in self.errors if issue.severity == severity]


def _meeting_detail(meeting: Meeting, **extra: Any) -> dict[str, Any]:
    detail: dict[str, Any] = {"meeting": meeting.model_dump(exclude_none=True)}
    detail.update(extra)
    return detail


class GridValidator:
    """Validates session placements against the rest of the project."""

    def __init__(
        self,
        project: Project,
        config: ConfigLoader | None = None,
        cache: MeetingCache | None = None,
    ) -> None:
        self.project = project
        self.config = config or ConfigLoader.get_instance()
        self.cache = cache if cache is not None else MeetingCache()
        self.plenary = plenary_settings(project, self.config)
        self.default_capacity = self.config.get_int("room.default_capacity")

    def validate_session(self, number: int, check_project: bool = True) -> list[ValidationIssue]:
        """
        Run every check on one session.

        Args:
            number: Session number
            check_project: Run project-level precondition checks first

        Returns:
            Issues found, in check order

        Raises:
            ProjectValidationError: If the project itself is malformed
            UnknownSessionError: If the session is not in the project
        """
        if check_project:
            ensure_valid_project(self.project, self.config)

        session = self.project.get_session(number)
        if session is None:
            raise UnknownSessionError(f'Session #{number} is not in project "{self.project.title}"')

        if session.description is None:
            # Nothing else can be checked until the description parses
            return [self._issue(session, ValidationSeverity.ERROR, "format", session.format_errors or ["Session description could not be parsed"])]

        meetings = self.cache.get(session, self.project)
        issues: list[ValidationIssue] = []
        if self.project.is_groups_event:
            issues.extend(self._check_groups(session))
        else:
            issues.extend(self._check_chairs(session))
        issues.extend(self._check_meeting_structure(session, meetings))
        if session.is_plenary:
            issues.extend(self._check_plenary_rules(session, meetings))
        else:
            issues.extend(self._check_breakout_rules(session, meetings))
        conflict_issues = self._check_declared_conflicts(session)
        issues.extend(conflict_issues)
        issues.extend(self._check_requested_times(session, meetings))
        issues.extend(self._check_requested_slot_count(session))
        issues.extend(self._check_capacity(session, meetings))
        issues.extend(self._check_room_switch(session, meetings))
        issues.extend(self._check_chair_or_group_conflicts(session, meetings))
        if not conflict_issues:
            issues.extend(self._check_conflict_realization(session, meetings))
        issues.extend(self._check_track_conflicts(session, meetings))
        issues.extend(self._check_plenary_parallel(session, meetings))
        issues.extend(self._check_channel_collision(session, meetings))
        issues.extend(self._check_instructions(session))

        logger.debug(f"Session #{number}: {len(issues)} validation issue(s)")
        return issues

    def validate_grid(self, what: ValidationWhat | str = ValidationWhat.EVERYTHING) -> GridValidationResult:
        """
        Validate every session and compute which stored summaries changed.

        Args:
            what: "everything", or "scheduling" to keep scheduling issues only

        Returns:
            GridValidationResult with issues and summary changes
        """
        what = ValidationWhat(what)
        ensure_valid_project(self.project, self.config)

        errors: list[ValidationIssue] = []
        for session in self.project.sessions:
            errors.extend(self.validate_session(session.number, check_project=False))
        if what == ValidationWhat.SCHEDULING:
            errors = [issue for issue in errors if issue.label in SCHEDULING_TYPES]

        changes = []
        for session in self.project.sessions:
            change = self._compute_change(session, errors, what)
            if change is not None:
                changes.append(change)

        logger.info(f"Validated {len(self.project.sessions)} sessions: {len(errors)} issue(s), {len(changes)} change(s)")
        return GridValidationResult(errors=errors, changes=changes)

    def _compute_change(
        self,
        session: Session,
        errors: list[ValidationIssue],
        what: ValidationWhat,
    ) -> SessionValidationChange | None:
        stored = session.validation
        new_values: dict[str, str] = {}
        for severity in ValidationSeverity:
            results = {
                issue.type for issue in errors if issue.session == session.number and issue.severity == severity
            }
            previous = [value.strip() for value in getattr(stored, severity.value).split(",") if value.strip()]
            if severity == ValidationSeverity.CHECK and "irc channel" in previous:
                # Only an admin removes this flag
                results.add("irc channel")
            elif severity == ValidationSeverity.WARNING and stored.note:
                results = {warning for warning in results if not _suppressed_by_note(warning, stored.note)}
            if what != ValidationWhat.EVERYTHING:
                results.update(value for value in previous if f"{severity.value}: {value}" not in SCHEDULING_TYPES)
            new_values[severity.value] = ", ".join(sorted(results))

        if all(getattr(stored, key) == value for key, value in new_values.items()):
            return None
        return SessionValidationChange(
            number=session.number,
            validation=SessionValidation(note=stored.note, **new_values),
        )

    def _issue(
        self,
        session: Session,
        severity: ValidationSeverity,
        type: str,
        messages: list[str],
        details: list[dict[str, Any]] | None = None,
    ) -> ValidationIssue:
        return ValidationIssue(
            session=session.number,
            severity=severity,
            type=type,
            messages=messages,
            details=details or [],
        )

    def _meetings(self, session: Session) -> list[Meeting]:
        return self.cache.get(session, self.project)

    def _weekday(self, day: str | None) -> str:
        slot = next((s for s in self.project.slots if s.date == day), None)
        return slot.weekday if slot is not None else day or ""

    def _check_chairs(self, session: Session) -> list[ValidationIssue]:
        if session_chairs(session):
            return []
        return [
            self._issue(
                session,
                ValidationSeverity.ERROR,
                "chairs",
                ["Author is not a session chair, no other chair specified"],
            )
        ]

    def _check_groups(self, session: Session) -> list[ValidationIssue]:
        messages: list[str] = []
        if not session.groups:
            messages.append("No group associated with the session")
        elif JOINT_MEETING_TITLE.match(session.title.strip()):
            if len(session.groups) == 1:
                messages.append("Group cannot have a joint meeting with itself")
        elif len(session.groups) > 1:
            messages.append('Joint meeting found but the title does not have "Joint Meeting"')
        else:
            group = session.groups[0]
            for other in self.project.sessions:
                if (
                    other is not session
                    and len(other.groups) == 1
                    and other.groups[0].same_group(group)
                    and other.highlight == session.highlight
                ):
                    messages.append(f'Another session #{other.number} found for "{group.name}"')
        if not messages:
            return []
        return [self._issue(session, ValidationSeverity.ERROR, "groups", messages)]

    def _check_meeting_structure(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        issues = []
        invalid = [m for m in meetings if m.invalid is not None]
        if invalid:
            issues.append(
                self._issue(
                    session,
                    ValidationSeverity.ERROR,
                    "meeting format",
                    [f'Invalid room, day or slot in "{m.invalid}"' for m in invalid],
                )
            )

        duplicates = [
            m
            for i, m in enumerate(meetings)
            if m.has_time and any(j != i and o.day == m.day and o.slot == m.slot for j, o in enumerate(meetings))
        ]
        if duplicates:
            messages = list(dict.fromkeys(f"Scheduled more than once in day/slot {m.day} {m.slot}" for m in duplicates))
            issues.append(
                self._issue(
                    session,
                    ValidationSeverity.ERROR,
                    "meeting duplicate",
                    messages,
                    [_meeting_detail(m) for m in duplicates],
                )
            )
        return issues

    def _check_plenary_rules(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        # Plenary sessions meet once, in the plenary room, in a slot that is not full
        issues = []
        if len(meetings) > 1:
            issues.append(
                self._issue(
                    session,
                    ValidationSeverity.ERROR,
                    "scheduling",
                    ["Plenary session must be scheduled only once"],
                    [_meeting_detail(m) for m in meetings],
                )
            )
            return issues
        if not meetings:
            return issues

        meeting = meetings[0]
        if meeting.room and not self.plenary.is_plenary_room(meeting.room):
            issues.append(
                self._issue(
                    session,
                    ValidationSeverity.ERROR,
                    "scheduling",
                    ["Plenary session must be scheduled in plenary room"],
                    [_meeting_detail(meeting)],
                )
            )
        if meeting.is_scheduled:
            sharing = [s for s in self.project.sessions if meets_at(s, meeting, self.project, self.cache)]
            if len(sharing) > self.plenary.holds:
                issues.append(
                    self._issue(
                        session,
                        ValidationSeverity.ERROR,
                        "scheduling",
                        ["Too many sessions scheduled in same plenary slot"],
                        [_meeting_detail(meeting, sessions=[s.number for s in sharing])],
                    )
                )
        return issues

    def _check_breakout_rules(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        issues = []
        in_plenary_room = next((m for m in meetings if self.plenary.is_plenary_room(m.room)), None)
        if in_plenary_room is not None:
            issues.append(
                self._issue(
                    session,
                    ValidationSeverity.ERROR,
                    "scheduling",
                    ["Non plenary session must not be scheduled in plenary room"],
                    [_meeting_detail(in_plenary_room)],
                )
            )

        collisions = [
            (meeting, other)
            for meeting in meetings
            if meeting.is_scheduled
            for other in self.project.sessions
            if other is not session and meets_at(other, meeting, self.project, self.cache)
        ]
        if collisions:
            issues.append(
                self._issue(
                    session,
                    ValidationSeverity.ERROR,
                    "scheduling",
                    [
                        f"Session scheduled in same room ({m.room}) and same day/slot ({m.day} {m.slot}) "
                        f'as session "{other.title}" ({other.number})'
                        for m, other in collisions
                    ],
                    [_meeting_detail(m, conflicts_with=other.number) for m, other in collisions],
                )
            )
        return issues

    def _check_declared_conflicts(self, session: Session) -> list[ValidationIssue]:
        declared = session.declared_conflicts
        if not declared:
            return []
        if session.is_plenary:
            messages = ["Plenary session cannot conflict with any other session"]
        else:
            messages = []
            for number in declared:
                if number == session.number:
                    messages.append("Session cannot conflict with itself")
                elif self.project.get_session(number) is None:
                    messages.append(f"Conflicting session #{number} is not in the project")
        if not messages:
            return []
        return [self._issue(session, ValidationSeverity.ERROR, "conflict", messages)]

    def _check_requested_times(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        times = session.description.times if session.description else None
        if not times or not meetings:
            return []
        issues = []
        missing = [t for t in times if not any(m.day == t.day and m.slot == t.slot for m in meetings)]
        if missing:
            issues.append(
                self._issue(
                    session,
                    ValidationSeverity.WARNING,
                    "times",
                    [f"Session not scheduled on {t.day} at {t.slot} as requested" for t in missing],
                    [t.model_dump() for t in missing],
                )
            )
        if len(times) != len(meetings):
            issues.append(
                self._issue(
                    session,
                    ValidationSeverity.WARNING,
                    "times",
                    [f"Session scheduled {len(meetings)} times instead of {len(times)}"],
                )
            )
        return issues

    def _check_requested_slot_count(self, session: Session) -> list[ValidationIssue]:
        description = session.description
        if description is None or not description.nbslots or description.slots is None:
            return []
        selected = len(description.slots)
        if description.nbslots <= selected:
            return []
        plural = "s" if selected > 1 else ""
        return [
            self._issue(
                session,
                ValidationSeverity.ERROR,
                "times",
                [f"{description.nbslots} slots requested but only {selected} acceptable slot{plural} selected"],
            )
        ]

    def _capacity_messages(self, meetings: list[Meeting], required: int, what: str) -> tuple[list[str], list[dict[str, Any]]]:
        messages, details = [], []
        for meeting in meetings:
            room = self.project.get_room(meeting.room)
            if room is None or room.effective_capacity(self.default_capacity) >= required:
                continue
            capacity = str(room.capacity) if room.capacity is not None else f"{self.default_capacity} (assumed)"
            used = ""
            if meeting.has_time:
                used = f", used for meeting on {self._weekday(meeting.day)} at {meeting.slot},"
            messages.append(f'Capacity of "{room.name}" ({capacity}){used} is lower than {what} ({required})')
            details.append(_meeting_detail(meeting, room=room.name))
        return messages, details

    def _check_capacity(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        issues = []
        capacity = session.description.capacity if session.description else None
        if capacity:
            messages, details = self._capacity_messages(meetings, capacity, "requested capacity")
            if messages:
                issues.append(self._issue(session, ValidationSeverity.WARNING, "capacity", messages, details))
        if session.participants:
            messages, details = self._capacity_messages(meetings, session.participants, "number of participants")
            if messages:
                issues.append(self._issue(session, ValidationSeverity.WARNING, "capacity", messages, details))
        return issues

    def _check_room_switch(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        scheduled = [m for m in meetings if m.is_scheduled]
        messages, details = [], []
        for meeting in scheduled:
            index = self.project.slot_index(meeting.day, meeting.slot)
            following = next(
                (
                    m
                    for m in scheduled
                    if m.day == meeting.day
                    and m.room != meeting.room
                    and self.project.slot_index(m.day, m.slot) == index + 1
                ),
                None,
            )
            if following is None:
                continue
            messages.append(
                f'Room switch between "{meeting.room}" and "{following.room}" '
                f"on {self._weekday(following.day)} at {following.slot}"
            )
            details.append(_meeting_detail(following, previous=meeting.model_dump(exclude_none=True)))
        if not messages:
            return []
        return [self._issue(session, ValidationSeverity.WARNING, "switch", messages, details)]

    def _shared_people(self, session: Session, other: Session) -> list[str]:
        if self.project.is_groups_event:
            return shared_groups(session, other)
        if other.description is None:
            logger.warning(
                f"Session #{session.number}: skipping chair comparison with #{other.number}, "
                "its description could not be parsed"
            )
            return []
        return shared_chairs(session, other)

    def _check_chair_or_group_conflicts(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        kind = "group" if self.project.is_groups_event else "chair"
        messages, details = [], []
        for meeting in meetings:
            if not meeting.has_time:
                continue
            for other in self.project.sessions:
                if other is session or both_plenary(session, other):
                    continue
                if not meets_in_parallel_with(other, meeting, self.project, self.cache):
                    continue
                names = self._shared_people(session, other)
                if names:
                    messages.append(
                        f'Session scheduled at the same time as "{other.title}" (#{other.number}), '
                        f"which shares {kind} {', '.join(names)}"
                    )
                    details.append(_meeting_detail(meeting, conflicts_with=other.number, names=names))
        if not messages:
            return []
        return [self._issue(session, ValidationSeverity.ERROR, f"{kind} conflict", messages, details)]

    def _check_conflict_realization(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        candidates = list(session.declared_conflicts)
        if self.project.is_groups_event:
            candidates.extend(indirect_conflicts(session, self.project))
        if not candidates:
            return []
        messages, details = [], []
        for meeting in meetings:
            if not meeting.has_time:
                continue
            for number in dict.fromkeys(candidates):
                other = self.project.get_session(number)
                if other is None or not meets_in_parallel_with(other, meeting, self.project, self.cache):
                    continue
                messages.append(
                    f'Same day/slot "{meeting.day} {meeting.slot}" as conflicting session "{other.title}" (#{other.number})'
                )
                details.append(_meeting_detail(meeting, conflicts_with=other.number))
        if not messages:
            return []
        return [self._issue(session, ValidationSeverity.WARNING, "conflict", messages, details)]

    def _check_track_conflicts(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        messages, details = [], []
        for meeting in meetings:
            if not meeting.has_time:
                continue
            for track in session.tracks:
                for other in self.project.sessions:
                    if other is session or track not in other.tracks or both_plenary(session, other):
                        continue
                    if meets_in_parallel_with(other, meeting, self.project, self.cache):
                        messages.append(
                            f'Same day/slot "{meeting.day} {meeting.slot}" as session in same track '
                            f'"{track}": "{other.title}" (#{other.number})'
                        )
                        details.append(_meeting_detail(meeting, track=track, conflicts_with=other.number))
        if not messages:
            return []
        return [self._issue(session, ValidationSeverity.WARNING, "track", messages, details)]

    def _check_plenary_parallel(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        if session.is_plenary:
            return []
        messages = [
            f'Session scheduled at the same time as plenary session "{other.title}" (#{other.number})'
            for meeting in meetings
            if meeting.has_time
            for other in self.project.sessions
            if other is not session
            and other.is_plenary
            and meets_in_parallel_with(other, meeting, self.project, self.cache)
        ]
        if not messages:
            return []
        return [self._issue(session, ValidationSeverity.WARNING, "plenary", messages)]

    def _check_channel_collision(self, session: Session, meetings: list[Meeting]) -> list[ValidationIssue]:
        shortname = session.description.shortname if session.description else None
        if not shortname:
            return []
        messages = [
            f'Same IRC channel "{shortname}" as session #{other.number} "{other.title}"'
            for meeting in meetings
            if meeting.has_time
            for other in self.project.sessions
            if other.number != session.number
            and other.description is not None
            and other.description.shortname == shortname
            and not both_plenary(session, other)
            and meets_in_parallel_with(other, meeting, self.project, self.cache)
        ]
        if not messages:
            return []
        return [self._issue(session, ValidationSeverity.ERROR, "irc", messages)]

    def _check_instructions(self, session: Session) -> list[ValidationIssue]:
        if not session.description or not session.description.comments:
            return []
        return [
            self._issue(
                session,
                ValidationSeverity.CHECK,
                "instructions",
                ["Session contains instructions for meeting planners"],
            )
        ]


def _suppressed_by_note(warning: str, note: str) -> bool:
    """True if the operator note silences this warning type."""
    return any(f"{prefix}:{warning}" in note for prefix in ("-warning", "-warn", "-w"))


def validate_session(
    number: int,
    project: Project,
    config: ConfigLoader | None = None,
    cache: MeetingCache | None = None,
) -> list[ValidationIssue]:
    """Validate one session of the project."""
    return GridValidator(project, config=config, cache=cache).validate_session(number)


def validate_grid(
    project: Project,
    what: ValidationWhat | str = ValidationWhat.EVERYTHING,
    config: ConfigLoader | None = None,
) -> GridValidationResult:
    """Validate every session of the project."""
    return GridValidator(project, config=config).validate_grid(what)
