"""
Project-level precondition checks.

Runs before any per-session work. Every problem is collected so that a
malformed project is reported in one go.
"""

from __future__ import annotations

from collections import Counter
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import ConfigLoader
from .errors import ProjectValidationError
from .models import Project


def _is_known_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def validate_project(project: Project, config: ConfigLoader | None = None) -> list[str]:
    """Return the list of project-level problems, empty when the project is usable."""
    config = config or ConfigLoader.get_instance()
    min_duration = config.get_int("slot.min_duration")
    max_duration = config.get_int("slot.max_duration")
    problems: list[str] = []

    metadata = project.metadata
    if not metadata.meeting:
        problems.append('The "meeting" info in the event metadata is missing. Should be something like "meeting: TPAC 2023"')
    if not metadata.timezone:
        problems.append(
            'The "timezone" info in the event metadata is missing. Should be something like "timezone: Europe/Madrid"'
        )
    elif not _is_known_timezone(metadata.timezone):
        problems.append(f'The "timezone" info "{metadata.timezone}" is not a valid tz database identifier')

    seen: set[tuple[str, int]] = set()
    previous = None
    for slot in project.slots:
        if slot.duration < min_duration or slot.duration > max_duration:
            problems.append(
                f"Unexpected slot duration {slot.duration} for slot {slot.date} {slot.name}. "
                f"Duration should be between {min_duration} and {max_duration} minutes."
            )
        if slot.sort_key in seen:
            problems.append(f"Duplicate slot {slot.date} {slot.name}")
        elif previous is not None and previous.date == slot.date and slot.start_minutes < previous.end_minutes:
            problems.append(f"Slot {slot.date} {slot.name} overlaps with slot {previous.date} {previous.name}")
        seen.add(slot.sort_key)
        previous = slot

    room_counts = Counter(room.name.lower() for room in project.rooms)
    for name, count in room_counts.items():
        if count > 1:
            problems.append(f'Duplicate room "{name}"')

    number_counts = Counter(session.number for session in project.sessions)
    for number in sorted(n for n, count in number_counts.items() if count > 1):
        problems.append(f"Duplicate session number #{number}")

    return problems


def ensure_valid_project(project: Project, config: ConfigLoader | None = None) -> None:
    """
    Raise if the project is malformed.

    Raises:
        ProjectValidationError: listing every project-level problem
    """
    problems = validate_project(project, config)
    if problems:
        raise ProjectValidationError(project.title, problems)
