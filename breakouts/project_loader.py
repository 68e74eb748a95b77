"""
Load and dump project snapshots as JSON.

The snapshot is the boundary with the project-tracking store: rooms may be
given as display names ("Business (25) (VIP)"), slots as
"YYYY-MM-DD H:MM - H:MM" strings, and sessions with their raw scheduling
fields plus the already-parsed description.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import pydantic

from .errors import ProjectValidationError
from .models import Project

logger = logging.getLogger(__name__)

STDIN_PATH = "-"


def _format_pydantic_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', 'invalid value')}" if location else str(error.get("msg"))


def project_from_dict(data: dict[str, Any]) -> Project:
    """
    Build a Project from its JSON-compatible representation.

    Raises:
        ProjectValidationError: If the data does not describe a project
    """
    try:
        project = Project.model_validate(data)
    except pydantic.ValidationError as e:
        title = data.get("title", "") if isinstance(data, dict) else ""
        raise ProjectValidationError(title, [_format_pydantic_error(err) for err in e.errors()]) from e
    logger.debug(
        f'Loaded project "{project.title}": {len(project.rooms)} rooms, '
        f"{len(project.slots)} slots, {len(project.sessions)} sessions"
    )
    return project


def load_project(path: str | Path) -> Project:
    """
    Load a project snapshot from a JSON file, or from stdin when path is "-".

    Raises:
        ProjectValidationError: If the JSON does not describe a project
        FileNotFoundError: If the file does not exist
    """
    if str(path) == STDIN_PATH:
        text = sys.stdin.read()
    else:
        text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProjectValidationError(str(path), [f"Invalid JSON: {e}"]) from e
    return project_from_dict(data)


def dump_project(project: Project) -> dict[str, Any]:
    """JSON-compatible representation of a project, scheduling fields included."""
    data = project.model_dump(mode="json", exclude_none=True)
    data["slots"] = [f"{slot.date} {slot.name}" for slot in project.slots]
    return data
