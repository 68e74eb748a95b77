"""
Root test configuration and fixtures for the breakouts project.

Provides a small event with two days (Tuesday and Thursday), two slots per
day, a handful of rooms, and helpers to build sessions and projects.

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from breakouts.config import ConfigLoader  # noqa: E402
from breakouts.models import Project  # noqa: E402

TUESDAY = "2042-02-11"
THURSDAY = "2042-02-13"

ROOMS = [
    "Room 1",
    "Room 2 (50)",
    "Small (10)",
    "Plenary (200)",
    "Lounge (40) (VIP)",
]

SLOTS = [
    f"{TUESDAY} 9:00 - 11:00",
    f"{TUESDAY} 11:00 - 13:00",
    f"{THURSDAY} 9:00 - 11:00",
    f"{THURSDAY} 11:00 - 13:00",
]


def base_project_data() -> dict[str, Any]:
    """Minimal valid project snapshot without sessions."""
    return {
        "title": "Breakouts Day 2042",
        "metadata": {
            "meeting": "Breakouts Day 2042",
            "timezone": "Europe/Madrid",
            "type": "breakouts",
        },
        "allow_multiple_meetings": True,
        "rooms": list(ROOMS),
        "slots": list(SLOTS),
        "sessions": [],
    }


def session_data(number: int, **fields: Any) -> dict[str, Any]:
    """A session chaired by its author, with an empty description unless given."""
    data: dict[str, Any] = {
        "number": number,
        "title": f"Session {number}",
        "author": f"chair{number}",
        "description": {},
    }
    data.update(fields)
    return data


@pytest.fixture(autouse=True)
def reset_config_loader(monkeypatch):
    """Every test starts from schema defaults and a clean environment."""
    for key in list(os.environ):
        if key.startswith("CONFIG_") or key in ("LOG_LEVEL", "SCHEDULER_LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def project_data() -> dict[str, Any]:
    return base_project_data()


@pytest.fixture
def make_session() -> Callable[..., dict[str, Any]]:
    return session_data


@pytest.fixture
def build_project() -> Callable[..., Project]:
    """Factory building a Project from session dicts plus top-level overrides."""

    def _build(sessions: list[dict[str, Any]], **overrides: Any) -> Project:
        data = base_project_data()
        data["sessions"] = sessions
        metadata = overrides.pop("metadata", None)
        if metadata:
            data["metadata"].update(metadata)
        data.update(overrides)
        return Project.model_validate(data)

    return _build
