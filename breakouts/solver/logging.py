"""
Relaxation Logger - Logging infrastructure for the scheduler.

Tracks, per session, the chain of relaxations applied, the final
assignments, and the sessions that could not be (fully) scheduled.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from datetime import datetime
from pathlib import Path
from typing import Any

from ..models import Meeting

logger = logging.getLogger(__name__)


class RelaxationLogger:
    """Logger for tracking relaxation decisions and outcomes during scheduling."""

    def __init__(self, debug_mode: bool = False) -> None:
        self.debug_mode = debug_mode
        self.relaxations: dict[int, list[str]] = defaultdict(list)
        self.assignments: dict[int, list[dict[str, str | None]]] = {}
        self.unscheduled: dict[int, str] = {}
        self.skipped: dict[int, str] = {}
        self.scheduler_progress: list[str] = []

    def log_relaxation(self, session_number: int, step: str, message: str) -> None:
        """Log a relaxation applied to a session."""
        self.relaxations[session_number].append(step)
        logger.info(f"- {message} for #{session_number}")

    def log_assignment(self, session_number: int, meetings: list[Meeting]) -> None:
        """Log the meetings a session ended up with."""
        self.assignments[session_number] = [
            {"room": m.room, "day": m.day, "slot": m.slot} for m in meetings
        ]
        for meeting in meetings:
            logger.info(f"- assigned #{session_number} to {meeting.day} {meeting.slot} in {meeting.room}")

    def log_unscheduled(self, session_number: int, reason: str) -> None:
        """Log a session the scheduler could not place."""
        self.unscheduled[session_number] = reason
        logger.warning(f"[UNSCHEDULED] #{session_number}: {reason}")

    def log_skipped(self, session_number: int, reason: str) -> None:
        """Log a session excluded from scheduling."""
        self.skipped[session_number] = reason
        logger.info(f"[SKIPPED] #{session_number}: {reason}")

    def log_progress(self, message: str) -> None:
        """Log scheduler progress."""
        self.scheduler_progress.append(message)
        if self.debug_mode:
            logger.debug(f"[SCHEDULER] {message}")
        else:
            logger.info(message)

    def get_summary(self) -> dict[str, Any]:
        """Get summary of all logged information."""
        return {
            "relaxations": dict(self.relaxations),
            "assignments": self.assignments,
            "unscheduled": self.unscheduled,
            "skipped": self.skipped,
            "scheduler_progress": self.scheduler_progress,
        }

    def save_to_file(self, seed: int, log_dir: str | Path = "logs/scheduler") -> str:
        """Save logs to a file and return the file path."""
        logs_dir = Path(log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = logs_dir / f"schedule_{seed}_{timestamp}.json"

        log_data = {
            "timestamp": datetime.now().isoformat(),
            "seed": seed,
            "debug_mode": self.debug_mode,
            "summary": self.get_summary(),
        }

        with open(filepath, "w") as f:
            json.dump(log_data, f, indent=2, default=str)

        logger.info(f"Scheduler logs saved to {filepath}")
        return str(filepath)
