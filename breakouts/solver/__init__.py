"""
Breakouts Scheduler - greedy track-based grid scheduler with constraint relaxation.

This package contains:
- GridScheduler: Main scheduler class, suggest_schedule() entry point
- SchedulingConstraints / Relaxation: the ordered relaxation ladder
- RelaxationLogger: Per-session relaxation and assignment log
- Srand: Seeded multiply-with-carry generator used to shuffle sessions
"""

from .context import SchedulingContext
from .logging import RelaxationLogger
from .relaxation import RELAXATION_ORDER, Relaxation, SchedulingConstraints
from .scheduler import GridScheduler, ScheduleResult, requested_meeting_count, suggest_schedule
from .srand import Srand, normalize_seed

__all__ = [
    "GridScheduler",
    "RelaxationLogger",
    "ScheduleResult",
    "SchedulingContext",
    "suggest_schedule",
    "requested_meeting_count",
    # Relaxation ladder
    "RELAXATION_ORDER",
    "Relaxation",
    "SchedulingConstraints",
    # Random generator
    "Srand",
    "normalize_seed",
]
