"""Exception classes for the assignment engine.

Parse anomalies never raise: malformed meeting entries are flagged as
invalid and surface later as validation findings. Only precondition
failures and internal invariant violations are exceptions.
"""

from __future__ import annotations


class BreakoutsError(Exception):
    """Base exception for the assignment engine."""

    pass


class ProjectValidationError(BreakoutsError):
    """Raised when project-level definitions (slots, days, metadata) are malformed.

    Carries every problem found so that they can be reported at once.
    """

    def __init__(self, title: str, problems: list[str]):
        self.title = title
        self.problems = problems
        lines = "\n".join(f"- {problem}" for problem in problems)
        super().__init__(f'Project "{title}" is invalid:\n{lines}')


class UnknownSessionError(BreakoutsError):
    """Raised when a session number is not in the project."""

    pass


class SchedulingInvariantError(BreakoutsError):
    """Raised when the scheduler retains a different number of meetings than it sought.

    This is a bug in the relaxation logic, never a consequence of bad input.
    """

    pass
