#!/usr/bin/env python3
"""
Suggest a grid for a project snapshot.

Loads a project JSON file (or stdin with "-"), schedules every session that
can be scheduled, and prints the assignments. The seed used is always
printed so that a run can be reproduced.

Usage:
    python scripts/suggest_grid.py project.json
    python scripts/suggest_grid.py project.json --seed dfwla --output grid.json
    cat project.json | python scripts/suggest_grid.py - --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path so the script runs from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from breakouts.errors import BreakoutsError  # noqa: E402
from breakouts.logging_config import configure_logging  # noqa: E402
from breakouts.meetings import group_session_meetings  # noqa: E402
from breakouts.project_loader import dump_project, load_project  # noqa: E402
from breakouts.solver import GridScheduler  # noqa: E402

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Suggest a grid for a project snapshot")
    parser.add_argument("project", help='Project JSON file, or "-" for stdin')
    parser.add_argument("--seed", help="Seed to shuffle sessions (integer or string)")
    parser.add_argument("--output", help="Write the updated project snapshot to this JSON file")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--save-log", action="store_true", help="Save the relaxation log as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    configure_logging(source="scheduler", debug=args.debug)

    try:
        project = load_project(args.project)
        scheduler = GridScheduler(project, seed=args.seed)
        result = scheduler.run()
    except (BreakoutsError, FileNotFoundError) as e:
        print(f"Failed to schedule project: {e}", file=sys.stderr)
        return 1

    if args.save_log:
        scheduler.save_log()
    if args.output:
        Path(args.output).write_text(json.dumps(dump_project(project), indent=2), encoding="utf-8")
        logger.info(f"Updated project written to {args.output}")

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2))
        return 0

    print(f"Seed: {result.seed}")
    for session in sorted(project.sessions, key=lambda s: s.number):
        grouped = group_session_meetings(session, project)
        if grouped:
            where = "; ".join(f"{m.day} {m.start}-{m.end} in {m.room}" for m in grouped)
        else:
            where = "not scheduled"
        marker = "*" if session.updated else " "
        print(f"{marker} #{session.number} {session.title}: {where}")
    if result.unscheduled:
        print(f"Could not schedule: {', '.join(f'#{n}' for n in result.unscheduled)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
