#!/usr/bin/env python3
"""
Validate the grid of a project snapshot.

Prints every validation issue, then the sessions whose stored validation
summary is out of date. Exits with 1 when any error was found.

Usage:
    python scripts/validate_grid.py project.json
    python scripts/validate_grid.py project.json --what scheduling
    python scripts/validate_grid.py project.json --session 42 --json
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
from breakouts.grid_validator import (  # noqa: E402
    GridValidationResult,
    GridValidator,
    ValidationSeverity,
    ValidationWhat,
)
from breakouts.logging_config import configure_logging  # noqa: E402
from breakouts.project_loader import load_project  # noqa: E402

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate the grid of a project snapshot")
    parser.add_argument("project", help='Project JSON file, or "-" for stdin')
    parser.add_argument(
        "--what",
        choices=[w.value for w in ValidationWhat],
        default=ValidationWhat.EVERYTHING.value,
        help="Validate everything, or scheduling issues only",
    )
    parser.add_argument("--session", type=int, help="Validate only this session number")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def print_report(result: GridValidationResult) -> None:
    for issue in result.errors:
        print(f"#{issue.session} {issue.severity.value}: {issue.type}")
        for message in issue.messages:
            print(f"   - {message}")
    if result.changes:
        print(f"\n{len(result.changes)} session(s) with an outdated validation summary:")
        for change in result.changes:
            validation = change.validation
            print(
                f"   #{change.number} error=[{validation.error}] "
                f"warning=[{validation.warning}] check=[{validation.check}]"
            )


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    configure_logging(source="validator", debug=args.debug)

    try:
        project = load_project(args.project)
        validator = GridValidator(project)
        if args.session is not None:
            result = GridValidationResult(errors=validator.validate_session(args.session))
        else:
            result = validator.validate_grid(args.what)
    except (BreakoutsError, FileNotFoundError) as e:
        print(f"Failed to validate project: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        print_report(result)

    has_errors = bool(result.by_severity(ValidationSeverity.ERROR))
    if not has_errors and not args.json:
        print("No error found")
    return 1 if has_errors else 0


if __name__ == "__main__":
    sys.exit(main())
