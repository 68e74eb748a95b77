"""Tests for the grid validation script."""

from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path
from typing import Any

SCRIPT_PATH = Path(__file__).parents[3] / "scripts" / "validate_grid.py"


def run_validator(project: dict[str, Any], *args: str) -> tuple[int, str, str]:
    """Run the validation script with the given project passed through stdin."""
    result = subprocess.run(
        [sys.executable, str(SCRIPT_PATH), "-", *args],
        input=json.dumps(project),
        capture_output=True,
        text=True,
    )
    return result.returncode, result.stdout, result.stderr


class TestReport:
    """Test exit codes and the text report."""

    def test_clean_grid_passes(self, project_data, make_session):
        project_data["sessions"] = [make_session(1, room="Room 1", meeting="Tuesday, 9:00")]
        code, stdout, stderr = run_validator(project_data)

        assert code == 0, stderr
        assert stdout.strip() == "No error found"

    def test_errors_fail(self, project_data, make_session):
        project_data["sessions"] = [
            make_session(1, room="Room 1", meeting="Tuesday, 9:00", description={"type": "plenary"}),
        ]
        code, stdout, _ = run_validator(project_data)

        assert code == 1
        assert "#1 error: scheduling" in stdout
        assert "   - Plenary session must be scheduled in plenary room" in stdout
        assert "#1 error=[scheduling] warning=[] check=[]" in stdout

    def test_warnings_do_not_fail(self, project_data, make_session):
        project_data["sessions"] = [
            make_session(1, room="Small (10)", meeting="Tuesday, 9:00", description={"capacity": 20}),
        ]
        code, stdout, _ = run_validator(project_data)

        assert code == 0
        assert "#1 warning: capacity" in stdout
        assert "No error found" in stdout


class TestOptions:
    """Test --session, --what and --json."""

    def test_single_session_json(self, project_data, make_session):
        project_data["sessions"] = [
            make_session(1, room="Room 1", meeting="Tuesday, 9:00", description={"conflicts": [42]}),
            make_session(42, room="Small (10)", meeting="Tuesday, 9:00"),
        ]
        code, stdout, _ = run_validator(project_data, "--session", "1", "--json")

        assert code == 0
        result = json.loads(stdout)
        assert [(e["severity"], e["type"]) for e in result["errors"]] == [("warning", "conflict")]
        assert result["changes"] == []

    def test_scheduling_only(self, project_data, make_session):
        project_data["sessions"] = [make_session(1, author=None, room="Room 1", meeting="Tuesday, 9:00")]

        code, _, _ = run_validator(project_data)
        assert code == 1

        code, stdout, _ = run_validator(project_data, "--what", "scheduling")
        assert code == 0
        assert "error: chairs" not in stdout

    def test_unknown_session(self, project_data):
        code, _, stderr = run_validator(project_data, "--session", "7")
        assert code == 1
        assert "Session #7 is not in project" in stderr
