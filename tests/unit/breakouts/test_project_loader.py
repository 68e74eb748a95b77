"""Tests for project snapshot loading and dumping."""

from __future__ import annotations

import io
import json

import pytest

from breakouts.errors import ProjectValidationError
from breakouts.project_loader import dump_project, load_project, project_from_dict


class TestProjectFromDict:
    def test_rooms_and_slots_from_strings(self, project_data):
        project = project_from_dict(project_data)
        assert project.get_room("Lounge").vip is True
        assert len(project.slots) == 4

    def test_invalid_data_lists_locations(self, project_data):
        project_data["slots"] = [{"date": "2042-02-11", "start": "9:00"}]
        with pytest.raises(ProjectValidationError) as exc_info:
            project_from_dict(project_data)
        assert any(problem.startswith("slots.0.end") for problem in exc_info.value.problems)

    def test_malformed_slot_string(self, project_data):
        project_data["slots"] = ["Tuesday 9:00"]
        with pytest.raises(ProjectValidationError):
            project_from_dict(project_data)


class TestLoadProject:
    def test_from_file(self, tmp_path, project_data, make_session):
        project_data["sessions"] = [make_session(1, room="Room 1")]
        path = tmp_path / "project.json"
        path.write_text(json.dumps(project_data))

        project = load_project(path)
        assert project.sessions[0].room == "Room 1"

    def test_from_stdin(self, monkeypatch, project_data):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(project_data)))
        assert load_project("-").title == "Breakouts Day 2042"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "project.json"
        path.write_text("{not json")
        with pytest.raises(ProjectValidationError, match="Invalid JSON"):
            load_project(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_project(tmp_path / "missing.json")


class TestDumpProject:
    def test_dump_reloads(self, project_data, make_session):
        """A dumped project loads back to the same project."""
        project_data["sessions"] = [
            make_session(1, room="Room 1", meeting="Tuesday, 9:00", description={"conflicts": [2]}),
            make_session(2),
        ]
        project = project_from_dict(project_data)
        dumped = dump_project(project)

        assert dumped["slots"][0] == "2042-02-11 9:00 - 11:00"
        assert "day" not in dumped["sessions"][0]
        assert project_from_dict(json.loads(json.dumps(dumped))) == project
