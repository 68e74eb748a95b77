"""Tests for the scheduler's relaxation logger."""

from __future__ import annotations

import json
import logging

from breakouts.models import Meeting
from breakouts.solver.logging import RelaxationLogger


class TestRelaxationLogger:
    def test_summary_collects_everything(self):
        relaxation_logger = RelaxationLogger()
        relaxation_logger.log_relaxation(3, "capacity", "forget capacity constraint")
        relaxation_logger.log_relaxation(3, "session_conflicts", "forget session conflicts")
        relaxation_logger.log_assignment(3, [Meeting(room="Room 1", day="2042-02-11", slot="9:00")])
        relaxation_logger.log_unscheduled(4, "could not find a suitable meeting")
        relaxation_logger.log_skipped(5, "session has a blocking error")

        summary = relaxation_logger.get_summary()
        assert summary["relaxations"] == {3: ["capacity", "session_conflicts"]}
        assert summary["assignments"] == {3: [{"room": "Room 1", "day": "2042-02-11", "slot": "9:00"}]}
        assert summary["unscheduled"] == {4: "could not find a suitable meeting"}
        assert summary["skipped"] == {5: "session has a blocking error"}

    def test_unscheduled_is_a_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="breakouts.solver.logging"):
            RelaxationLogger().log_unscheduled(4, "could not find a suitable meeting")
        assert "[UNSCHEDULED] #4" in caplog.text

    def test_progress_goes_to_debug_in_debug_mode(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="breakouts.solver.logging"):
            RelaxationLogger(debug_mode=True).log_progress("Schedule sessions in main track")
        assert caplog.records[0].levelno == logging.DEBUG
        assert "[SCHEDULER] Schedule sessions in main track" in caplog.text

    def test_save_to_file(self, tmp_path):
        relaxation_logger = RelaxationLogger(debug_mode=True)
        relaxation_logger.log_relaxation(1, "capacity", "forget capacity constraint")

        path = relaxation_logger.save_to_file(42, tmp_path / "scheduler")

        with open(path) as f:
            data = json.load(f)
        assert data["seed"] == 42
        assert data["debug_mode"] is True
        assert data["summary"]["relaxations"] == {"1": ["capacity"]}
