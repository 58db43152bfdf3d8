"""Tests for the command line interface."""

import json
from datetime import date
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cadence.cli import main


@pytest.fixture
def run(config):
    runner = CliRunner()

    def invoke(*args):
        with patch("cadence.cli.load_config", return_value=config):
            return runner.invoke(main, list(args))

    return invoke


class TestAgenda:
    def test_json(self, run):
        result = run("agenda", "u1", "--date", "2025-01-15", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [item["task_name"] for item in data["due_today"]] == [
            "Daily report",
            "Inventory count",
            "One-off audit",
        ]
        assert len(data["pending_from_past"]) == 16

    def test_text(self, run):
        result = run("agenda", "u1", "--date", "2025-01-15")
        assert "Due today:" in result.output
        assert "Inventory count (0/10)" in result.output
        assert "Pending from earlier days:" in result.output

    def test_day_off(self, run):
        result = run("agenda", "u1", "--date", "2025-01-26")
        assert "Not a working day (Republic Day)." in result.output

    def test_unknown_person(self, run):
        result = run("agenda", "ghost", "--date", "2025-01-15")
        assert result.exit_code == 1
        assert "Error: Unknown person: ghost" in result.output


class TestSubmit:
    def test_records_completion(self, run):
        result = run("submit", "a1", "--date", "2025-01-15", "--status", "completed")
        assert result.exit_code == 0, result.output
        assert "a1 @ 2025-01-15: completed (approval: approved)" in result.output

    def test_missing_notes(self, run):
        result = run("submit", "a1", "--date", "2025-01-15", "--status", "not_done")
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_quantity(self, run):
        result = run("submit", "a2", "--date", "2025-01-15", "--quantity", "4", "--notes", "short")
        assert "a2 @ 2025-01-15: partial" in result.output

    def test_default_date_from_organization(self, run):
        with patch("cadence.workflows.today_in", return_value=date(2025, 1, 15)) as mock_today:
            result = run("submit", "a1", "--status", "completed")
        assert "a1 @ 2025-01-15: completed" in result.output
        mock_today.assert_called_with("Asia/Kolkata")

    def test_status_choices(self, run):
        result = run("submit", "a1", "--date", "2025-01-15", "--status", "not_applicable")
        assert result.exit_code == 2


class TestReview:
    def test_approve_requires_manager(self, run):
        run("submit", "a5", "--date", "2025-01-15", "--status", "completed")
        result = run("approve", "a5", "2025-01-15", "--by", "m1")
        assert result.exit_code == 1
        assert "does not manage" in result.output

    def test_reject(self, run):
        run("submit", "a1", "--date", "2025-01-15", "--status", "completed")
        result = run("reject", "a1", "2025-01-15", "--by", "m1", "--comment", "redo")
        assert result.exit_code == 0, result.output
        assert "approval: rejected" in result.output

    def test_reject_needs_comment(self, run):
        result = run("reject", "a1", "2025-01-15", "--by", "m1")
        assert result.exit_code == 2


class TestReports:
    def test_stats_json(self, run):
        result = run("stats", "u1", "--month", "2025-01", "--json")
        assert json.loads(result.output) == {"total": 3, "completed": 0, "percentage": 0}

    def test_stats_text(self, run):
        run("submit", "a1", "--date", "2025-01-15", "--status", "completed")
        result = run("stats", "u1", "--month", "2025-01")
        assert "January 2025: 1/1 completed (100%)" in result.output

    def test_bad_month(self, run):
        result = run("stats", "u1", "--month", "January")
        assert result.exit_code == 1

    def test_team(self, run):
        result = run("team", "m1", "--month", "2025-01")
        assert "Arjun Rao" in result.output
        assert "Bea Sen" in result.output

    def test_month(self, run):
        result = run("month", "u1", "--month", "2025-01", "--json")
        rows = json.loads(result.output)
        assert {row["assignment_id"] for row in rows} == {"a1", "a2", "a3"}

    def test_working_day(self, run):
        assert "Not a working day: Republic Day" in run("working-day", "u1", "--date", "2025-01-26").output
        assert "Working day" in run("working-day", "u1", "--date", "2025-01-24").output


class TestSummary:
    def test_nothing_recorded(self, run):
        assert "Nothing recorded." in run("summary", "u1", "--date", "2025-01-15").output

    def test_deliver(self, run, config):
        run("submit", "a1", "--date", "2025-01-15", "--status", "completed")
        result = run("summary", "u1", "--date", "2025-01-15", "--deliver")
        assert "Completed 1" in result.output
        files = list(Path(config.summary_dir).glob("*/*.json"))
        assert [f.stem for f in files] == ["u1"]
