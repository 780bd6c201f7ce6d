"""Tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from timetable_engine.cli import app

runner = CliRunner()


@pytest.fixture
def request_file(tmp_path):
    path = tmp_path / "request.json"
    path.write_text(
        json.dumps(
            {
                "owner": {
                    "id": "owner",
                    "preferences": [{"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"}],
                },
                "members": [
                    {
                        "id": "m1",
                        "preferences": [{"day_of_week": 1, "start_time": "09:00", "end_time": "11:00"}],
                    }
                ],
                "settings": {"min_hours_per_week": 1},
                "week_start": "2025-09-15",
            }
        )
    )
    return path


class TestScheduleCommand:
    def test_schedule_to_json(self, request_file, tmp_path):
        output = tmp_path / "result.json"
        result = runner.invoke(app, ["schedule", str(request_file), "-o", str(output)])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["assignments"]["m1"]["assigned_slots"] == 2

    def test_schedule_invalid_request(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"owner": {"id": "o"}, "members": [], "week_start": "nope"}))
        result = runner.invoke(app, ["schedule", str(path)])
        assert result.exit_code == 1


class TestValidateCommand:
    def test_valid(self, request_file):
        result = runner.invoke(app, ["validate", str(request_file)])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.json")])
        assert result.exit_code == 1


class TestStatsCommand:
    def test_stats(self, request_file, tmp_path):
        output = tmp_path / "result.json"
        runner.invoke(app, ["schedule", str(request_file), "-o", str(output)])
        result = runner.invoke(app, ["stats", str(output)])
        assert result.exit_code == 0
        assert "m1" in result.output
