"""Tests for CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from studyplan.cli import app
from studyplan.loader import read_blocks
from studyplan.models import BlockOrigin

runner = CliRunner()

SCHEDULE_YAML = """
tasks:
  care-plan:
    title: Care plan
    due: 2025-09-01T23:59
    hours: 2
    buffer: 0

events:
  lecture:
    title: Adult Health lecture
    type: lecture
    start: 2025-09-01T10:00
    end: 2025-09-01T12:00
    location: Room 204
"""

CONFIG_YAML = """
preferences:
  study_hours:
    start: "09:00"
    end: "21:00"
  session_duration: 60
  break_duration: 15
horizon:
  minimum_days: 1
"""

NOW = "2025-09-01T08:00"


@pytest.fixture
def schedule_file(tmp_path: Path) -> Path:
    (tmp_path / "studyplan_config.yaml").write_text(CONFIG_YAML, encoding="utf-8")
    path = tmp_path / "schedule.yaml"
    path.write_text(SCHEDULE_YAML, encoding="utf-8")
    return path


class TestScheduleCommand:
    """Test the schedule CLI command."""

    def test_prints_blocks_events_and_deadlines(self, schedule_file: Path):
        result = runner.invoke(app, ["schedule", str(schedule_file), "--now", NOW])

        assert result.exit_code == 0
        assert "Monday 2025-09-01" in result.stdout
        assert "09:00-10:00  study        Study: Care plan (care-plan-1)" in result.stdout
        assert "10:00-12:00  lecture      Adult Health lecture @ Room 204" in result.stdout
        assert "12:15-13:15  study        Study: Care plan (care-plan-2)" in result.stdout
        assert "DUE: Care plan" in result.stdout

    def test_warnings_on_stderr(self, schedule_file: Path):
        schedule_file.write_text(
            SCHEDULE_YAML.replace("hours: 2", "hours: 30"), encoding="utf-8"
        )

        result = runner.invoke(app, ["schedule", str(schedule_file), "--now", NOW])

        assert result.exit_code == 0
        assert "1 task could not be fully scheduled before its due date" in result.output
        assert "care-plan:" in result.output

    def test_output_writes_block_file(self, schedule_file: Path, tmp_path: Path):
        output = tmp_path / "blocks.yaml"

        result = runner.invoke(
            app, ["schedule", str(schedule_file), "--now", NOW, "--output", str(output)]
        )

        assert result.exit_code == 0
        assert [b.id for b in read_blocks(output)] == ["care-plan-1", "care-plan-2"]

    def test_verbose_logs_placements(self, schedule_file: Path):
        result = runner.invoke(app, ["-v", "1", "schedule", str(schedule_file), "--now", NOW])

        assert result.exit_code == 0
        assert "Placed care-plan-1" in result.output

    def test_explicit_config(self, schedule_file: Path, tmp_path: Path):
        config = tmp_path / "other.yaml"
        config.write_text("preferences:\n  session_duration: 120\n", encoding="utf-8")

        result = runner.invoke(
            app, ["--config", str(config), "schedule", str(schedule_file), "--now", NOW]
        )

        assert result.exit_code == 0
        assert "12:15-14:15  study" in result.stdout

    def test_invalid_now(self, schedule_file: Path):
        result = runner.invoke(app, ["schedule", str(schedule_file), "--now", "tomorrow"])

        assert result.exit_code == 1
        assert "Invalid date-time" in result.output

    def test_missing_file(self, tmp_path: Path):
        result = runner.invoke(app, ["schedule", str(tmp_path / "nope.yaml"), "--now", NOW])

        assert result.exit_code == 1
        assert "File not found" in result.output


class TestMoveCommand:
    """Test the move CLI command."""

    def test_move_pins_block(self, schedule_file: Path, tmp_path: Path):
        output = tmp_path / "blocks.yaml"

        result = runner.invoke(
            app,
            [
                "move",
                str(schedule_file),
                "care-plan-2",
                "2025-09-01T15:00",
                "--now",
                NOW,
                "--output",
                str(output),
            ],
        )

        assert result.exit_code == 0
        assert "Moved care-plan-2 to 2025-09-01 15:00" in result.stdout
        assert "15:00-16:00  study        Study: Care plan (care-plan-2) [pinned]" in result.stdout
        saved = {b.id: b for b in read_blocks(output)}
        assert saved["care-plan-2"].origin == BlockOrigin.MANUAL

    def test_pinned_block_file_is_respected(self, schedule_file: Path, tmp_path: Path):
        blocks = tmp_path / "blocks.yaml"
        runner.invoke(
            app,
            ["move", str(schedule_file), "care-plan-2", "2025-09-01T15:00", "--now", NOW]
            + ["--output", str(blocks)],
        )

        result = runner.invoke(
            app, ["schedule", str(schedule_file), "--now", NOW, "--blocks", str(blocks)]
        )

        assert result.exit_code == 0
        assert "15:00-16:00  study        Study: Care plan (care-plan-2) [pinned]" in result.stdout

    def test_conflicting_move_exits_1(self, schedule_file: Path):
        result = runner.invoke(
            app, ["move", str(schedule_file), "care-plan-2", "2025-09-01T10:30", "--now", NOW]
        )

        assert result.exit_code == 1
        assert "conflicts with: lecture" in result.output

    def test_unknown_block(self, schedule_file: Path):
        result = runner.invoke(
            app, ["move", str(schedule_file), "nope-1", "2025-09-01T15:00", "--now", NOW]
        )

        assert result.exit_code == 1
        assert "Unknown time block 'nope-1'" in result.output


class TestExample:
    """The shipped example schedule."""

    def test_example_schedules_cleanly(self):
        example = Path(__file__).parent.parent / "examples" / "schedule.yaml"

        result = runner.invoke(app, ["schedule", str(example), "--now", NOW])

        assert result.exit_code == 0
        assert "Med-surg clinical @ General Hospital 5W" in result.stdout
        assert "Warnings" not in result.output
