"""Tests for the command-line entry points."""

import json
import tempfile
from pathlib import Path

from typer.testing import CliRunner

from aethel.cli import app

runner = CliRunner()


def test_act_saves_and_dump_reads_back():
    """'act' applies a command to the save file; 'dump' prints it as JSON."""
    with tempfile.TemporaryDirectory() as tmpdir:
        save = Path(tmpdir) / "save.yaml"

        result = runner.invoke(app, ["act", "east", "--save", str(save)])
        assert result.exit_code == 0
        assert save.exists()

        result = runner.invoke(app, ["dump", "--save", str(save)])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["world"]["location"] == "village_entrance"


def test_status_without_a_save():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(app, ["status", "--save", str(Path(tmpdir) / "none.yaml")])
        assert result.exit_code == 0
        assert "Forest" in result.stdout


def test_play_rejects_unknown_race():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(app, ["play", "--race", "dragon", "--save", str(Path(tmpdir) / "s.yaml")])
        assert result.exit_code == 1


def test_play_session_until_quit():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = runner.invoke(
            app,
            ["play", "--seed", "3", "--save", str(Path(tmpdir) / "s.yaml"), "--autosave", str(Path(tmpdir) / "a.yaml")],
            input="west\nquit\n",
        )
        assert result.exit_code == 0
        assert "Roads" in result.stdout
        assert "Farewell" in result.stdout
