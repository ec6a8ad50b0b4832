"""Tests for the click command line."""

import pytest
from click.testing import CliRunner

from compass.cli import main


@pytest.fixture
def run(tmp_path, sample_tracks_dir):
    runner = CliRunner()
    env = {"HOME": str(tmp_path), "COMPASS_TRACKS_DIR": str(sample_tracks_dir)}
    data_dir = str(tmp_path / "data")

    def _run(*args, **kwargs):
        return runner.invoke(main, ["--data-dir", data_dir, *args], env=env, **kwargs)

    return _run


def test_tracks(run):
    result = run("tracks")
    assert result.exit_code == 0
    assert "test_track: Test Track (6 modules)" in result.output


def test_full_flow(run):
    assert "Test Track track selected!" in run("select", "test_track").output

    result = run("assess", "--answers", "0,0,0")
    assert result.exit_code == 0
    assert "beginner level" in result.output
    assert "Achievement unlocked: First Steps (+10 points)" in result.output

    result = run("complete", "m-sql-1")
    assert result.exit_code == 0
    assert 'Module "SQL Basics" completed! (25%)' in result.output

    result = run("adapt")
    assert result.exit_code == 0
    assert "balanced" in result.output

    status = run("status").output
    assert "Stage: dashboard" in status
    assert "[x] 1. m-sql-1" in status
    assert "Points: 30" in status

    achievements = run("achievements").output
    assert "[*] First Steps" in achievements
    assert "[ ] Category Master" in achievements


def test_interactive_assessment(run):
    run("select", "test_track")
    result = run("assess", input="3\n3\n2\n")
    assert result.exit_code == 0
    assert "advanced level" in result.output


def test_assess_without_track(run):
    result = run("assess", "--answers", "0")
    assert result.exit_code == 1
    assert "Select a track first" in result.output


def test_unknown_track(run):
    result = run("select", "cooking")
    assert result.exit_code == 1
    assert "Unknown track: cooking" in result.output


def test_complete_unknown_module(run):
    run("select", "test_track")
    run("assess", "--answers", "0,0,0")
    result = run("complete", "m-nope")
    assert result.exit_code == 1
    assert "not on the current path" in result.output


def test_reset(run):
    run("select", "test_track")
    assert run("reset", "--yes").exit_code == 0
    assert "Stage: track-selection" in run("status").output
