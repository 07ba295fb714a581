"""Tests for the typer command line."""
import json
from datetime import datetime, timedelta

import pytest
from typer.testing import CliRunner

from tracklog import editing
from tracklog.cli import app
from tracklog.db import IntervalStore

runner = CliRunner()


@pytest.fixture
def invoke(db_path):
    def _invoke(*args):
        return runner.invoke(app, ["--db", str(db_path), *args])
    return _invoke


def stored(db_path):
    return IntervalStore.read(db_path)


def test_bare_invocation_shows_status(invoke):
    result = invoke()
    assert result.exit_code == 0
    assert "<< no tracking in progress >>" in result.output


def test_start_and_stop(invoke, db_path):
    result = invoke("start", "proj:gott", "+cli", "fix", "bug")
    assert result.exit_code == 0, result.output
    assert "tracking fix bug -- proj:gott -- cli" in result.output
    assert stored(db_path).get_current().raw == "proj:gott +cli fix bug"

    result = invoke("stop")
    assert result.exit_code == 0
    assert "Stopped" in result.output
    store = stored(db_path)
    assert store.get_current() is None
    assert store.intervals[0].end is not None


def test_start_while_tracking_fails(invoke, db_path):
    invoke("start", "first")
    result = invoke("start", "second")
    assert result.exit_code == 1
    assert "ERROR" in result.output
    assert stored(db_path).count() == 1


def test_stop_without_tracking(invoke):
    result = invoke("stop")
    assert result.exit_code == 0
    assert "<< no tracking in progress >>" in result.output


def test_cancel(invoke, db_path):
    assert "no tracking in progress" in invoke("cancel").output
    invoke("start", "oops")
    result = invoke("cancel")
    assert result.exit_code == 0
    assert stored(db_path).count() == 0


def test_annotate_replaces_text(invoke, db_path):
    invoke("start", "draft", "+a")
    result = invoke("annotate", "final", "+b")
    assert result.exit_code == 0
    current = stored(db_path).get_current()
    assert current.annotation == "final"
    assert current.tags == ["a", "b"]


def test_annotate_requires_running_interval(invoke):
    result = invoke("annotate", "text")
    assert result.exit_code == 1
    assert "no tracking in progress" in result.output


def test_continue_restarts_latest(invoke, db_path):
    assert invoke("continue").exit_code == 1
    invoke("start", "deep", "work", "+focus")
    invoke("stop")
    result = invoke("continue")
    assert result.exit_code == 0, result.output
    store = stored(db_path)
    assert store.count() == 2
    assert store.get_current().raw == "deep work +focus"
    assert invoke("continue").exit_code == 1


def test_track_books_duration(invoke, db_path):
    result = invoke("track", "2024-01-02", "1h30m", "+work", "planning")
    assert result.exit_code == 0, result.output
    (interval,) = stored(db_path).intervals
    assert interval.begin == interval.end == datetime(2024, 1, 2)
    assert interval.duration == timedelta(minutes=90)
    assert interval.tags == ["work"]


@pytest.mark.parametrize("args", [["2024-01-02", "lots"], [":week", "1h"]])
def test_track_rejects_bad_input(invoke, db_path, args):
    result = invoke("track", *args, "x")
    assert result.exit_code == 1
    assert not db_path.exists()


def test_summary(invoke):
    invoke("track", "2024-01-02", "1h", "+work", "planning")
    invoke("track", "2024-01-03", "30m", "proj:gott", "coding")
    result = invoke("summary", ":all")
    assert result.exit_code == 0, result.output
    assert "CWEEK" in result.output
    assert "planning" in result.output
    assert "day =" in result.output
    assert "01:30" in result.output


def test_summary_invalid_filter(invoke):
    result = invoke("summary", ":today", ":week")
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_corrupt_store_is_reported_and_kept(invoke, db_path):
    db_path.write_text("{broken")
    result = invoke("start", "x")
    assert result.exit_code == 1
    assert "malformed" in result.output
    assert db_path.read_text() == "{broken"


def test_edit(invoke, db_path, monkeypatch):
    invoke("track", ":today", "1h", "reading")

    def fake_editor(editor, path):
        path.write_text(path.read_text().replace("[reading]", "[reading +books]"))

    monkeypatch.setattr(editing, "run_editor", fake_editor)
    result = invoke("edit")
    assert result.exit_code == 0, result.output
    assert "0 added, 1 updated, 0 removed" in result.output
    assert stored(db_path).intervals[0].tags == ["books"]


def test_edit_with_failing_editor_saves_nothing(invoke, db_path):
    invoke("track", ":today", "1h", "reading")
    before = json.loads(db_path.read_text())
    result = invoke("--editor", "no-such-editor-tracklog", "edit")
    assert result.exit_code == 1
    assert json.loads(db_path.read_text()) == before


def test_settings_reach_commands(db_path, monkeypatch):
    monkeypatch.setenv("TRACKLOG_DB", str(db_path))
    result = runner.invoke(app, ["start", "from", "env"])
    assert result.exit_code == 0, result.output
    assert stored(db_path).count() == 1
