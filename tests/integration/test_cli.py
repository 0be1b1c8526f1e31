"""CLI commands against a temporary SQLite store."""

from datetime import date, timedelta

import pytest
from typer.testing import CliRunner

from docreview.cli.main import app
from docreview.config.settings import settings


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_path", tmp_path / "reviews.db")
    return CliRunner()


def _invoke(runner, *args):
    return runner.invoke(app, ["--backend", "sqlite", *args])


def test_assign_show_and_toggle(runner):
    result = _invoke(runner, "assign", "--assignee", "u1", "--document", "doc-1", "--id", "A1")
    assert result.exit_code == 0, result.output
    assert "Created assignment A1" in result.output

    result = _invoke(runner, "show", "A1")
    assert result.exit_code == 0
    assert "pending" in result.output

    result = _invoke(runner, "toggle", "A1")
    assert result.exit_code == 0
    assert "completed" in result.output

    result = _invoke(runner, "toggle", "A1")
    assert result.exit_code == 0
    assert "pending" in result.output


def test_missing_assignment_exits_nonzero(runner):
    result = _invoke(runner, "toggle", "missing-id")
    assert result.exit_code == 1
    assert "not_found" in result.output


def test_invalid_due_date(runner):
    result = _invoke(runner, "assign", "--assignee", "u1", "--due", "next week")
    assert result.exit_code == 1
    assert "invalid due date" in result.output


def test_summary_and_list(runner):
    _invoke(runner, "assign", "--assignee", "u1", "--document", "doc-1", "--id", "A1")
    _invoke(runner, "assign", "--assignee", "u2", "--document", "doc-1", "--id", "A2")
    _invoke(runner, "toggle", "A1")

    result = _invoke(runner, "summary", "doc-1")
    assert result.exit_code == 0
    assert "1 of 2 reviews completed (50%)" in result.output
    assert "Waiting for 1 review" in result.output

    result = _invoke(runner, "list", "--status", "completed")
    assert result.exit_code == 0
    assert "A1" in result.output
    assert "A2" not in result.output


def test_list_rejects_unknown_status(runner):
    result = _invoke(runner, "list", "--status", "done")
    assert result.exit_code == 1
    assert "invalid_status" in result.output


def test_overdue(runner):
    yesterday = (date.today() - timedelta(days=2)).isoformat()
    _invoke(runner, "assign", "--assignee", "u1", "--id", "LATE", "--due", yesterday)
    _invoke(runner, "assign", "--assignee", "u2", "--id", "FINE")

    result = _invoke(runner, "overdue")
    assert result.exit_code == 0
    assert "LATE" in result.output
    assert "FINE" not in result.output


def test_remove(runner):
    _invoke(runner, "assign", "--assignee", "u1", "--id", "A1")
    assert _invoke(runner, "remove", "A1").exit_code == 0
    assert _invoke(runner, "show", "A1").exit_code == 1


def test_unknown_backend_rejected(runner):
    result = runner.invoke(app, ["--backend", "mongo", "list"])
    assert result.exit_code == 2
    assert "Traceback" not in result.output


def test_show_completed_time(runner):
    _invoke(runner, "assign", "--assignee", "u1", "--id", "A1")
    _invoke(runner, "toggle", "A1")
    result = _invoke(runner, "show", "A1")
    assert result.exit_code == 0
    assert "Completed:" in result.output
