"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from pchelper.cli import main
from pchelper.core.error_log import ErrorLogStore

pytestmark = pytest.mark.usefixtures("isolate_storage", "isolate_settings")


@pytest.fixture
def runner():
    return CliRunner()


class TestFilesCommand:
    def test_json_listing(self, runner, sample_tree):
        result = runner.invoke(main, ["files", str(sample_tree), "--sort", "size", "--desc", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["state"] == "ready"
        assert [(e["name"], e["size_bytes"]) for e in data["entries"]] == [("a.bin", 100), ("b", 50)]

    def test_human_listing(self, runner, sample_tree):
        result = runner.invoke(main, ["files", str(sample_tree)])
        assert result.exit_code == 0, result.output
        assert "a.bin" in result.output
        assert "b/" in result.output
        assert "150 B" in result.output

    def test_missing_directory(self, runner, tmp_path):
        result = runner.invoke(main, ["files", str(tmp_path / "missing")])
        assert result.exit_code == 0
        assert "Nothing here." in result.output

    def test_sort_from_settings(self, runner, sample_tree, isolate_settings):
        isolate_settings.set("cleanup.sort_key", "size")
        result = runner.invoke(main, ["files", str(sample_tree), "--json"])
        names = [e["name"] for e in json.loads(result.output)["entries"]]
        assert names == ["b", "a.bin"]


class TestDeleteCommand:
    def test_delete_with_yes(self, runner, sample_tree):
        result = runner.invoke(main, ["delete", "--yes", str(sample_tree / "b")])
        assert result.exit_code == 0, result.output
        assert not (sample_tree / "b").exists()

    def test_abort(self, runner, sample_tree):
        result = runner.invoke(main, ["delete", str(sample_tree / "a.bin")], input="n\n")
        assert "Aborted." in result.output
        assert (sample_tree / "a.bin").exists()


class TestErrorsCommand:
    def test_no_errors(self, runner):
        result = runner.invoke(main, ["errors"])
        assert result.exit_code == 0
        assert "No saved error records." in result.output

    def test_json(self, runner):
        ErrorLogStore().append(["x", "y", "x"])
        result = runner.invoke(main, ["errors", "--json"])
        assert json.loads(result.output) == ["x", "y", "x"]


class TestTimersCommand:
    def test_status_fresh(self, runner):
        result = runner.invoke(main, ["timers", "status", "--json"])
        assert result.exit_code == 0, result.output
        data = {t["name"]: t for t in json.loads(result.output)}
        assert data["maintenance"]["interval_days"] == 30
        assert data["error_scan"]["due"] is False
        assert data["error_scan"]["days_passed"] == 0

    def test_reset(self, runner):
        result = runner.invoke(main, ["timers", "reset", "error_scan"])
        assert result.exit_code == 0
        assert "reset" in result.output

    def test_reset_unknown(self, runner):
        result = runner.invoke(main, ["timers", "reset", "bogus"])
        assert result.exit_code != 0


class TestDaemonCommand:
    def test_once_nothing_due(self, runner):
        result = runner.invoke(main, ["daemon", "--once"])
        assert result.exit_code == 0, result.output
        assert "Nothing due." in result.output
