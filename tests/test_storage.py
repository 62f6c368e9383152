"""Tests for JSON storage helpers."""

from __future__ import annotations

from datetime import date

import pytest

import pchelper.storage as storage

pytestmark = pytest.mark.usefixtures("isolate_storage")


class TestTimerRecords:
    def test_missing(self):
        assert storage.load_timer_date("scan") is None

    def test_round_trip(self):
        assert storage.save_timer_date("scan", date(2024, 2, 29)) is True
        assert storage.load_timer_date("scan") == date(2024, 2, 29)

    def test_one_file_per_timer(self, isolate_storage):
        storage.save_timer_date("a", date(2024, 1, 1))
        storage.save_timer_date("b", date(2024, 1, 2))
        assert sorted(p.name for p in (isolate_storage / "timers").iterdir()) == ["a.json", "b.json"]

    @pytest.mark.parametrize(
        "content",
        ["", "[]", '{"name": "scan"}', '{"name": "scan", "last_reset": "yesterday"}', '{"name": "x", "last_reset": "2024-01-01"}'],
    )
    def test_corrupt(self, isolate_storage, content):
        (isolate_storage / "timers").mkdir()
        (isolate_storage / "timers" / "scan.json").write_text(content)
        assert storage.load_timer_date("scan") is None

    def test_write_failure(self, isolate_storage, monkeypatch):
        blocker = isolate_storage / "blocked"
        blocker.write_text("a file, not a directory")
        monkeypatch.setattr(storage, "TIMERS_DIR", blocker / "timers")
        assert storage.save_timer_date("scan", date(2024, 1, 1)) is False


class TestErrorLog:
    def test_missing(self):
        assert storage.load_error_log() is None

    def test_round_trip(self):
        lines = ["b", "a", "b", "ünïcode"]
        assert storage.save_error_log(lines) is True
        assert storage.load_error_log() == lines

    def test_corrupt(self, isolate_storage):
        (isolate_storage / "error_log.json").write_text('{"errors": [1, 2]}')
        assert storage.load_error_log() is None
