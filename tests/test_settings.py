"""Tests for the settings store."""

from __future__ import annotations

import json

from pchelper.settings import Settings


class TestSettings:
    def test_defaults(self, tmp_path):
        settings = Settings(tmp_path / "settings.json")
        assert settings.get("timers.maintenance.interval_days") == 30
        assert settings.get("timers.error_scan.interval_days") == 1
        assert settings.get("scheduler.check_interval_seconds") == 3600
        assert settings.get("unknown.key") is None
        assert settings.get("unknown.key", "fallback") == "fallback"

    def test_set_persists_nested(self, tmp_path):
        path = tmp_path / "settings.json"
        Settings(path).set("timers.maintenance.interval_days", 7)
        assert json.loads(path.read_text()) == {"timers": {"maintenance": {"interval_days": 7}}}
        assert Settings(path).get("timers.maintenance.interval_days") == 7

    def test_corrupt_file_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{broken")
        assert Settings(path).get("cleanup.sort_key") == "name"

    def test_non_object_ignored(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2, 3]")
        assert Settings(path).get("cleanup.descending") is False
