"""Tests for the command-backed log reader."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

from pchelper.core.event_log import CommandLogReader, default_command


class TestCommandLogReader:
    def test_default_command(self, monkeypatch):
        monkeypatch.setattr("platform.system", lambda: "Linux")
        assert default_command()[0] == "journalctl"
        monkeypatch.setattr("platform.system", lambda: "Windows")
        assert default_command()[0] == "wevtutil"

    def test_string_command_split(self):
        reader = CommandLogReader("journalctl -p crit")
        assert reader.command == ["journalctl", "-p", "crit"]

    def test_returns_non_blank_lines(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
        with patch("pchelper.core.event_log.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(
                args=[], returncode=0, stdout="first\n\nsecond\n", stderr=""
            )
            assert CommandLogReader(["reader"])() == ["first", "second"]

    def test_missing_binary(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: None)
        assert CommandLogReader(["reader"])() == []

    def test_failure_returns_empty(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
        with patch("pchelper.core.event_log.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.CalledProcessError(1, ["reader"], stderr="denied")
            assert CommandLogReader(["reader"])() == []

    def test_timeout_returns_empty(self, monkeypatch):
        monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
        with patch("pchelper.core.event_log.subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(["reader"], 60)
            assert CommandLogReader(["reader"])() == []
