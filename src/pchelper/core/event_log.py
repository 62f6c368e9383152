"""Command-backed reader for critical system log entries."""

from __future__ import annotations

import logging
import platform
import shlex
import subprocess

from pchelper.utils import has_command

log = logging.getLogger(__name__)

_READ_TIMEOUT = 60


def default_command() -> list[str]:
    """Critical entries from the last 24 hours, for the current platform."""
    if platform.system() == "Windows":
        return [
            "wevtutil", "qe", "System",
            "/q:*[System[(Level=1) and TimeCreated[timediff(@SystemTime) <= 86400000]]]",
            "/c:5", "/f:text",
        ]
    return ["journalctl", "--priority=crit", "--since=-24h", "--quiet", "--no-pager"]


class CommandLogReader:
    """Runs a log query command and returns its output lines.

    Any failure (missing binary, non-zero exit, timeout) yields no lines.
    """

    def __init__(self, command: list[str] | str | None = None, timeout: float = _READ_TIMEOUT) -> None:
        if isinstance(command, str):
            command = shlex.split(command)
        self.command = command or default_command()
        self.timeout = timeout

    def __call__(self) -> list[str]:
        if not has_command(self.command[0]):
            log.warning("Log reader '%s' not found", self.command[0])
            return []
        try:
            proc = subprocess.run(
                self.command,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            log.warning("Log reader exited with %d: %s", e.returncode, (e.stderr or "").strip())
            return []
        except (subprocess.TimeoutExpired, OSError) as e:
            log.warning("Log reader failed: %s", e)
            return []
        return [line for line in proc.stdout.splitlines() if line.strip()]
