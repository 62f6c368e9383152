"""JSON file storage for timer records and the error log."""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from pathlib import Path

from pchelper.utils import xdg_data_home

log = logging.getLogger(__name__)

_DATA_DIR = xdg_data_home() / "pchelper"

TIMERS_DIR = _DATA_DIR / "timers"
ERROR_LOG_FILE = _DATA_DIR / "error_log.json"

_TIMER_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def _timer_file(name: str) -> Path:
    if not _TIMER_NAME_RE.match(name) or name in (".", ".."):
        raise ValueError(f"Invalid timer name: {name!r}")
    return TIMERS_DIR / f"{name}.json"


def _write_json(path: Path, data: object) -> None:
    """Write JSON atomically: temp file in the same directory, then rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    tmp.replace(path)


def load_timer_date(name: str) -> date | None:
    """Load the last reset date of a timer.

    Returns None when the record is missing or cannot be parsed.
    """
    path = _timer_file(name)
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if data.get("name") != name:
            raise ValueError(f"record belongs to {data.get('name')!r}")
        return date.fromisoformat(data["last_reset"])
    except (json.JSONDecodeError, OSError, AttributeError, KeyError, TypeError, ValueError) as e:
        log.warning("Corrupt timer record %s: %s", path, e)
        return None


def save_timer_date(name: str, value: date) -> bool:
    """Persist a timer's last reset date. Returns False on failure."""
    path = _timer_file(name)
    try:
        _write_json(path, {"name": name, "last_reset": value.isoformat()})
    except OSError:
        log.exception("Failed to save timer record: %s", path)
        return False
    return True


def load_error_log() -> list[str] | None:
    """Load the saved error lines, or None when missing or corrupt."""
    if not ERROR_LOG_FILE.exists():
        return None
    try:
        data = json.loads(ERROR_LOG_FILE.read_text(encoding="utf-8"))
        errors = data["errors"]
        if not isinstance(errors, list) or not all(isinstance(e, str) for e in errors):
            raise ValueError("'errors' is not a list of strings")
        return errors
    except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as e:
        log.warning("Corrupt error log %s: %s", ERROR_LOG_FILE, e)
        return None


def save_error_log(errors: list[str]) -> bool:
    """Write the full error-line sequence to disk. Returns False on failure."""
    try:
        _write_json(ERROR_LOG_FILE, {"errors": errors})
    except OSError:
        log.exception("Failed to save error log: %s", ERROR_LOG_FILE)
        return False
    return True
