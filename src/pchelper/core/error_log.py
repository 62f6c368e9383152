"""Append-only store of captured critical-error lines."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Iterator

from pchelper import storage

log = logging.getLogger(__name__)


class ErrorLogStore:
    """Saved error lines in insertion order, duplicates kept.

    The full sequence is loaded at construction; a missing or corrupt file
    starts an empty log and is rewritten.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        loaded = storage.load_error_log()
        if loaded is None:
            self._errors: list[str] = []
            storage.save_error_log(self._errors)
        else:
            self._errors = loaded
        log.debug("Loaded %d saved error line(s)", len(self._errors))

    @property
    def errors(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._errors)

    def __len__(self) -> int:
        with self._lock:
            return len(self._errors)

    def __iter__(self) -> Iterator[str]:
        return iter(self.errors)

    def append(self, lines: Iterable[str]) -> int:
        """Append lines and persist the whole log. Returns how many were added."""
        lines = list(lines)
        if not lines:
            return 0
        with self._lock:
            self._errors.extend(lines)
            if not storage.save_error_log(self._errors):
                log.warning("Error log kept in memory only (%d lines)", len(self._errors))
        log.info("Saved %d new error line(s)", len(lines))
        return len(lines)
