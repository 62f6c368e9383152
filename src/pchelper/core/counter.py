"""Durable date-stamped counters behind the periodic timers."""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Callable

from pchelper import storage

log = logging.getLogger(__name__)


class PersistentCounter:
    """Stores the last reset date of each named timer.

    A name with no usable record (missing, corrupt or dated in the future)
    is initialized to today and persisted on first access, so a fresh
    install starts counting from zero days. Dates only ever move forward.
    """

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today
        self._dates: dict[str, date] = {}
        self._lock = threading.Lock()

    def last_reset(self, name: str) -> date:
        """Return the last reset date, loading or initializing it on first use."""
        with self._lock:
            return self._get(name)

    def days_passed(self, name: str) -> int:
        with self._lock:
            return (self._today() - self._get(name)).days

    def is_due(self, name: str, interval_days: int) -> bool:
        """True once at least ``interval_days`` calendar days have passed."""
        if interval_days <= 0:
            raise ValueError(f"interval_days must be positive, got {interval_days}")
        return self.days_passed(name) >= interval_days

    def reset(self, name: str) -> None:
        """Set the timer to today and persist it.

        A failed write is logged; the in-memory date still advances.
        """
        with self._lock:
            today = self._today()
            current = self._get(name)
            if today > current:
                self._dates[name] = today
            if not storage.save_timer_date(name, self._dates[name]):
                log.warning("Timer '%s' reset kept in memory only", name)
            log.debug("Timer '%s' reset to %s", name, self._dates[name])

    def _get(self, name: str) -> date:
        today = self._today()
        if name in self._dates:
            # Another process may have reset the timer since it was loaded.
            stored = storage.load_timer_date(name)
            if stored is not None and self._dates[name] < stored <= today:
                log.debug("Timer '%s' reset elsewhere to %s", name, stored)
                self._dates[name] = stored
            return self._dates[name]
        stored = storage.load_timer_date(name)
        if stored is None or stored > today:
            if stored is not None:
                log.warning("Timer '%s' dated in the future (%s), resetting to today", name, stored)
            stored = today
            storage.save_timer_date(name, stored)
            log.info("Initialized timer '%s' to %s", name, stored)
        self._dates[name] = stored
        return stored
