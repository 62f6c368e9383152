"""Polling scheduler for named periodic timers."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from pchelper.core.counter import PersistentCounter
from pchelper.models.timer_state import TimerState

log = logging.getLogger(__name__)

TimerCallback = Callable[[], None]

DEFAULT_CHECK_INTERVAL = 3600.0


@dataclass(slots=True)
class _Timer:
    name: str
    interval_days: int
    callback: TimerCallback


class Scheduler:
    """Runs registered callbacks when their timers come due.

    All timers share one polling loop. On each tick every due timer fires
    in registration order and is then reset, whether or not its callback
    succeeded. A failing callback is logged and never stops the loop.
    """

    def __init__(
        self,
        counter: PersistentCounter,
        check_interval: float = DEFAULT_CHECK_INTERVAL,
    ) -> None:
        if check_interval <= 0:
            raise ValueError(f"check_interval must be positive, got {check_interval}")
        self.counter = counter
        self.check_interval = check_interval
        self._timers: dict[str, _Timer] = {}
        self._tick_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def register(self, name: str, interval_days: int, callback: TimerCallback) -> None:
        """Register a timer. Its durable record is initialized immediately."""
        if interval_days <= 0:
            raise ValueError(f"interval_days must be positive, got {interval_days}")
        if name in self._timers:
            log.warning("Timer '%s' already registered, skipping duplicate", name)
            return
        self.counter.last_reset(name)
        self._timers[name] = _Timer(name, interval_days, callback)
        log.debug("Registered timer: %s (every %d days)", name, interval_days)

    def timers(self) -> list[TimerState]:
        """Current state of every registered timer."""
        return [
            TimerState(t.name, t.interval_days, self.counter.last_reset(t.name))
            for t in self._timers.values()
        ]

    def is_due(self, name: str) -> bool:
        timer = self._timers[name]
        return self.counter.is_due(name, timer.interval_days)

    def reset(self, name: str) -> None:
        if name not in self._timers:
            raise KeyError(name)
        self.counter.reset(name)

    def tick(self) -> list[str]:
        """Evaluate every timer once. Returns the names that fired."""
        fired: list[str] = []
        with self._tick_lock:
            for timer in list(self._timers.values()):
                try:
                    due = self.counter.is_due(timer.name, timer.interval_days)
                except Exception:
                    log.exception("Could not evaluate timer '%s'", timer.name)
                    continue
                if not due:
                    continue
                log.info("Timer '%s' is due", timer.name)
                try:
                    timer.callback()
                except Exception:
                    log.exception("Timer '%s' callback failed", timer.name)
                self.counter.reset(timer.name)
                fired.append(timer.name)
        return fired

    def run_forever(self) -> None:
        """Tick on a fixed cadence until :meth:`stop` is called.

        Deadlines advance from a monotonic start time, so slow callbacks do
        not shift later ticks.
        """
        log.info(
            "Scheduler started: %d timer(s), checking every %.0fs",
            len(self._timers),
            self.check_interval,
        )
        deadline = time.monotonic()
        while not self._stop.is_set():
            self.tick()
            deadline += self.check_interval
            now = time.monotonic()
            if deadline <= now:
                # Missed ticks (suspend, long callback) collapse into one.
                skipped = int((now - deadline) // self.check_interval) + 1
                deadline += skipped * self.check_interval
            self._stop.wait(deadline - now)
        log.info("Scheduler stopped")

    def start(self) -> None:
        """Run the polling loop on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self.run_forever, name="scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
