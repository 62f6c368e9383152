"""Default maintenance timers and their callbacks."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from pchelper.core.error_log import ErrorLogStore
from pchelper.core.scheduler import Scheduler
from pchelper.settings import Settings

log = logging.getLogger(__name__)

MAINTENANCE_TIMER = "maintenance"
ERROR_SCAN_TIMER = "error_scan"

LogReader = Callable[[], Sequence[str]]
ReminderCallback = Callable[[], None]
ErrorsCallback = Callable[[list[str]], None]


def make_error_scan(
    reader: LogReader,
    store: ErrorLogStore,
    on_errors: ErrorsCallback | None = None,
) -> Callable[[], None]:
    """Build the error-scan callback.

    Lines returned by ``reader`` are appended to ``store`` and passed to
    ``on_errors``. An empty read is a completed check with nothing to report.
    """

    def scan() -> None:
        lines = list(reader())
        if not lines:
            log.info("Error scan found nothing critical")
            return
        log.info("Error scan found %d critical line(s)", len(lines))
        store.append(lines)
        if on_errors:
            on_errors(lines)

    return scan


def register_default_timers(
    scheduler: Scheduler,
    settings: Settings,
    *,
    reader: LogReader,
    store: ErrorLogStore,
    on_maintenance: ReminderCallback,
    on_errors: ErrorsCallback | None = None,
) -> None:
    """Register the maintenance reminder and the error scan, in that order."""
    scheduler.register(
        MAINTENANCE_TIMER,
        int(settings.get("timers.maintenance.interval_days")),
        on_maintenance,
    )
    scheduler.register(
        ERROR_SCAN_TIMER,
        int(settings.get("timers.error_scan.interval_days")),
        make_error_scan(reader, store, on_errors),
    )
