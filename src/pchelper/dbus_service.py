"""D-Bus service for GUI communication.

D-Bus methods use PascalCase per D-Bus convention, and type signatures
like "as" and "(ss)" are D-Bus protocol types, not Python syntax.

The cleanup session and the scheduler both work on background threads;
their results are marshalled onto the asyncio loop before any signal is
emitted.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from pathlib import Path

from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, method, signal
from dbus_next import BusType

from pchelper.core.counter import PersistentCounter
from pchelper.core.error_log import ErrorLogStore
from pchelper.core.event_log import CommandLogReader
from pchelper.core.maintenance import register_default_timers
from pchelper.core.scheduler import Scheduler
from pchelper.core.session import CleanupSession, SessionSnapshot, remove_paths
from pchelper.settings import Settings

log = logging.getLogger(__name__)

_BUS_NAME = "io.github.pchelper.Helper"
_OBJECT_PATH = "/io/github/pchelper/Helper"
_INTERFACE = "io.github.pchelper.Helper"


def snapshot_to_json(snap: SessionSnapshot) -> str:
    """Serialize a session snapshot for the SessionChanged signal."""
    return json.dumps(
        {
            "state": snap.state.value,
            "directory": str(snap.directory) if snap.directory else None,
            "sort_key": snap.sort_key.value,
            "descending": snap.descending,
            "progress": {
                "total_entries": snap.progress.total_entries,
                "completed_count": snap.progress.completed_count,
                "max_size_seen": snap.progress.max_size_seen,
            },
            "entries": [
                {
                    "path": str(e.path),
                    "name": e.name,
                    "is_dir": e.is_dir,
                    "size_bytes": e.size_bytes if e.is_sized else None,
                    "last_modified": e.last_modified,
                    "selected": e.selected,
                }
                for e in snap.entries
            ],
            "errors": list(snap.errors),
        }
    )


# noinspection PyPep8Naming
class PCHelperDBusService(ServiceInterface):
    """D-Bus service interface for PC Helper."""

    def __init__(self, loop: asyncio.AbstractEventLoop, settings: Settings | None = None) -> None:
        super().__init__(_INTERFACE)
        self._loop = loop
        self._settings = settings or Settings.instance()
        self._store = ErrorLogStore()
        self._session = CleanupSession(
            dispatch=loop.call_soon_threadsafe,
            on_change=self._on_session_change,
            sort_key=self._settings.get("cleanup.sort_key"),
            descending=bool(self._settings.get("cleanup.descending")),
        )
        self._scheduler = Scheduler(
            PersistentCounter(),
            check_interval=float(self._settings.get("scheduler.check_interval_seconds")),
        )
        register_default_timers(
            self._scheduler,
            self._settings,
            reader=CommandLogReader(self._settings.get("error_scan.command")),
            store=self._store,
            on_maintenance=lambda: loop.call_soon_threadsafe(self.MaintenanceDue),
            on_errors=lambda lines: loop.call_soon_threadsafe(self.CriticalErrorsFound, lines),
        )

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def _on_session_change(self, snap: SessionSnapshot) -> None:
        # Signals are always emitted from the loop, whichever thread reported.
        self._loop.call_soon_threadsafe(self.SessionChanged, snapshot_to_json(snap))

    # ── Cleanup view ─────────────────────────────────────────────

    @method()
    def OpenDirectory(self, path: "s"):  # type: ignore[override]
        """Start listing and sizing a directory (empty string = home)."""
        self._session.open(Path(path) if path else Path.home())

    @method()
    def NavigateInto(self, path: "s") -> "b":  # type: ignore[override]
        """Open a subdirectory of the current view."""
        try:
            self._session.navigate_into(path)
        except NotADirectoryError:
            log.warning("Cannot navigate into %s: not a directory", path)
            return False
        return True

    @method()
    def NavigateUp(self) -> "b":  # type: ignore[override]
        """Open the parent of the current directory."""
        return self._session.navigate_up()

    @method()
    def Cancel(self):  # type: ignore[override]
        """Cancel the listing or sizing in flight."""
        self._session.cancel()

    @method()
    def SetSort(self, key: "s", descending: "b"):  # type: ignore[override]
        """Change the sort column and direction; remembered across restarts."""
        self._session.set_sort(key, descending)
        self._settings.set("cleanup.sort_key", self._session.sort_key.value)
        self._settings.set("cleanup.descending", descending)

    @method()
    def SetSelected(self, path: "s", selected: "b") -> "b":  # type: ignore[override]
        return self._session.select(path, selected)

    @method()
    async def DeleteSelected(self) -> "s":  # type: ignore[override]
        """Delete every selected row, returning failures as a JSON list."""
        return json.dumps(await self.delete_selected())

    async def delete_selected(self) -> list[str]:
        # Removal runs in the default executor; the table is only edited on the loop.
        paths = [e.path for e in self._session.selected]
        removed, errors = await self._loop.run_in_executor(None, remove_paths, paths)
        self._session.discard(removed, errors)
        return errors

    @method()
    def GetSnapshot(self) -> "s":  # type: ignore[override]
        return snapshot_to_json(self._session.snapshot())

    # ── Maintenance ──────────────────────────────────────────────

    @method()
    def GetErrors(self) -> "as":  # type: ignore[override]
        """Saved critical-error lines, oldest first."""
        return list(self._store.errors)

    @method()
    def GetTimers(self) -> "s":  # type: ignore[override]
        today = date.today()
        data = [
            {
                "name": t.name,
                "interval_days": t.interval_days,
                "last_reset": t.last_reset.isoformat(),
                "due": t.is_due(today),
            }
            for t in self._scheduler.timers()
        ]
        return json.dumps(data)

    @method()
    def ResetTimer(self, name: "s") -> "b":  # type: ignore[override]
        try:
            self._scheduler.reset(name)
        except KeyError:
            return False
        return True

    @signal()
    def SessionChanged(self, snapshot: str) -> "s":  # type: ignore[override]
        return snapshot

    @signal()
    def MaintenanceDue(self):  # type: ignore[override]
        pass

    @signal()
    def CriticalErrorsFound(self, lines: list[str]) -> "as":  # type: ignore[override]
        return lines


async def run_service() -> None:
    """Start the D-Bus service and the maintenance scheduler."""
    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    service = PCHelperDBusService(asyncio.get_running_loop())
    bus.export(_OBJECT_PATH, service)
    await bus.request_name(_BUS_NAME)
    service.scheduler.start()
    log.info("D-Bus service started on %s", _BUS_NAME)
    try:
        await bus.wait_for_disconnect()
    finally:
        service.scheduler.stop(timeout=1)


def start_service() -> None:
    """Entry point to start the D-Bus service."""
    asyncio.run(run_service())
