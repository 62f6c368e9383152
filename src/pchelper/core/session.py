"""Cleanup view session: listing, background sizing, sorting and deletion."""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Iterable

from pchelper.core.lister import list_directory
from pchelper.core.sizer import CancelToken, compute_sizes
from pchelper.models.file_entry import FileEntry, ScanProgress
from pchelper.utils import remove_path

log = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    IDLE = "idle"
    LISTING = "listing"
    SIZING = "sizing"
    READY = "ready"
    CANCELLED = "cancelled"


class SessionEvent(str, enum.Enum):
    OPEN = "open"
    LISTED = "listed"
    SIZED = "sized"
    CANCEL = "cancel"


class SortKey(str, enum.Enum):
    NAME = "name"
    SIZE = "size"
    MODIFIED = "modified"
    TYPE = "type"


class InvalidTransition(ValueError):
    """An event arrived that the current session state cannot accept."""


_ACTIVE = (SessionState.LISTING, SessionState.SIZING)

_TRANSITIONS: dict[tuple[SessionState, SessionEvent], SessionState] = {
    (SessionState.LISTING, SessionEvent.LISTED): SessionState.SIZING,
    (SessionState.SIZING, SessionEvent.SIZED): SessionState.READY,
    (SessionState.LISTING, SessionEvent.CANCEL): SessionState.CANCELLED,
    (SessionState.SIZING, SessionEvent.CANCEL): SessionState.CANCELLED,
}


def next_state(state: SessionState, event: SessionEvent) -> SessionState:
    """Pure transition function of the session state machine.

    ``OPEN`` is accepted from every state (an active run is cancelled
    first by the caller). ``CANCEL`` outside an active run is a no-op.
    """
    if event is SessionEvent.OPEN:
        return SessionState.LISTING
    if event is SessionEvent.CANCEL and state not in _ACTIVE:
        return state
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransition(f"Cannot apply {event.value!r} in state {state.value!r}") from None


def _sort_key(key: SortKey) -> Callable[[FileEntry], Any]:
    match key:
        case SortKey.SIZE:
            return lambda e: (e.size_bytes, e.name.casefold())
        case SortKey.MODIFIED:
            return lambda e: (e.last_modified, e.name.casefold())
        case SortKey.TYPE:
            return lambda e: (not e.is_dir, e.name.casefold())
        case _:
            return lambda e: e.name.casefold()


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Point-in-time view of a session for rendering."""

    state: SessionState
    directory: Path | None
    entries: tuple[FileEntry, ...]
    progress: ScanProgress
    sort_key: SortKey
    descending: bool
    errors: tuple[str, ...] = field(default_factory=tuple)


Dispatch = Callable[..., Any]
ChangeCallback = Callable[[SessionSnapshot], None]
Lister = Callable[[Path], list[FileEntry]]


def _call_now(fn: Callable[..., Any], *args: Any) -> None:
    fn(*args)


def remove_paths(paths: Iterable[Path]) -> tuple[list[Path], list[str]]:
    """Remove each path from disk, collecting failures.

    Touches no session state, so hosts can run it off their interactive
    thread and hand the result to :meth:`CleanupSession.discard`.

    Returns:
        The removed paths, and one ``"<path>: <error>"`` message per failure.
    """
    removed: list[Path] = []
    errors: list[str] = []
    for path in paths:
        try:
            remove_path(path)
        except OSError as e:
            log.warning("Failed to delete %s: %s", path, e)
            errors.append(f"{path}: {e}")
            continue
        log.info("Deleted %s", path)
        removed.append(path)
    return removed, errors


class CleanupSession:
    """One directory view of the cleanup table.

    Listing and sizing run on a background thread. The worker never touches
    the table: it hands results to ``dispatch(fn, *args)``, which the host
    points at its interactive thread (``GLib.idle_add``,
    ``loop.call_soon_threadsafe``). Each run is tagged with a generation;
    results from a superseded or cancelled run are dropped on arrival.
    """

    def __init__(
        self,
        *,
        lister: Lister = list_directory,
        dispatch: Dispatch | None = None,
        on_change: ChangeCallback | None = None,
        sort_key: SortKey | str = SortKey.NAME,
        descending: bool = False,
    ) -> None:
        self._lister = lister
        self._dispatch = dispatch or _call_now
        self._on_change = on_change
        self._lock = threading.RLock()

        self._state = SessionState.IDLE
        self._directory: Path | None = None
        self._entries: list[FileEntry] = []
        self._progress = ScanProgress()
        self._sort_key = SortKey(sort_key)
        self._descending = descending

        self._generation = 0
        self._token: CancelToken | None = None
        self._thread: threading.Thread | None = None

    # ── Properties ───────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def directory(self) -> Path | None:
        return self._directory

    @property
    def entries(self) -> list[FileEntry]:
        """Copy of the current rows in display order."""
        with self._lock:
            return list(self._entries)

    @property
    def sort_key(self) -> SortKey:
        return self._sort_key

    @property
    def descending(self) -> bool:
        return self._descending

    def snapshot(self, errors: Iterable[str] = ()) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                state=self._state,
                directory=self._directory,
                entries=tuple(replace(e) for e in self._entries),
                progress=ScanProgress(
                    total_entries=self._progress.total_entries,
                    completed_count=self._progress.completed_count,
                    max_size_seen=self._progress.max_size_seen,
                ),
                sort_key=self._sort_key,
                descending=self._descending,
                errors=tuple(errors),
            )

    # ── Lifecycle ────────────────────────────────────────────────

    def open(self, directory: Path | str) -> None:
        """Start a new listing + sizing run rooted at ``directory``.

        Any run still in flight is cancelled first, and the previous rows
        are discarded.
        """
        directory = Path(directory).absolute()
        with self._lock:
            self._cancel_locked()
            self._state = next_state(self._state, SessionEvent.OPEN)
            self._generation += 1
            generation = self._generation
            self._token = token = CancelToken()
            self._directory = directory
            self._entries = []
            self._progress = ScanProgress()
            log.info("Opening %s (run %d)", directory, generation)
            self._thread = thread = threading.Thread(
                target=self._run,
                args=(generation, directory, token),
                name=f"cleanup-session-{generation}",
                daemon=True,
            )
            self._emit()
        thread.start()

    def cancel(self) -> None:
        """Cancel the run in flight. Rows sized so far are kept."""
        with self._lock:
            if self._cancel_locked():
                self._emit()

    def _cancel_locked(self) -> bool:
        if self._state not in _ACTIVE:
            return False
        if self._token is not None:
            self._token.cancel()
        self._generation += 1
        self._state = next_state(self._state, SessionEvent.CANCEL)
        log.info("Cancelled session for %s", self._directory)
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the current worker thread exits. Returns False on timeout."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def navigate_into(self, path: Path | str) -> None:
        """Open a subdirectory, keeping the current sort order."""
        path = Path(path)
        if not path.is_absolute() and self._directory is not None:
            path = self._directory / path
        if not path.is_dir():
            raise NotADirectoryError(str(path))
        self.open(path)

    def navigate_up(self) -> bool:
        """Open the parent directory. Returns False when already at the root."""
        if self._directory is None or self._directory.parent == self._directory:
            return False
        self.open(self._directory.parent)
        return True

    # ── Table operations ─────────────────────────────────────────

    def set_sort(self, key: SortKey | str, descending: bool = False) -> None:
        with self._lock:
            self._sort_key = SortKey(key)
            self._descending = descending
            self._sort()
            self._emit()

    def select(self, path: Path | str, selected: bool = True) -> bool:
        """Set the selection flag of the row at ``path``. Returns False if absent."""
        with self._lock:
            entry = self._find(Path(path))
            if entry is None:
                return False
            entry.selected = selected
            self._emit()
            return True

    @property
    def selected(self) -> list[FileEntry]:
        with self._lock:
            return [e for e in self._entries if e.selected]

    def delete(self, entries: Iterable[FileEntry | Path | str]) -> list[str]:
        """Remove entries from disk and drop them from the table.

        Rows that could not be removed stay in place. Sizing of the
        remaining rows is not restarted.

        Returns:
            One ``"<path>: <error>"`` message per failed removal.
        """
        with self._lock:
            targets: list[Path] = []
            for item in entries:
                path = item.path if isinstance(item, FileEntry) else Path(item).absolute()
                if self._find(path) is None:
                    log.debug("Not in table, skipping delete: %s", path)
                    continue
                if path not in targets:
                    targets.append(path)
            removed, errors = remove_paths(targets)
            self.discard(removed, errors)
        return errors

    def delete_selected(self) -> list[str]:
        return self.delete(self.selected)

    def discard(self, paths: Iterable[Path], errors: Iterable[str] = ()) -> None:
        """Drop rows already removed from disk, e.g. by :func:`remove_paths`."""
        gone = set(paths)
        with self._lock:
            self._entries = [e for e in self._entries if e.path not in gone]
            self._emit(errors)

    # ── Worker ───────────────────────────────────────────────────

    def _run(self, generation: int, directory: Path, token: CancelToken) -> None:
        """Background run: list, then size each row. Produces values only."""
        try:
            entries = self._lister(directory)
        except Exception:
            log.exception("Listing %s failed", directory)
            entries = []
        if token.cancelled:
            return
        paths = [e.path for e in entries]
        self._dispatch(self._on_listed, generation, entries)

        def on_size(index: int, size: int) -> None:
            self._dispatch(self._on_sized, generation, paths[index], size)

        progress = compute_sizes(paths, on_size, token)
        if not token.cancelled:
            self._dispatch(self._on_sizing_done, generation, progress)

    # ── Result handlers (interactive thread) ─────────────────────

    def _on_listed(self, generation: int, entries: list[FileEntry]) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._state = next_state(self._state, SessionEvent.LISTED)
            self._entries = list(entries)
            self._progress = ScanProgress(total_entries=len(entries))
            self._sort()
            self._emit()

    def _on_sized(self, generation: int, path: Path, size: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._progress.record(size)
            entry = self._find(path)
            if entry is None or entry.is_sized:
                return
            entry.resolve_size(size)
            self._emit()

    def _on_sizing_done(self, generation: int, progress: ScanProgress) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._state = next_state(self._state, SessionEvent.SIZED)
            log.info(
                "Sized %d/%d entries in %s",
                progress.completed_count,
                progress.total_entries,
                self._directory,
            )
            self._sort()
            self._emit()

    # ── Helpers ──────────────────────────────────────────────────

    def _find(self, path: Path) -> FileEntry | None:
        for entry in self._entries:
            if entry.path == path:
                return entry
        return None

    def _sort(self) -> None:
        self._entries.sort(key=_sort_key(self._sort_key), reverse=self._descending)

    def _emit(self, errors: Iterable[str] = ()) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self.snapshot(errors))
        except Exception:
            log.exception("Session change callback failed")
