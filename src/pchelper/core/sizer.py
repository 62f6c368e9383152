"""Recursive, cancellable size aggregation."""

from __future__ import annotations

import logging
import os
import stat
import threading
from pathlib import Path
from typing import Callable, Iterable

from pchelper.models.file_entry import ScanProgress

log = logging.getLogger(__name__)

SizeCallback = Callable[[int, int], None]  # (index, size_bytes)

# Directories visited between two cancellation checks inside one subtree.
_CANCEL_CHECK_EVERY = 64


class CancelToken:
    """Cooperative cancellation flag shared between a caller and a worker."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class Cancelled(Exception):
    """Raised inside a subtree walk when its token is cancelled."""


def _file_size(path: str) -> int:
    """Size of a file, following a symlink to the file it points at."""
    try:
        return os.stat(path).st_size
    except OSError as e:
        log.debug("Cannot stat %s: %s", path, e)
        return 0


def compute_size(path: Path | str, cancel: CancelToken | None = None) -> int:
    """Total size in bytes of a file or directory tree.

    Plain files (and symlinks to files) count their byte length. Directories
    are walked without descending into symlinked directories, and each real
    directory is visited at most once, so link cycles terminate. Per-child
    I/O errors are logged and contribute 0.

    Raises:
        Cancelled: if ``cancel`` is set while the walk is in progress.
    """
    path = os.fspath(path)
    try:
        st = os.lstat(path)
    except OSError as e:
        log.debug("Cannot stat %s: %s", path, e)
        return 0

    if stat.S_ISLNK(st.st_mode):
        if os.path.isdir(path):
            return 0
        return _file_size(path)
    if not stat.S_ISDIR(st.st_mode):
        return st.st_size

    total = 0
    visited: set[tuple[int, int]] = set()
    stack = [path]
    walked = 0
    while stack:
        current = stack.pop()
        walked += 1
        if cancel is not None and walked % _CANCEL_CHECK_EVERY == 0 and cancel.cancelled:
            raise Cancelled(path)
        try:
            key = os.stat(current)
        except OSError as e:
            log.debug("Cannot stat %s: %s", current, e)
            continue
        if (key.st_dev, key.st_ino) in visited:
            continue
        visited.add((key.st_dev, key.st_ino))
        try:
            with os.scandir(current) as it:
                for child in it:
                    try:
                        if child.is_symlink():
                            if not child.is_dir():
                                total += _file_size(child.path)
                        elif child.is_dir(follow_symlinks=False):
                            stack.append(child.path)
                        elif child.is_file(follow_symlinks=False):
                            total += child.stat(follow_symlinks=False).st_size
                    except OSError as e:
                        log.debug("Skipping %s: %s", child.path, e)
        except OSError as e:
            log.debug("Cannot read directory %s: %s", current, e)
    return total


def compute_sizes(
    paths: Iterable[Path | str],
    on_size: SizeCallback | None = None,
    cancel: CancelToken | None = None,
) -> ScanProgress:
    """Compute sizes for ``paths`` in order, reporting each as it completes.

    ``on_size(index, size)`` fires once per finished entry. Cancellation is
    checked before every entry and periodically inside large subtrees; once
    observed, no further sizes are reported and the partial progress is
    returned.
    """
    paths = list(paths)
    progress = ScanProgress(total_entries=len(paths))
    for index, path in enumerate(paths):
        if cancel is not None and cancel.cancelled:
            break
        try:
            size = compute_size(path, cancel)
        except Cancelled:
            log.debug("Size computation cancelled at %s", path)
            break
        if cancel is not None and cancel.cancelled:
            break
        progress.record(size)
        if on_size:
            on_size(index, size)
    return progress
