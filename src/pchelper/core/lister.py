"""Directory listing for the cleanup view."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from pchelper.models.file_entry import FileEntry

log = logging.getLogger(__name__)


def is_hidden(entry: os.DirEntry) -> bool:
    """Return True if the OS flags this entry as hidden.

    Dot-files are hidden everywhere; on Windows the HIDDEN attribute
    counts as well.
    """
    if entry.name.startswith("."):
        return True
    attributes = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", 0)
    return bool(attributes & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))


def list_directory(directory: Path | str | None) -> list[FileEntry]:
    """List the direct, non-hidden children of ``directory``.

    Every entry comes back unsized. A missing, unreadable or non-directory
    path yields an empty list rather than an error.
    """
    if directory is None:
        return []
    root = Path(directory).absolute()
    if not root.is_dir():
        log.debug("Not a directory, nothing to list: %s", root)
        return []

    entries: list[FileEntry] = []
    try:
        with os.scandir(root) as it:
            for child in it:
                try:
                    if is_hidden(child):
                        continue
                    st = child.stat(follow_symlinks=False)
                    entries.append(
                        FileEntry(
                            path=root / child.name,
                            is_dir=child.is_dir(),
                            last_modified=st.st_mtime,
                        )
                    )
                except OSError as e:
                    log.debug("Skipping %s: %s", child.path, e)
    except OSError as e:
        log.warning("Cannot list %s: %s", root, e)
        return []

    log.debug("Listed %d entries in %s", len(entries), root)
    return entries
