"""File entry and scan progress dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

# Sizes are never negative, so -1 cannot collide with a computed value.
NOT_COMPUTED = -1


@dataclass(slots=True, eq=False)
class FileEntry:
    """Single row of the cleanup table: a direct child of the listed directory.

    ``size_bytes`` starts as ``NOT_COMPUTED`` and is resolved exactly once
    through :meth:`resolve_size`. Entries compare equal by path.
    """

    path: Path
    is_dir: bool
    last_modified: float
    size_bytes: int = NOT_COMPUTED
    selected: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileEntry):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_sized(self) -> bool:
        return self.size_bytes != NOT_COMPUTED

    @property
    def modified_at(self) -> datetime:
        return datetime.fromtimestamp(self.last_modified)

    def resolve_size(self, size: int) -> None:
        """Replace the sentinel with the computed size."""
        if self.is_sized:
            raise ValueError(f"Size of {self.path} already resolved")
        if size < 0:
            raise ValueError(f"Invalid size {size} for {self.path}")
        self.size_bytes = size


@dataclass(slots=True)
class ScanProgress:
    """Progress of one batch size computation."""

    total_entries: int = 0
    completed_count: int = 0
    max_size_seen: int = 0

    @property
    def done(self) -> bool:
        return self.completed_count >= self.total_entries

    def record(self, size: int) -> None:
        self.completed_count += 1
        if size > self.max_size_seen:
            self.max_size_seen = size
