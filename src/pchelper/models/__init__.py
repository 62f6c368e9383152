"""PC Helper data models."""

from pchelper.models.file_entry import NOT_COMPUTED, FileEntry, ScanProgress
from pchelper.models.timer_state import TimerState

__all__ = [
    "FileEntry",
    "NOT_COMPUTED",
    "ScanProgress",
    "TimerState",
]
