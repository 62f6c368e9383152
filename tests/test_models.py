"""Tests for data models and formatting helpers."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from pchelper.models import NOT_COMPUTED, FileEntry, ScanProgress, TimerState
from pchelper.utils import bytes_to_human, remove_path


class TestFileEntry:
    def test_resolve_once(self):
        entry = FileEntry(path=Path("/tmp/x"), is_dir=False, last_modified=0.0)
        assert entry.size_bytes == NOT_COMPUTED
        entry.resolve_size(0)
        assert entry.is_sized
        with pytest.raises(ValueError):
            entry.resolve_size(10)
        assert entry.size_bytes == 0

    def test_negative_size_rejected(self):
        entry = FileEntry(path=Path("/tmp/x"), is_dir=False, last_modified=0.0)
        with pytest.raises(ValueError):
            entry.resolve_size(-5)

    def test_identity_is_path(self):
        a = FileEntry(path=Path("/tmp/x"), is_dir=False, last_modified=1.0)
        b = FileEntry(path=Path("/tmp/x"), is_dir=True, last_modified=2.0, size_bytes=9)
        assert a == b
        assert len({a, b}) == 1


class TestScanProgress:
    def test_record(self):
        progress = ScanProgress(total_entries=2)
        progress.record(10)
        progress.record(4)
        assert progress.completed_count == 2
        assert progress.max_size_seen == 10
        assert progress.done


class TestTimerState:
    def test_calendar_days(self):
        state = TimerState("scan", 1, date(2024, 12, 31))
        assert state.days_passed(date(2025, 1, 1)) == 1
        assert state.is_due(date(2025, 1, 1))
        assert not state.is_due(date(2024, 12, 31))


class TestBytesToHuman:
    @pytest.mark.parametrize(
        "size, expected",
        [(0, "0 B"), (512, "512 B"), (1536, "1.5 KB"), (5 * 1024**3, "5.0 GB"), (-2048, "-2.0 KB")],
    )
    def test_format(self, size, expected):
        assert bytes_to_human(size) == expected


class TestRemovePath:
    def test_symlink_unlinked_not_followed(self, sample_tree):
        remove_path(sample_tree / "b" / "loop")
        assert (sample_tree / "b" / "c.bin").exists()
        assert not (sample_tree / "b" / "loop").exists()
