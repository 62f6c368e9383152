"""Shared test fixtures."""

from __future__ import annotations

import pytest

import pchelper.storage as storage
from pchelper.settings import Settings


@pytest.fixture
def isolate_storage(tmp_path, monkeypatch):
    """Redirect storage to a temp directory."""
    data_dir = tmp_path / "pchelper_data"
    data_dir.mkdir()
    monkeypatch.setattr(storage, "_DATA_DIR", data_dir)
    monkeypatch.setattr(storage, "TIMERS_DIR", data_dir / "timers")
    monkeypatch.setattr(storage, "ERROR_LOG_FILE", data_dir / "error_log.json")
    return data_dir


@pytest.fixture
def isolate_settings(tmp_path, monkeypatch):
    """Replace the settings singleton with one backed by a temp file."""
    settings = Settings(tmp_path / "config" / "settings.json")
    monkeypatch.setattr(Settings, "_instance", settings)
    return settings


@pytest.fixture
def sample_tree(tmp_path):
    """Directory with a file, a subdirectory holding a self-link, and hidden entries.

    Layout::

        root/
          a.bin            100 bytes
          b/
            c.bin          50 bytes
            loop -> b/     symlink cycle
          .hidden          30 bytes
    """
    root = tmp_path / "root"
    root.mkdir()
    (root / "a.bin").write_bytes(b"a" * 100)
    (root / "b").mkdir()
    (root / "b" / "c.bin").write_bytes(b"c" * 50)
    (root / "b" / "loop").symlink_to(root / "b", target_is_directory=True)
    (root / ".hidden").write_bytes(b"h" * 30)
    return root
