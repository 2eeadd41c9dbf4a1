"""
Shared fixtures and helpers for the organizer tests.
"""

import os
import time
from datetime import datetime
from pathlib import Path

import pytest

NOW = datetime(2024, 6, 15, 12, 0, 0)
DAY = 24 * 60 * 60


def make_file(path: Path, content: str = "content", age_days: float = None) -> Path:
    """Create a file (and parents), optionally back-dating its timestamps."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if age_days is not None:
        set_age(path, age_days)
    return path


def set_age(path: Path, age_days: float):
    """Set a path's access and modification time to `age_days` ago."""
    stamp = time.time() - age_days * DAY
    os.utime(path, (stamp, stamp))


def tree_state(root: Path) -> dict:
    """Relative path -> file content (None for directories)."""
    return {
        str(p.relative_to(root)): (p.read_bytes() if p.is_file() else None)
        for p in sorted(root.rglob("*"))
    }


@pytest.fixture
def root(tmp_path):
    """An empty root directory to organize."""
    directory = tmp_path / "root"
    directory.mkdir()
    return directory
