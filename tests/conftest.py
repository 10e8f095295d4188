"""
Pytest configuration and shared fixtures for Habit Tracker tests.

This module contains:
- MockFileSystem: dict-backed stand-in for the JSON store's files
- Fixtures: storage rooted at /test, the Water and Read habits, and a
  week of March 2024 logs
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

import pytest

from habit_tracker.config import Config
from habit_tracker.models import Habit, HabitLog, TrackingType
from habit_tracker.statistics import StatisticsEngine
from habit_tracker.storage import StorageManager


class MockFileSystem:
    """
    FileSystem kept entirely in memory.

    Store files live in ``_files`` (path -> text) and directories in
    ``_dirs``. Paths registered with set_read_only() reject writes, which
    is how the storage tests simulate a full or locked disk.
    """

    def __init__(self) -> None:
        self._files: dict[str, str] = {}
        self._dirs: set[str] = set()
        self._read_only: set[str] = set()

    def exists(self, path: str) -> bool:
        return path in self._files or path in self._dirs

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """Register path and each of its ancestors as directories."""
        if path in self._dirs and not exist_ok:
            raise FileExistsError(f"Directory exists: {path}")
        parts = path.rstrip("/").split("/")
        for depth in range(1, len(parts) + 1):
            ancestor = "/".join(parts[:depth])
            if ancestor:
                self._dirs.add(ancestor)

    def read_text(self, path: str, _encoding: str = "utf-8") -> str:
        try:
            return self._files[path]
        except KeyError:
            raise FileNotFoundError(f"No such file: {path}") from None

    def write_text(self, path: str, content: str, _encoding: str = "utf-8") -> None:
        """
        Store content at path, creating the parent directory on the fly.

        Raises:
            PermissionError: path was passed to set_read_only().
        """
        if path in self._read_only:
            raise PermissionError(f"Permission denied: {path}")
        parent = path.rpartition("/")[0]
        if parent:
            self.makedirs(parent, exist_ok=True)
        self._files[path] = content

    def rename(self, src: str, dst: str) -> None:
        if src not in self._files:
            raise FileNotFoundError(f"No such file: {src}")
        self._files[dst] = self._files.pop(src)

    # =========================================================================
    # TEST HELPERS
    # =========================================================================

    def get_file(self, path: str) -> str | None:
        """Stored text at path, or None."""
        return self._files.get(path)

    def set_file(self, path: str, content: str) -> None:
        """Seed a file, e.g. a corrupt habits.json."""
        self.write_text(path, content)

    def set_read_only(self, path: str) -> None:
        self._read_only.add(path)

    def list_files(self) -> list[str]:
        return sorted(self._files)


@pytest.fixture
def mock_fs() -> MockFileSystem:
    """Fresh in-memory filesystem per test."""
    return MockFileSystem()


@pytest.fixture
def storage(mock_fs: MockFileSystem) -> StorageManager:
    """StorageManager rooted at /test on the mock filesystem."""
    return StorageManager(storage_dir="/test", filesystem=mock_fs)


@pytest.fixture
def engine() -> StatisticsEngine:
    return StatisticsEngine()


@pytest.fixture(autouse=True)
def _reset_config() -> Iterator[None]:
    """Clear Config test overrides after every test."""
    yield
    Config.reset_test_overrides()


@pytest.fixture
def water() -> Habit:
    """Counted habit: drink water 3 times a day."""
    return Habit(
        id="h-water",
        user_id="u1",
        name="Water",
        tracking_type=TrackingType.MULTIPLE,
        target_per_day=3,
    )


@pytest.fixture
def reading() -> Habit:
    """Daily habit: read."""
    return Habit(id="h-read", user_id="u1", name="Read")


@pytest.fixture
def march_logs() -> list[HabitLog]:
    """Logs for the week of 2024-03-04 used across presenter and statistics tests."""
    return [
        HabitLog(id="l1", habit_id="h-water", date="2024-03-04", completed=False, count=1),
        HabitLog(id="l2", habit_id="h-water", date="2024-03-05", completed=True, count=3),
        HabitLog(id="l3", habit_id="h-read", date="2024-03-05", completed=True, count=1),
        HabitLog(id="l4", habit_id="h-read", date="2024-03-06", completed=False, count=2),
    ]


@pytest.fixture
def monday() -> date:
    return date(2024, 3, 4)
