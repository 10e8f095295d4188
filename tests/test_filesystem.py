"""Tests for filesystem module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from habit_tracker.filesystem import RealFileSystem
from habit_tracker.storage import StorageManager
from conftest import MockFileSystem


class TestMockFileSystem:
    """Tests for the in-memory filesystem used across the suite."""

    def test_initial_state_empty(self) -> None:
        """Verifies new MockFileSystem has no files.

        Business context:
        Test isolation requires clean slate. Each test starts fresh
        without artifacts from previous tests.

        Arrangement:
        Create new MockFileSystem instance.

        Action:
        Query list_files().

        Assertion Strategy:
        Validates it returns an empty list.
        """
        assert MockFileSystem().list_files() == []

    def test_write_creates_parent_dirs(self) -> None:
        fs = MockFileSystem()
        fs.write_text("/a/b/c.json", "[]")
        assert fs.exists("/a/b")
        assert fs.exists("/a")
        assert fs.read_text("/a/b/c.json") == "[]"

    def test_read_missing_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            MockFileSystem().read_text("/missing.json")

    def test_makedirs_exist_ok(self) -> None:
        fs = MockFileSystem()
        fs.makedirs("/data")
        fs.makedirs("/data", exist_ok=True)
        with pytest.raises(FileExistsError):
            fs.makedirs("/data")

    def test_read_only_write_raises(self) -> None:
        fs = MockFileSystem()
        fs.set_read_only("/data/habits.json")
        with pytest.raises(PermissionError):
            fs.write_text("/data/habits.json", "[]")

    def test_rename(self) -> None:
        fs = MockFileSystem()
        fs.set_file("/data/habits.json", "{")
        fs.rename("/data/habits.json", "/data/habits.json.corrupt")
        assert fs.list_files() == ["/data/habits.json.corrupt"]
        with pytest.raises(FileNotFoundError):
            fs.rename("/data/habits.json", "/x")


class TestRealFileSystem:
    """Tests for RealFileSystem against a temporary directory."""

    def test_write_read_round_trip(self, tmp_path: Path) -> None:
        fs = RealFileSystem()
        target = tmp_path / "habits.json"
        fs.write_text(str(target), '[{"name": "Läufe"}]')
        assert fs.exists(str(target))
        assert fs.read_text(str(target)) == '[{"name": "Läufe"}]'

    def test_makedirs_nested(self, tmp_path: Path) -> None:
        fs = RealFileSystem()
        nested = tmp_path / "a" / "b"
        fs.makedirs(str(nested), exist_ok=True)
        assert nested.is_dir()

    def test_rename_replaces(self, tmp_path: Path) -> None:
        fs = RealFileSystem()
        src, dst = tmp_path / "src.json", tmp_path / "dst.json"
        src.write_text("new", encoding="utf-8")
        dst.write_text("old", encoding="utf-8")
        fs.rename(str(src), str(dst))
        assert not src.exists()
        assert dst.read_text(encoding="utf-8") == "new"

    def test_storage_on_disk(self, tmp_path: Path) -> None:
        """Verifies StorageManager works end to end on the real filesystem.

        Arrangement:
        StorageManager rooted at a temporary directory.

        Action:
        Write a corrupt habits file and read it back.

        Assertion Strategy:
        Validates the quarantine rename happens on disk.
        """
        manager = StorageManager(storage_dir=str(tmp_path / "store"))
        (tmp_path / "store" / "habits.json").write_text("not json", encoding="utf-8")

        assert manager.load_habits() == []
        assert (tmp_path / "store" / "habits.json.corrupt").exists()
