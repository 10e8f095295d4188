"""
File access seam for the Habit Tracker JSON store.

PURPOSE: Keep StorageManager free of direct disk calls.
AI CONTEXT: Tests pass an in-memory MockFileSystem (tests/conftest.py);
production code gets RealFileSystem by default.

The store only ever needs five operations: check a path, create the data
directory, read a whole JSON file, replace a whole JSON file, and move a
corrupted file aside.
"""

from __future__ import annotations

import os
from typing import Protocol

__all__ = ["FileSystem", "RealFileSystem"]


class FileSystem(Protocol):
    """
    Whole-file text I/O used by StorageManager.

    Business context: habits.json, habit_logs.json and preferences.json
    are always read and rewritten in full, so no streaming or partial
    writes are part of this interface.
    """

    def exists(self, path: str) -> bool:
        """Return True when a file or directory is present at path."""
        ...

    def makedirs(self, path: str, exist_ok: bool = False) -> None:
        """
        Create the storage directory, including missing parents.

        Args:
            path: Directory to create, e.g. Config.get_storage_dir().
            exist_ok: Accept an already existing directory.

        Raises:
            OSError: Directory cannot be created, or already exists while
                exist_ok is False.
        """
        ...

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        """
        Return the full text of a store file.

        Raises:
            FileNotFoundError: The file has not been written yet.
        """
        ...

    def write_text(self, path: str, content: str, encoding: str = "utf-8") -> None:
        """
        Replace a store file with serialized JSON text.

        Raises:
            OSError: Write rejected, e.g. read-only file or missing directory.
        """
        ...

    def rename(self, src: str, dst: str) -> None:
        """
        Move src to dst, replacing dst if present.

        Business context: An unreadable habit_logs.json is moved to
        habit_logs.json.corrupt so the next save does not destroy the
        only copy of the user's history.

        Example:
            >>> fs.rename('/data/habit_logs.json', '/data/habit_logs.json.corrupt')
        """
        ...


class RealFileSystem:
    """Disk-backed FileSystem built on os and open()."""

    def exists(self, path: str) -> bool:  # pragma: no cover
        return os.path.exists(path)

    def makedirs(self, path: str, exist_ok: bool = False) -> None:  # pragma: no cover
        os.makedirs(path, exist_ok=exist_ok)

    def read_text(self, path: str, encoding: str = "utf-8") -> str:  # pragma: no cover
        with open(path, encoding=encoding) as handle:
            return handle.read()

    def write_text(  # pragma: no cover
        self, path: str, content: str, encoding: str = "utf-8"
    ) -> None:
        with open(path, "w", encoding=encoding) as handle:
            handle.write(content)

    def rename(self, src: str, dst: str) -> None:  # pragma: no cover
        # os.replace overwrites an older .corrupt file on every platform
        os.replace(src, dst)
