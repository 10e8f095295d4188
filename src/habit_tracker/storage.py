"""
Storage management for Habit Tracker.

PURPOSE: Read and rewrite the habit, log and preference JSON files.
AI CONTEXT: All server-side persistence goes through this module.

STORAGE STRUCTURE:
    .habit_tracker/
    ├── habits.json        # List: habit records
    ├── habit_logs.json    # List: habit log records
    └── preferences.json   # Dict: user_id -> preference record

ERROR HANDLING STRATEGY:
- Missing file: treated as an empty list or dict
- JSON corruption: Log error, move the file aside as <name>.corrupt,
  return empty structure
- Bad record: Log warning, skip that record only
- Write failure: Log error, return False, don't crash the server

USAGE:
    # Production
    storage = StorageManager()

    # Testing with MockFileSystem (tests/conftest.py)
    storage = StorageManager(storage_dir="/test", filesystem=mock_fs)
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any

from .config import Config
from .filesystem import RealFileSystem
from .models import Habit, HabitId, HabitLog, generate_id, same_id

if TYPE_CHECKING:
    from .filesystem import FileSystem

logger = logging.getLogger(__name__)

__all__ = ["StorageManager"]


class StorageManager:
    """
    Owner of the three habit data files.

    Every read returns a usable list or dict, even after disk errors or
    hand-edited JSON; every write reports success as a bool so the
    service layer can answer with an error instead of a traceback.

    THREAD SAFETY:
    Not thread-safe. Single writer assumed (one server process).
    """

    def __init__(
        self,
        storage_dir: str | None = None,
        filesystem: FileSystem | None = None,
    ) -> None:
        """
        Point the store at a directory and make sure its files exist.

        Args:
            storage_dir: Custom storage path. Default: Config.get_storage_dir()
            filesystem: Injected FileSystem; RealFileSystem when omitted.
        """
        self.storage_dir = storage_dir or Config.get_storage_dir()
        self._fs: FileSystem = filesystem or RealFileSystem()
        self.habits_file = os.path.join(self.storage_dir, Config.HABITS_FILE)
        self.habit_logs_file = os.path.join(self.storage_dir, Config.HABIT_LOGS_FILE)
        self.preferences_file = os.path.join(self.storage_dir, Config.PREFERENCES_FILE)

        self._initialize_storage()

    def _initialize_storage(self) -> None:
        """
        Create the data directory and seed empty habits, logs and preferences.

        An unwritable directory is logged, not raised; reads then fall back
        to empty data.
        """
        try:
            self._fs.makedirs(self.storage_dir, exist_ok=True)

            if not self._fs.exists(self.habits_file):
                self._write_json(self.habits_file, [])
            if not self._fs.exists(self.habit_logs_file):
                self._write_json(self.habit_logs_file, [])
            if not self._fs.exists(self.preferences_file):
                self._write_json(self.preferences_file, {})

            logger.info(f"Storage initialized: {self.storage_dir}")
        except OSError as e:
            logger.error(f"Failed to initialize storage: {e}")

    def _read_json(self, file_path: str, default: Any) -> Any:
        """
        Load one data file, falling back to default.

        A file that does not parse, or parses to the wrong top-level type,
        is renamed to <file>.corrupt so the next write does not silently
        destroy it.

        Args:
            file_path: Path to JSON file
            default: Value to return on any error; its type is the expected
                top-level type

        Returns:
            Parsed content, or default when missing or unusable.
        """
        try:
            content = self._fs.read_text(file_path)
            data = json.loads(content)
        except FileNotFoundError:
            return default
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {file_path}: {e}")
            self._quarantine(file_path)
            return default
        except OSError as e:
            logger.error(f"Error reading {file_path}: {e}")
            return default

        if not isinstance(data, type(default)):
            logger.error(
                f"Unexpected {type(data).__name__} in {file_path}, "
                f"expected {type(default).__name__}"
            )
            self._quarantine(file_path)
            return default
        return data

    def _quarantine(self, file_path: str) -> None:
        """Move an unreadable data file aside as <file>.corrupt."""
        try:
            self._fs.rename(file_path, f"{file_path}.corrupt")
            logger.warning(f"Moved unreadable file to {file_path}.corrupt")
        except OSError as e:
            logger.error(f"Could not move aside {file_path}: {e}")

    def _write_json(self, file_path: str, data: Any) -> bool:
        """
        Serialize data to file_path with 2-space indentation.

        Args:
            file_path: Path to JSON file
            data: Data to serialize

        Returns:
            Whether the write went through.
        """
        try:
            content = json.dumps(data, indent=2, default=str)
            self._fs.write_text(file_path, content)
            return True
        except OSError as e:
            logger.error(f"Error writing {file_path}: {e}")
            return False

    # =========================================================================
    # HABIT OPERATIONS
    # =========================================================================

    def load_habit_records(self) -> list[dict[str, Any]]:
        """
        Load all raw habit records.

        Returns:
            List of habit dicts for every user. Empty list if unavailable.
        """
        result: list[dict[str, Any]] = self._read_json(self.habits_file, [])
        return result

    def save_habit_records(self, records: list[dict[str, Any]]) -> bool:
        """
        Save raw habit records to disk.

        Args:
            records: Complete list of habit dicts

        Returns:
            True on success.
        """
        return self._write_json(self.habits_file, records)

    def load_habits(self, user_id: str | None = None) -> list[Habit]:
        """
        Load habits, optionally only those of one user.

        Records that cannot be parsed are logged and skipped.

        Args:
            user_id: Owner to filter on. None returns every user's habits.

        Returns:
            Habits in stored order.
        """
        habits = []
        for record in self.load_habit_records():
            if user_id is not None and record.get("user_id") != user_id:
                continue
            try:
                habits.append(Habit.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid habit record {record.get('id')!r}: {e}")
        return habits

    def get_habit(self, habit_id: HabitId) -> Habit | None:
        """
        Get single habit by ID.

        Args:
            habit_id: Habit identifier

        Returns:
            Habit or None if not found.
        """
        for habit in self.load_habits():
            if same_id(habit.id, habit_id):
                return habit
        return None

    def add_habit(self, habit: Habit) -> bool:
        """
        Append a new habit.

        Args:
            habit: Habit to add

        Returns:
            True on success.
        """
        records = self.load_habit_records()
        records.append(habit.to_dict())
        return self.save_habit_records(records)

    def update_habit(self, habit: Habit) -> bool:
        """
        Replace the stored record of an existing habit.

        Args:
            habit: Habit with the id of the record to replace

        Returns:
            True on success, False if the habit doesn't exist or the write failed.
        """
        records = self.load_habit_records()
        for index, record in enumerate(records):
            if same_id(record.get("id", ""), habit.id):
                records[index] = habit.to_dict()
                return self.save_habit_records(records)
        return False

    def delete_habit(self, habit_id: HabitId) -> bool:
        """
        Delete a habit and every log that belongs to it.

        Args:
            habit_id: Habit identifier

        Returns:
            True on success, False if the habit doesn't exist or a write failed.
        """
        records = self.load_habit_records()
        remaining = [r for r in records if not same_id(r.get("id", ""), habit_id)]
        if len(remaining) == len(records):
            return False

        logs = self.load_log_records()
        kept_logs = [r for r in logs if not same_id(r.get("habit_id", ""), habit_id)]
        removed = len(logs) - len(kept_logs)

        success = self.save_habit_records(remaining)
        if removed:
            success &= self.save_log_records(kept_logs)
        logger.info(f"Deleted habit {habit_id} and {removed} log(s)")
        return success

    # =========================================================================
    # HABIT LOG OPERATIONS
    # =========================================================================

    def load_log_records(self) -> list[dict[str, Any]]:
        """
        Load all raw habit log records.

        Returns:
            List of log dicts. Empty list if unavailable.
        """
        result: list[dict[str, Any]] = self._read_json(self.habit_logs_file, [])
        return result

    def save_log_records(self, records: list[dict[str, Any]]) -> bool:
        """
        Save raw habit log records to disk.

        Args:
            records: Complete list of log dicts

        Returns:
            True on success.
        """
        return self._write_json(self.habit_logs_file, records)

    def load_habit_logs(self, user_id: str | None = None) -> list[HabitLog]:
        """
        Load habit logs, optionally only those of one user's habits.

        Args:
            user_id: Owner whose habits' logs are wanted. None returns all logs.

        Returns:
            Logs in stored order; invalid records are skipped.
        """
        habit_ids = None
        if user_id is not None:
            habit_ids = {str(h.id) for h in self.load_habits(user_id)}

        logs = []
        for record in self.load_log_records():
            if habit_ids is not None and str(record.get("habit_id")) not in habit_ids:
                continue
            try:
                logs.append(HabitLog.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping invalid log record {record.get('id')!r}: {e}")
        return logs

    def get_log(self, habit_id: HabitId, day: str) -> HabitLog | None:
        """
        Get the first log of a habit on a day.

        Args:
            habit_id: Habit identifier
            day: Calendar day in yyyy-MM-dd format

        Returns:
            HabitLog or None if the day has no log.
        """
        for log in self.load_habit_logs():
            if same_id(log.habit_id, habit_id) and log.date == day:
                return log
        return None

    def upsert_log(self, log: HabitLog) -> bool:
        """
        Insert a log or replace the stored record for the same log.

        The stored record is the one with the same id, or else the first
        record of the same (habit, date), so a day never gains a second log.
        A log without an id (older hand-written records) is given one here.

        Args:
            log: Log to store

        Returns:
            True on success.
        """
        if not log.id:
            log.id = generate_id()
        records = self.load_log_records()
        match = None
        for index, record in enumerate(records):
            if same_id(record.get("id", ""), log.id):
                match = index
                break
            if (
                match is None
                and same_id(record.get("habit_id", ""), log.habit_id)
                and record.get("date") == log.date
            ):
                match = index
        if match is None:
            records.append(log.to_dict())
        else:
            records[match] = log.to_dict()
        return self.save_log_records(records)

    # =========================================================================
    # PREFERENCE OPERATIONS
    # =========================================================================

    def load_preferences(self) -> dict[str, Any]:
        """
        Load preference records of all users.

        Returns:
            Dict of user_id -> preference dict. Empty dict if unavailable.
        """
        result: dict[str, Any] = self._read_json(self.preferences_file, {})
        return result

    def save_preferences(self, preferences: dict[str, Any]) -> bool:
        """
        Save preference records of all users.

        Args:
            preferences: Dict of user_id -> preference dict

        Returns:
            True on success.
        """
        return self._write_json(self.preferences_file, preferences)

    # =========================================================================
    # MAINTENANCE OPERATIONS
    # =========================================================================

    def clear_all(self) -> bool:
        """
        Reset all data files to empty state.

        WARNING: Destroys all data. Intended for tests and fresh installs.

        Returns:
            True if all clears succeeded.
        """
        success = True
        success &= self._write_json(self.habits_file, [])
        success &= self._write_json(self.habit_logs_file, [])
        success &= self._write_json(self.preferences_file, {})
        if success:
            logger.info("All data files cleared")
        return success
