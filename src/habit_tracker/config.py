"""
Configuration for Habit Tracker.

PURPOSE: Centralized configuration constants and runtime settings.
AI CONTEXT: All configurable values live here - modify this file to change behavior.

CONFIGURATION CATEGORIES:
- Storage: File paths and directory structure
- Habits: Tracking types, target bounds, color palette
- Calendar: Month labels and completion color thresholds
- Preferences: Theme modes and text size factors

ENVIRONMENT VARIABLES:
- HABIT_TRACKER_STORAGE_DIR: Directory for JSON data files (default: .habit_tracker)
- HABIT_TRACKER_API_URL: Base URL used by the HTTP client (default: http://127.0.0.1:8000)
- HABIT_TRACKER_USER_ID: Default user for CLI commands (default: "local")

USAGE:
    from habit_tracker.config import Config
    storage_dir = Config.get_storage_dir()
    color = Config.DEFAULT_COLOR
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration container for Habit Tracker.

    DESIGN: Frozen dataclass ensures configuration immutability at runtime.
    All values are class-level constants - no instance creation needed.

    STORAGE STRUCTURE:
        .habit_tracker/
        ├── habits.json        # List: habit records
        ├── habit_logs.json    # List: per-habit, per-day log records
        └── preferences.json   # Dict: user_id -> preference record
    """

    # =========================================================================
    # STORAGE CONFIGURATION
    # =========================================================================
    STORAGE_DIR: ClassVar[str] = ".habit_tracker"
    HABITS_FILE: ClassVar[str] = "habits.json"
    HABIT_LOGS_FILE: ClassVar[str] = "habit_logs.json"
    PREFERENCES_FILE: ClassVar[str] = "preferences.json"

    # =========================================================================
    # HABIT CONFIGURATION
    # =========================================================================
    DATE_FORMAT: ClassVar[str] = "%Y-%m-%d"
    """Wire format for calendar days (yyyy-MM-dd). Comparisons are string-exact."""

    TRACKING_TYPES: ClassVar[frozenset[str]] = frozenset({"daily", "multiple"})

    TARGET_PER_DAY_MIN: ClassVar[int] = 1
    TARGET_PER_DAY_MAX: ClassVar[int] = 10
    """Bounds of the per-day target slider for `multiple` habits."""

    DEFAULT_COLOR: ClassVar[str] = "#2196f3"

    COLOR_OPTIONS: ClassVar[tuple[tuple[str, str], ...]] = (
        ("#2196f3", "Blue"),
        ("#4caf50", "Green"),
        ("#f44336", "Red"),
        ("#ff9800", "Orange"),
        ("#9c27b0", "Purple"),
        ("#795548", "Brown"),
        ("#607d8b", "Gray"),
        ("#e91e63", "Pink"),
    )

    # =========================================================================
    # CALENDAR CONFIGURATION
    # =========================================================================
    MONTH_LABELS: ClassVar[tuple[str, ...]] = (
        "Jan",
        "Feb",
        "Mar",
        "Apr",
        "May",
        "Jun",
        "Jul",
        "Aug",
        "Sep",
        "Oct",
        "Nov",
        "Dec",
    )

    WEEKDAY_LABELS: ClassVar[tuple[str, ...]] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

    COMPLETION_COLORS: ClassVar[dict[str, str]] = {
        "neutral": "#eee",
        "low": "#ffcdd2",
        "medium-low": "#ffecb3",
        "medium-high": "#c8e6c9",
        "high": "#81c784",
    }
    """
    Year heat-map palette keyed by completion tier.
    Thresholds: 0 neutral, (0,25) low, [25,50) medium-low, [50,75) medium-high, >=75 high.
    """

    # =========================================================================
    # PREFERENCES
    # =========================================================================
    THEME_MODES: ClassVar[frozenset[str]] = frozenset({"light", "dark"})

    TEXT_SIZES: ClassVar[dict[str, float]] = {
        "small": 0.9,
        "medium": 1.0,
        "large": 1.15,
        "extraLarge": 1.3,
    }

    DEFAULT_THEME_MODE: ClassVar[str] = "light"
    DEFAULT_TEXT_SIZE: ClassVar[str] = "medium"

    # =========================================================================
    # HTTP CLIENT
    # =========================================================================
    DEFAULT_API_URL: ClassVar[str] = "http://127.0.0.1:8000"
    API_TIMEOUT_SECONDS: ClassVar[float] = 10.0
    DEFAULT_USER_ID: ClassVar[str] = "local"

    # =========================================================================
    # ENVIRONMENT-BASED SETTINGS (runtime configurable)
    # =========================================================================
    _storage_dir_override: ClassVar[str | None] = None
    _api_url_override: ClassVar[str | None] = None

    @classmethod
    def get_storage_dir(cls) -> str:
        """
        Get the directory holding the JSON data files.

        Uses a priority system: test overrides first, then the
        HABIT_TRACKER_STORAGE_DIR environment variable, then STORAGE_DIR
        relative to the working directory.

        Business context: The REST backend and the CLI report must read the
        same files, so both resolve the directory through this method.

        Returns:
            Storage directory path.

        Example:
            >>> # With env var: HABIT_TRACKER_STORAGE_DIR=/var/lib/habits
            >>> Config.get_storage_dir()
            '/var/lib/habits'
        """
        if cls._storage_dir_override is not None:
            return cls._storage_dir_override
        return os.environ.get("HABIT_TRACKER_STORAGE_DIR", cls.STORAGE_DIR)

    @classmethod
    def get_api_url(cls) -> str:
        """
        Get the base URL of the REST API used by the HTTP client.

        Returns:
            Base URL without trailing slash, e.g. 'http://127.0.0.1:8000'.
        """
        if cls._api_url_override is not None:
            return cls._api_url_override
        return os.environ.get("HABIT_TRACKER_API_URL", cls.DEFAULT_API_URL).rstrip("/")

    @classmethod
    def get_default_user_id(cls) -> str:
        """Get the user id CLI commands act on when none is given."""
        return os.environ.get("HABIT_TRACKER_USER_ID", cls.DEFAULT_USER_ID)

    @classmethod
    def set_test_overrides(
        cls,
        storage_dir: str | None = None,
        api_url: str | None = None,
    ) -> None:
        """
        Set test overrides for environment-based settings.

        Allows tests to point storage and the HTTP client somewhere
        deterministic without touching environment variables. Must call
        reset_test_overrides() in test teardown to avoid affecting other tests.

        Args:
            storage_dir: Override for the storage directory. None to clear.
            api_url: Override for the API base URL. None to clear.

        Example:
            >>> Config.set_test_overrides(storage_dir="/tmp/habits")
            >>> Config.get_storage_dir()
            '/tmp/habits'
            >>> Config.reset_test_overrides()
        """
        cls._storage_dir_override = storage_dir
        cls._api_url_override = api_url

    @classmethod
    def reset_test_overrides(cls) -> None:
        """Reset all test overrides so settings come from the environment again."""
        cls._storage_dir_override = None
        cls._api_url_override = None

    @classmethod
    def is_valid_target(cls, target_per_day: int) -> bool:
        """
        Check a per-day target against the slider bounds.

        Args:
            target_per_day: Requested target for a `multiple` habit.

        Returns:
            True if TARGET_PER_DAY_MIN <= target_per_day <= TARGET_PER_DAY_MAX.

        Example:
            >>> Config.is_valid_target(3)
            True
            >>> Config.is_valid_target(0)
            False
        """
        return cls.TARGET_PER_DAY_MIN <= target_per_day <= cls.TARGET_PER_DAY_MAX
