"""Version information for habit-tracker."""

__version__ = "1.2.0"
__version_date__ = "2025-03-18"

__title__ = "habit_tracker"
__description__ = "Personal habit tracker with week, month and year calendar views"

__author__ = "Habit Tracker Contributors"

__license__ = "MIT"
__copyright__ = "Copyright 2025 Habit Tracker Contributors"

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
]
