"""
Habit Tracker.

PURPOSE: Log daily habits and review them as week, month and year calendars.

PACKAGE STRUCTURE:
- models.py: Data models (Habit, HabitLog, MonthlyCompletionRate)
- statistics.py: Completion predicate, yearly aggregation, color tiers
- calendar_view.py: View selector (week/month/year date ranges, navigation)
- presenters.py: View models for the three calendar views and the heat-map
- storage.py: JSON file persistence behind the REST API
- habit_service.py: Habit lifecycle and log toggling business rules
- preferences.py: Per-user theme preferences
- client.py: HTTP client for the REST API
- tracker.py: Client-side tracker state (cache, errors, navigation)
- web/: FastAPI app serving the REST API and the HTML tracker
- config.py: Configuration constants

QUICK START:
    # Serve REST API + tracker page
    python -m habit_tracker serve

    # Print a yearly completion report
    python -m habit_tracker report --user-id me
"""

from habit_tracker.__version__ import (
    __author__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __version__,
    __version_date__,
)

__all__ = [
    "__version__",
    "__version_date__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "__copyright__",
]
