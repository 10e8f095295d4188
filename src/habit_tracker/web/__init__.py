"""
Web module for Habit Tracker.

PURPOSE: FastAPI backend serving the REST API and the htmx tracker page.
AI CONTEXT: The REST API is the single persistence boundary; the HTTP
client and the CLI both go through it or through the same StorageManager.

FEATURES:
- JSON REST API for habits, habit logs, yearly statistics and preferences
- Server-rendered week/month/year calendar with htmx partial updates
- Server-side year heat-map rendering (matplotlib, optional)

USAGE:
    # Via CLI
    habit-tracker serve

    # Programmatically
    from habit_tracker.web import create_app
    app = create_app()
    # Run with uvicorn
"""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
