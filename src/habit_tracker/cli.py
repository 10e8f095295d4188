"""
CLI entry point for Habit Tracker.

PURPOSE: Command-line interface for running the server and viewing habits.
AI CONTEXT: Main entry points for package execution.

USAGE:
    # Run the server (default)
    python -m habit_tracker

    # Or via CLI command (after install)
    habit-tracker

    # Run with subcommands
    habit-tracker serve                    # Start the REST API + tracker page
    habit-tracker report --date 2024-01-01 # Print yearly completion report
    habit-tracker show --view month        # Print a calendar view
    habit-tracker log <habit-id>           # Log a habit for today

DATA SOURCE:
report, show and log read the local data directory by default. With
--api-url they go through the REST API instead.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from functools import lru_cache
from typing import TYPE_CHECKING

from .calendar_view import CalendarState, ViewType
from .config import Config
from .models import parse_date

if TYPE_CHECKING:
    from .presenters import HabitSource
    from .statistics import StatisticsEngine

# Constants
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


@lru_cache(maxsize=1)
def _get_logger() -> logging.Logger:
    """Get module logger (cached for thread safety)."""
    logging.basicConfig(level=logging.INFO)
    return logging.getLogger(__name__)


def _log(message: str, *, emoji: str = "") -> None:
    """Log message with optional emoji prefix for CLI output.

    Args:
        message: The message to log.
        emoji: Optional emoji prefix for visual CLI feedback.
    """
    prefix = f"{emoji} " if emoji else ""
    _get_logger().info(f"{prefix}{message}")


def _date_arg(value: str) -> date:
    """argparse type for yyyy-MM-dd dates."""
    try:
        return parse_date(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected yyyy-MM-dd") from e


def _remote_source(user_id: str, api_url: str) -> HabitSource:
    """
    Load a user's habits and logs through the REST API.

    Returns:
        A loaded HabitTracker, usable as a HabitSource after the client
        is closed.

    Raises:
        HabitApiError: If loading failed.
    """
    from .client import HabitApiClient, HabitApiError
    from .tracker import HabitTracker

    with HabitApiClient(api_url) as client:
        tracker = HabitTracker(client, user_id)
        if not tracker.load():
            raise HabitApiError(tracker.error or "Could not load habits")
    return tracker


def run_serve(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, reload: bool = False) -> None:
    """
    Launch the Habit Tracker server.

    Starts a FastAPI server hosting the REST API and the tracker page.

    Args:
        host: Network interface to bind to. Default '127.0.0.1' for
            local-only access. Use '0.0.0.0' for network access.
        port: TCP port for the HTTP server. Default 8000.
        reload: Restart on code changes (development only).

    Returns:
        None. Blocks until server shutdown (Ctrl+C).

    Raises:
        OSError: If port is already in use.

    Example:
        >>> # From command line:
        >>> # habit-tracker serve --port 3000
        >>> run_serve(port=3000)
        🚀 Starting Habit Tracker at http://127.0.0.1:3000
    """
    from .web import run_server as start_web

    _log(f"Starting Habit Tracker at http://{host}:{port}", emoji="🚀")
    _log(f"Data directory: {Config.get_storage_dir()}")
    _log("Press Ctrl+C to stop")
    start_web(host=host, port=port, reload=reload)


def run_report(
    user_id: str,
    reference_date: date,
    source: HabitSource | None = None,
    engine: StatisticsEngine | None = None,
) -> None:
    """
    Print the yearly completion report to stdout.

    Business context: A quick terminal summary of how consistently each
    habit was kept, month by month, without opening a browser.

    Args:
        user_id: Owner of the habits.
        reference_date: Any date in the year to report.
        source: Optional HabitSource. Defaults to local StorageManager.
        engine: Optional StatisticsEngine for testability.

    Example:
        >>> run_report("local", date(2024, 1, 1))
        ==================================================
        HABIT TRACKER - 2024 COMPLETION REPORT
        ...
    """
    from .statistics import StatisticsEngine as StatsEngine
    from .storage import StorageManager as StorageMgr

    source = source or StorageMgr()
    engine = engine or StatsEngine()

    report = engine.generate_yearly_report(
        source.load_habits(user_id), source.load_habit_logs(user_id), reference_date
    )
    # Note: Using print() intentionally for stdout piping support
    print(report)


def run_show(
    user_id: str,
    state: CalendarState,
    source: HabitSource | None = None,
    engine: StatisticsEngine | None = None,
) -> None:
    """
    Print a week, month or year calendar to stdout.

    Args:
        user_id: Owner of the habits.
        state: View type and anchor date to render.
        source: Optional HabitSource. Defaults to local StorageManager.
        engine: Optional StatisticsEngine for testability.
    """
    from .presenters import HabitTrackerPresenter, render_text
    from .statistics import StatisticsEngine as StatsEngine
    from .storage import StorageManager as StorageMgr

    presenter = HabitTrackerPresenter(source or StorageMgr(), engine or StatsEngine())
    print(render_text(presenter.get_view(state, user_id)))


def run_log(habit_id: str, day: date, user_id: str, api_url: str | None = None) -> int:
    """
    Log one completion of a habit on a day.

    Args:
        habit_id: Habit to log.
        day: Calendar day to log.
        user_id: Owner of the habit.
        api_url: When given, log through the REST API instead of local files.

    Returns:
        0 on success, 1 on failure (the reason is printed to stderr).
    """
    from .models import format_date

    if api_url:
        from .client import HabitApiClient, HabitApiError

        try:
            with HabitApiClient(api_url) as client:
                log = client.toggle_log(habit_id, day, user_id)
        except HabitApiError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        count, completed = log.count, log.completed
    else:
        from .habit_service import HabitService

        result = HabitService().toggle_log(habit_id, format_date(day), user_id)
        if not result.success:
            print(f"Error: {result.error or result.message}", file=sys.stderr)
            return 1
        data = (result.data or {})["log"]
        count, completed = data["count"], data["completed"]

    status = "completed" if completed else "not completed"
    print(f"Logged {habit_id} on {format_date(day)}: count {count}, {status}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point for Habit Tracker.

    Parses command-line arguments and dispatches to the appropriate
    subcommand handler. If no subcommand is specified, defaults to
    running the server.

    Subcommands:
    - serve [--host HOST] [--port PORT] [--reload]: Run the server
    - report [--date DATE] [--user-id ID] [--api-url URL]: Yearly report
    - show [--view VIEW] [--date DATE] [--user-id ID] [--api-url URL]: Calendar
    - log HABIT_ID [--date DATE] [--user-id ID] [--api-url URL]: Log a habit

    Args:
        argv: Argument list. Defaults to sys.argv[1:].

    Returns:
        Exit code 0 for success, 1 when a command failed.

    Raises:
        SystemExit: On --help or argument parsing errors.

    Example:
        >>> # From command line:
        >>> # habit-tracker show --view year --date 2024-06-01
        >>> sys.exit(main())  # Typical usage pattern
    """
    from .__version__ import __version__

    parser = argparse.ArgumentParser(
        prog="habit-tracker",
        description="Habit Tracker - track daily habits in week, month and year views",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API and tracker page")
    serve_parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Bind address (default: {DEFAULT_HOST})",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=DEFAULT_PORT,
        help=f"Port number (default: {DEFAULT_PORT})",
    )
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Data commands share user/date/source options
    data_options = argparse.ArgumentParser(add_help=False)
    data_options.add_argument(
        "--user-id",
        default=None,
        help="User whose habits to use (default: $HABIT_TRACKER_USER_ID or 'local')",
    )
    data_options.add_argument(
        "--date",
        type=_date_arg,
        default=None,
        help="Anchor date yyyy-MM-dd (default: today)",
    )
    data_options.add_argument(
        "--api-url",
        default=None,
        help="Use the REST API at this URL instead of local files",
    )

    subparsers.add_parser(
        "report",
        parents=[data_options],
        help="Print yearly completion report to stdout",
    )

    show_parser = subparsers.add_parser(
        "show",
        parents=[data_options],
        help="Print a week, month or year calendar",
    )
    show_parser.add_argument(
        "--view",
        choices=[v.value for v in ViewType],
        default=ViewType.WEEK.value,
        help="Calendar granularity (default: week)",
    )

    log_parser = subparsers.add_parser(
        "log",
        parents=[data_options],
        help="Log one completion of a habit",
    )
    log_parser.add_argument("habit_id", help="ID of the habit to log")

    args = parser.parse_args(argv)

    if args.command in ("report", "show", "log"):
        user_id = args.user_id or Config.get_default_user_id()
        day = args.date or date.today()

        if args.command == "log":
            return run_log(args.habit_id, day, user_id, api_url=args.api_url)

        source = None
        if args.api_url:
            from .client import HabitApiError

            try:
                source = _remote_source(user_id, args.api_url)
            except HabitApiError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1

        if args.command == "report":
            run_report(user_id, day, source=source)
        else:
            run_show(user_id, CalendarState(ViewType(args.view), day), source=source)
    elif args.command == "serve":
        run_serve(host=args.host, port=args.port, reload=args.reload)
    else:
        # Default: run server with default settings
        run_serve()

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
