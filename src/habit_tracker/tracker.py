"""
Client-side habit tracker controller.

PURPOSE: Hold the cached habits/logs and the calendar state of one user,
and apply user actions through the REST client.
AI CONTEXT: The cache is only changed by confirmed server responses; a
failed call sets `error` and leaves everything else as it was.

STATE:
- habits, logs: read-through cache filled by load()
- state: CalendarState (view type + anchor)
- loading: True while load() is fetching
- error: message for the user, cleared by dismiss_error()

USAGE:
    with HabitApiClient() as client:
        tracker = HabitTracker(client, "u1")
        tracker.load()
        tracker.toggle(tracker.habits[0].id, date.today())
        print(render_text(tracker.current_view()))
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from .calendar_view import CalendarState, ViewType
from .client import HabitApiClient, HabitApiError
from .habit_service import validate_habit_fields
from .models import Habit, HabitId, HabitLog, same_id
from .presenters import CalendarViewModel, HabitTrackerPresenter
from .statistics import StatisticsEngine

__all__ = ["HabitTracker", "NOT_IMPLEMENTED_MESSAGE"]

logger = logging.getLogger(__name__)

NOT_IMPLEMENTED_MESSAGE = "{} is not implemented yet"


class HabitTracker:
    """
    Controller behind the tracker screen.

    Implements HabitSource over its cache so HabitTrackerPresenter can
    render the current view without another request.
    """

    def __init__(
        self,
        client: HabitApiClient,
        user_id: str,
        statistics: StatisticsEngine | None = None,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.user_id = user_id
        self.statistics = statistics or StatisticsEngine()
        self.clock = clock

        self.state = CalendarState(ViewType.WEEK, clock())
        self.habits: list[Habit] = []
        self.logs: list[HabitLog] = []
        self.loading = False
        self.error: str | None = None

    # =========================================================================
    # HABIT SOURCE
    # =========================================================================

    def load_habits(self, user_id: str) -> list[Habit]:
        """Cached habits; the cache only ever holds this tracker's user."""
        return list(self.habits) if user_id == self.user_id else []

    def load_habit_logs(self, user_id: str) -> list[HabitLog]:
        return list(self.logs) if user_id == self.user_id else []

    # =========================================================================
    # LOADING
    # =========================================================================

    def load(self) -> bool:
        """
        Fill the cache with the user's habits and logs.

        Returns:
            True on success. On failure the previous cache is kept and
            `error` is set.
        """
        self.loading = True
        try:
            habits = self.client.get_habits(self.user_id)
            logs = self.client.get_habit_logs(self.user_id)
        except HabitApiError as e:
            self.error = f"Could not load habits: {e}"
            return False
        finally:
            self.loading = False

        self.habits = habits
        self.logs = logs
        logger.info(f"Loaded {len(habits)} habit(s) and {len(logs)} log(s)")
        return True

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def toggle(self, habit_id: HabitId, day: date) -> HabitLog | None:
        """
        Log one more completion of a habit on a day.

        The returned log replaces the cached log with the same id or for
        the same (habit, date), or is appended when it is new.

        Returns:
            The confirmed log, or None on failure (`error` is set).
        """
        try:
            log = self.client.toggle_log(habit_id, day, self.user_id)
        except HabitApiError as e:
            self.error = f"Could not update habit: {e}"
            return None

        for index, cached in enumerate(self.logs):
            if cached.id == log.id or (
                same_id(cached.habit_id, log.habit_id) and cached.date == log.date
            ):
                self.logs[index] = log
                break
        else:
            self.logs.append(log)
        return log

    def save_habit(self, fields: dict[str, Any], habit_id: HabitId | None = None) -> Habit | None:
        """
        Create a habit, or update one when habit_id is given.

        Fields are validated first; an invalid form never reaches the server.

        Args:
            fields: name, description, color, tracking_type, target_per_day.
            habit_id: Habit to update, or None to create.

        Returns:
            The saved habit, or None when validation or the request failed
            (`error` is set).

        Example:
            >>> tracker.save_habit({"name": "", "tracking_type": "daily"})
            >>> tracker.error
            'Habit name is required'
        """
        problem = validate_habit_fields(
            fields.get("name"),
            fields.get("tracking_type", "daily"),
            fields.get("target_per_day", 1),
        )
        if problem:
            self.error = problem
            return None

        try:
            if habit_id is None:
                habit = self.client.create_habit(self.user_id, fields)
            else:
                habit = self.client.update_habit(habit_id, self.user_id, fields)
        except HabitApiError as e:
            self.error = f"Could not save habit: {e}"
            return None

        for index, cached in enumerate(self.habits):
            if same_id(cached.id, habit.id):
                self.habits[index] = habit
                break
        else:
            self.habits.append(habit)
        return habit

    def delete_habit(self, habit_id: HabitId) -> bool:
        """
        Delete a habit and drop it and its logs from the cache.

        Returns:
            True on success, False on failure (`error` is set).
        """
        try:
            self.client.delete_habit(habit_id, self.user_id)
        except HabitApiError as e:
            self.error = f"Could not delete habit: {e}"
            return False

        self.habits = [h for h in self.habits if not same_id(h.id, habit_id)]
        self.logs = [log for log in self.logs if not same_id(log.habit_id, habit_id)]
        return True

    def decrement(self, habit_id: HabitId, day: date) -> None:
        """Decrementing is not available; sets a not-implemented message."""
        self.error = NOT_IMPLEMENTED_MESSAGE.format("Decrementing a habit count")

    def save_note(self, habit_id: HabitId, day: date, notes: str) -> None:
        """Saving notes is not available; sets a not-implemented message."""
        self.error = NOT_IMPLEMENTED_MESSAGE.format("Saving notes")

    def dismiss_error(self) -> None:
        self.error = None

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def previous(self) -> None:
        self.state = self.state.previous()

    def next(self) -> None:
        self.state = self.state.next()

    def go_today(self) -> None:
        self.state = self.state.today(self.clock)

    def set_view(self, view_type: ViewType | str) -> None:
        """Switch between week, month and year views."""
        self.state = self.state.with_view(view_type)

    def select_month(self, month_index: int) -> None:
        """Drill down from a year-view cell into that month."""
        self.state = self.state.select_month(month_index)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def is_completed(self, habit: Habit, day: date) -> bool:
        return self.statistics.is_completed(habit, day, self.logs)

    def get_count(self, habit: Habit, day: date) -> int:
        return self.statistics.get_count(habit, day, self.logs)

    def current_view(self) -> CalendarViewModel:
        """Build the view model of the current calendar state from the cache."""
        presenter = HabitTrackerPresenter(self, self.statistics, clock=self.clock)
        return presenter.get_view(self.state, self.user_id)
