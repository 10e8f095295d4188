"""Tests for tracker module."""

from __future__ import annotations

from datetime import date
from unittest.mock import MagicMock

import httpx
import pytest

from habit_tracker.calendar_view import CalendarState, ViewType
from habit_tracker.client import HabitApiClient, HabitApiError
from habit_tracker.models import Habit, HabitLog
from habit_tracker.presenters import MonthViewModel, WeekViewModel
from habit_tracker.statistics import CellTier
from habit_tracker.tracker import HabitTracker


@pytest.fixture
def client(water: Habit, reading: Habit, march_logs: list[HabitLog]) -> MagicMock:
    """Mock API client serving the sample habits and March logs."""
    mock = MagicMock(spec=HabitApiClient)
    mock.get_habits.return_value = [water, reading]
    mock.get_habit_logs.return_value = list(march_logs)
    return mock


@pytest.fixture
def tracker(client: MagicMock, monday: date) -> HabitTracker:
    """Loaded tracker whose clock says today is 2024-03-04."""
    tracker = HabitTracker(client, "u1", clock=lambda: monday)
    assert tracker.load() is True
    return tracker


class TestLoading:
    """Tests for load()."""

    def test_initial_state(self, client: MagicMock, monday: date) -> None:
        tracker = HabitTracker(client, "u1", clock=lambda: monday)
        assert tracker.state == CalendarState(ViewType.WEEK, monday)
        assert tracker.habits == []
        assert tracker.loading is False
        assert tracker.error is None

    def test_load_fills_cache(self, tracker: HabitTracker, client: MagicMock) -> None:
        assert [h.name for h in tracker.habits] == ["Water", "Read"]
        assert len(tracker.logs) == 4
        assert tracker.loading is False
        client.get_habits.assert_called_once_with("u1")

    def test_load_failure_keeps_cache(self, tracker: HabitTracker, client: MagicMock) -> None:
        """Verifies a failed reload sets the error and keeps cached data.

        Arrangement:
        Loaded tracker; logs endpoint now fails.

        Action:
        load() again.

        Assertion Strategy:
        Validates False, error text, loading reset and cache intact.
        """
        client.get_habit_logs.side_effect = HabitApiError("Request timed out")

        assert tracker.load() is False
        assert tracker.error == "Could not load habits: Request timed out"
        assert tracker.loading is False
        assert len(tracker.habits) == 2
        assert len(tracker.logs) == 4

    def test_source_only_serves_own_user(self, tracker: HabitTracker) -> None:
        assert len(tracker.load_habits("u1")) == 2
        assert tracker.load_habits("u2") == []
        assert tracker.load_habit_logs("u2") == []

    def test_source_returns_copies(self, tracker: HabitTracker) -> None:
        tracker.load_habits("u1").clear()
        assert len(tracker.habits) == 2


class TestToggle:
    """Tests for toggle()."""

    def test_replaces_cached_log(self, tracker: HabitTracker, client: MagicMock,
                                 water: Habit, monday: date) -> None:
        client.toggle_log.return_value = HabitLog(
            id="l1", habit_id=water.id, date="2024-03-04", completed=False, count=2
        )

        log = tracker.toggle(water.id, monday)

        assert log is not None
        client.toggle_log.assert_called_once_with(water.id, monday, "u1")
        assert tracker.get_count(water, monday) == 2
        assert len(tracker.logs) == 4

    def test_appends_new_log(self, tracker: HabitTracker, client: MagicMock,
                             reading: Habit) -> None:
        day = date(2024, 3, 7)
        client.toggle_log.return_value = HabitLog(
            id="l9", habit_id=reading.id, date="2024-03-07", completed=True, count=1
        )

        tracker.toggle(reading.id, day)

        assert tracker.is_completed(reading, day) is True
        assert len(tracker.logs) == 5

    def test_failure_leaves_cache(self, tracker: HabitTracker, client: MagicMock,
                                  water: Habit, monday: date) -> None:
        client.toggle_log.side_effect = HabitApiError("No habit with ID: h-water", 404)

        assert tracker.toggle(water.id, monday) is None
        assert tracker.error == "Could not update habit: No habit with ID: h-water"
        assert tracker.get_count(water, monday) == 1

    def test_malformed_confirmation(self, water: Habit, reading: Habit,
                                    march_logs: list[HabitLog], monday: date) -> None:
        """Verifies a 200 response with an empty body becomes an error message.

        Arrangement:
        Tracker over a real HabitApiClient whose transport serves the sample
        data and answers the toggle POST with {}.

        Action:
        toggle() the water habit.

        Assertion Strategy:
        Validates None, the error text, and an unchanged cache.
        """
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/habits":
                return httpx.Response(200, json=[water.to_dict(), reading.to_dict()])
            if request.url.path == "/api/habit-logs/all":
                return httpx.Response(200, json=[log.to_dict() for log in march_logs])
            return httpx.Response(200, json={})

        api = HabitApiClient("http://testserver", transport=httpx.MockTransport(handler))
        tracker = HabitTracker(api, "u1", clock=lambda: monday)
        assert tracker.load() is True

        assert tracker.toggle(water.id, monday) is None
        assert tracker.error is not None
        assert tracker.error.startswith("Could not update habit: Malformed habit log record")
        assert tracker.get_count(water, monday) == 1
        assert len(tracker.logs) == 4

    def test_replaces_log_of_same_day(self, tracker: HabitTracker, client: MagicMock,
                                      water: Habit, monday: date) -> None:
        client.toggle_log.return_value = HabitLog(
            id="fresh", habit_id=water.id, date="2024-03-04", completed=False, count=2
        )
        tracker.toggle(water.id, monday)
        assert tracker.get_count(water, monday) == 2
        assert len(tracker.logs) == 4

    def test_save_malformed_confirmation(self, tracker: HabitTracker) -> None:
        api = HabitApiClient(
            "http://testserver",
            transport=httpx.MockTransport(lambda request: httpx.Response(201, json={})),
        )
        tracker.client = api
        assert tracker.save_habit({"name": "Stretch", "tracking_type": "daily"}) is None
        assert tracker.error == "Could not save habit: Malformed habit record: 'id'"
        assert len(tracker.habits) == 2

    def test_dismiss_error(self, tracker: HabitTracker) -> None:
        tracker.error = "x"
        tracker.dismiss_error()
        assert tracker.error is None


class TestHabitEditing:
    """Tests for save_habit() and delete_habit()."""

    def test_invalid_form_never_sent(self, tracker: HabitTracker, client: MagicMock) -> None:
        """Verifies validation runs before any request.

        Arrangement:
        Form with an out-of-range target.

        Action:
        save_habit().

        Assertion Strategy:
        Validates None, the validation message, and no client call.
        """
        result = tracker.save_habit(
            {"name": "Water", "tracking_type": "multiple", "target_per_day": 20}
        )

        assert result is None
        assert tracker.error == "target_per_day must be between 1 and 10"
        client.create_habit.assert_not_called()

    def test_create_appends(self, tracker: HabitTracker, client: MagicMock) -> None:
        created = Habit(id="h-new", user_id="u1", name="Stretch")
        client.create_habit.return_value = created

        assert tracker.save_habit({"name": "Stretch", "tracking_type": "daily"}) == created
        assert tracker.habits[-1] == created

    def test_update_replaces(self, tracker: HabitTracker, client: MagicMock,
                             water: Habit) -> None:
        updated = Habit(id=water.id, user_id="u1", name="Hydrate")
        client.update_habit.return_value = updated
        fields = {"name": "Hydrate", "tracking_type": "daily"}

        tracker.save_habit(fields, habit_id=water.id)

        client.update_habit.assert_called_once_with(water.id, "u1", fields)
        assert tracker.habits[0].name == "Hydrate"
        assert len(tracker.habits) == 2

    def test_save_failure(self, tracker: HabitTracker, client: MagicMock) -> None:
        client.create_habit.side_effect = HabitApiError("HTTP 500: boom", 500)
        assert tracker.save_habit({"name": "Stretch"}) is None
        assert tracker.error == "Could not save habit: HTTP 500: boom"

    def test_delete_cascades_in_cache(self, tracker: HabitTracker, water: Habit) -> None:
        assert tracker.delete_habit(water.id) is True
        assert [h.name for h in tracker.habits] == ["Read"]
        assert {log.habit_id for log in tracker.logs} == {"h-read"}

    def test_delete_failure(self, tracker: HabitTracker, client: MagicMock,
                            water: Habit) -> None:
        client.delete_habit.side_effect = HabitApiError("Habit not found", 404)
        assert tracker.delete_habit(water.id) is False
        assert tracker.error == "Could not delete habit: Habit not found"
        assert len(tracker.habits) == 2


class TestNotImplementedActions:
    """Tests for the decrement and note actions."""

    def test_decrement(self, tracker: HabitTracker, client: MagicMock, water: Habit,
                       monday: date) -> None:
        tracker.decrement(water.id, monday)
        assert tracker.error == "Decrementing a habit count is not implemented yet"
        assert tracker.get_count(water, monday) == 1
        client.toggle_log.assert_not_called()

    def test_save_note(self, tracker: HabitTracker, water: Habit, monday: date) -> None:
        tracker.save_note(water.id, monday, "after lunch")
        assert tracker.error == "Saving notes is not implemented yet"


class TestNavigation:
    """Tests for calendar navigation and the rendered view."""

    def test_next_previous(self, tracker: HabitTracker) -> None:
        tracker.next()
        assert tracker.state.current_date == date(2024, 3, 11)
        tracker.previous()
        tracker.previous()
        assert tracker.state.current_date == date(2024, 2, 26)

    def test_go_today(self, tracker: HabitTracker, monday: date) -> None:
        tracker.set_view("year")
        tracker.next()
        tracker.go_today()
        assert tracker.state == CalendarState(ViewType.YEAR, monday)

    def test_select_month(self, tracker: HabitTracker) -> None:
        tracker.set_view(ViewType.YEAR)
        tracker.select_month(0)
        assert tracker.state == CalendarState(ViewType.MONTH, date(2024, 1, 1))

    def test_current_view_week(self, tracker: HabitTracker) -> None:
        view = tracker.current_view()
        assert isinstance(view, WeekViewModel)
        assert view.rows[0].cells[1].tier is CellTier.SUCCESS
        assert view.rows[0].cells[0].is_today is True

    def test_current_view_month(self, tracker: HabitTracker) -> None:
        tracker.set_view("month")
        view = tracker.current_view()
        assert isinstance(view, MonthViewModel)
        assert view.title == "March 2024"
