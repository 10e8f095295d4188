"""Tests for statistics module."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from habit_tracker.models import Habit, HabitLog
from habit_tracker.statistics import CellTier, CompletionTier, StatisticsEngine


def _completed_logs(habit_id: object, start: date, days: int) -> list[HabitLog]:
    return [
        HabitLog(
            id=f"l{i}",
            habit_id=habit_id,
            date=(start + timedelta(days=i)).isoformat(),
            completed=True,
            count=1,
        )
        for i in range(days)
    ]


class TestCompletionPredicate:
    """Tests for is_completed / get_count / get_note."""

    def test_no_logs(self, engine: StatisticsEngine, water: Habit) -> None:
        """Verifies a day without logs is not completed and has count 0.

        Arrangement:
        Empty log list.

        Action:
        is_completed() and get_count() for an arbitrary day.

        Assertion Strategy:
        Validates False and 0.
        """
        day = date(2024, 3, 6)
        assert engine.is_completed(water, day, []) is False
        assert engine.get_count(water, day, []) == 0
        assert engine.get_note(water, day, []) == ""

    def test_completed_log(self, engine: StatisticsEngine, reading: Habit) -> None:
        log = HabitLog(id="l1", habit_id=reading.id, date="2024-03-05", completed=True, count=1)
        assert engine.is_completed(reading, date(2024, 3, 5), [log]) is True

    def test_uncompleted_log(self, engine: StatisticsEngine, water: Habit,
                             march_logs: list[HabitLog]) -> None:
        assert engine.is_completed(water, date(2024, 3, 4), march_logs) is False
        assert engine.get_count(water, date(2024, 3, 4), march_logs) == 1

    def test_other_habit_log_ignored(self, engine: StatisticsEngine, water: Habit) -> None:
        log = HabitLog(id="l1", habit_id="other", date="2024-03-05", completed=True, count=5)
        assert engine.get_count(water, date(2024, 3, 5), [log]) == 0

    def test_first_match_wins(self, engine: StatisticsEngine, water: Habit) -> None:
        """Verifies duplicate (habit, date) logs resolve to the first in list order.

        Business context:
        Duplicates can exist in imported data; every lookup must agree on
        which one counts.

        Arrangement:
        Two logs for the same habit and day with different counts.

        Action:
        get_count() and is_completed().

        Assertion Strategy:
        Validates both reflect the first log only.
        """
        logs = [
            HabitLog(id="a", habit_id=water.id, date="2024-03-05", completed=False, count=1),
            HabitLog(id="b", habit_id=water.id, date="2024-03-05", completed=True, count=3),
        ]
        assert engine.get_count(water, date(2024, 3, 5), logs) == 1
        assert engine.is_completed(water, date(2024, 3, 5), logs) is False

    def test_get_note(self, engine: StatisticsEngine, reading: Habit) -> None:
        log = HabitLog(id="l1", habit_id=reading.id, date="2024-03-05", notes="chapter 3")
        assert engine.get_note(reading, date(2024, 3, 5), [log]) == "chapter 3"

    def test_integer_ids_scenario(self, engine: StatisticsEngine) -> None:
        """Water habit with id 1, three glasses logged on 2024-03-05.

        Arrangement:
        Habit and log records as returned by an API using integer ids.

        Action:
        get_count() for March 5 and March 6, and the cell tier of each.

        Assertion Strategy:
        Validates 3 / success for the logged day, 0 / empty otherwise.
        """
        habit = Habit.from_dict(
            {"id": 1, "name": "Water", "tracking_type": "multiple", "target_per_day": 3}
        )
        logs = [HabitLog.from_dict({"habit_id": 1, "date": "2024-03-05", "completed": True,
                                    "count": 3})]

        count = engine.get_count(habit, date(2024, 3, 5), logs)
        assert count == 3
        assert engine.get_cell_tier(habit, count, True) is CellTier.SUCCESS

        empty = engine.get_count(habit, date(2024, 3, 6), logs)
        assert empty == 0
        assert engine.get_cell_tier(habit, empty, False) is CellTier.EMPTY

    def test_mixed_id_types_match(self, engine: StatisticsEngine) -> None:
        """Verifies a log with habit_id "1" belongs to the habit with id 1.

        Arrangement:
        Habit record with an integer id and a log record whose habit_id is
        the same id as a string, as left behind by hand-edited JSON.

        Action:
        is_completed() and get_count() for the logged day.

        Assertion Strategy:
        Validates the log is found in both directions of the mismatch.
        """
        habit = Habit.from_dict({"id": 1, "name": "Read"})
        logs = [HabitLog.from_dict({"id": "l1", "habit_id": "1", "date": "2024-03-05",
                                    "completed": True, "count": 1})]

        assert engine.is_completed(habit, date(2024, 3, 5), logs) is True
        assert engine.get_count(habit, date(2024, 3, 5), logs) == 1

        text_habit = Habit.from_dict({"id": "7", "name": "Walk"})
        int_logs = [HabitLog(id="l2", habit_id=7, date="2024-03-05", completed=True)]
        assert engine.is_completed(text_habit, date(2024, 3, 5), int_logs) is True


class TestYearlyCompletionRates:
    """Tests for calculate_yearly_completion_rates."""

    def test_january_scenario(self, engine: StatisticsEngine, reading: Habit) -> None:
        """Verifies 10 completed days of 31 in January 2024.

        Arrangement:
        Completed logs for January 1..10.

        Action:
        Aggregate with a reference date in 2024.

        Assertion Strategy:
        Validates days, completed days, percentage and the color tier.
        """
        logs = _completed_logs(reading.id, date(2024, 1, 1), 10)
        rates = engine.calculate_yearly_completion_rates([reading], logs, date(2024, 6, 15))

        january = rates[reading.id][0]
        assert january.month == "Jan"
        assert january.days_in_month == 31
        assert january.completed_days == 10
        assert january.percentage == pytest.approx(32.26, abs=0.01)
        assert engine.get_completion_tier(january.percentage) is CompletionTier.MEDIUM_LOW
        assert engine.get_completion_color(january.percentage) == "#ffecb3"

    def test_twelve_months_per_habit(self, engine: StatisticsEngine, water: Habit,
                                     reading: Habit) -> None:
        rates = engine.calculate_yearly_completion_rates([water, reading], [], date(2024, 1, 1))
        assert set(rates) == {water.id, reading.id}
        assert [m.month for m in rates[water.id]][:3] == ["Jan", "Feb", "Mar"]
        assert len(rates[reading.id]) == 12
        assert all(m.completed_days == 0 and m.percentage == 0 for m in rates[water.id])

    def test_leap_february(self, engine: StatisticsEngine, reading: Habit) -> None:
        rates = engine.calculate_yearly_completion_rates([reading], [], date(2024, 1, 1))
        assert rates[reading.id][1].days_in_month == 29
        rates = engine.calculate_yearly_completion_rates([reading], [], date(2023, 1, 1))
        assert rates[reading.id][1].days_in_month == 28

    def test_only_reference_year_counts(self, engine: StatisticsEngine, reading: Habit) -> None:
        logs = _completed_logs(reading.id, date(2023, 12, 25), 14)
        rates = engine.calculate_yearly_completion_rates([reading], logs, date(2024, 3, 1))
        assert rates[reading.id][0].completed_days == 7
        assert rates[reading.id][11].completed_days == 0

    def test_uncompleted_logs_ignored(self, engine: StatisticsEngine, water: Habit,
                                      march_logs: list[HabitLog]) -> None:
        rates = engine.calculate_yearly_completion_rates([water], march_logs, date(2024, 3, 1))
        assert rates[water.id][2].completed_days == 1

    def test_duplicate_logs_count_once(self, engine: StatisticsEngine, reading: Habit) -> None:
        logs = _completed_logs(reading.id, date(2024, 4, 1), 1) * 3
        rates = engine.calculate_yearly_completion_rates([reading], logs, date(2024, 4, 1))
        assert rates[reading.id][3].completed_days == 1

    def test_mixed_id_types_aggregate(self, engine: StatisticsEngine) -> None:
        habit = Habit.from_dict({"id": 1, "name": "Read"})
        logs = _completed_logs("1", date(2024, 1, 1), 10)
        rates = engine.calculate_yearly_completion_rates([habit], logs, date(2024, 1, 1))
        assert rates[1][0].completed_days == 10

    def test_invariants_and_purity(self, engine: StatisticsEngine, reading: Habit) -> None:
        """Verifies bounds, exact percentage and repeatability.

        Arrangement:
        200 consecutive completed days from January 1.

        Action:
        Aggregate twice.

        Assertion Strategy:
        Validates 0 <= completed <= days, percentage formula, equal outputs.
        """
        logs = _completed_logs(reading.id, date(2024, 1, 1), 200)
        first = engine.calculate_yearly_completion_rates([reading], logs, date(2024, 1, 1))
        second = engine.calculate_yearly_completion_rates([reading], logs, date(2024, 1, 1))

        assert first == second
        for month in first[reading.id]:
            assert 0 <= month.completed_days <= month.days_in_month
            assert month.percentage == month.completed_days / month.days_in_month * 100


class TestClassification:
    """Tests for completion tiers, colors and cell tiers."""

    @pytest.mark.parametrize(
        ("percentage", "tier", "color"),
        [
            (0, CompletionTier.NEUTRAL, "#eee"),
            (0.1, CompletionTier.LOW, "#ffcdd2"),
            (24.99, CompletionTier.LOW, "#ffcdd2"),
            (25, CompletionTier.MEDIUM_LOW, "#ffecb3"),
            (49.99, CompletionTier.MEDIUM_LOW, "#ffecb3"),
            (50, CompletionTier.MEDIUM_HIGH, "#c8e6c9"),
            (74.99, CompletionTier.MEDIUM_HIGH, "#c8e6c9"),
            (75, CompletionTier.HIGH, "#81c784"),
            (100, CompletionTier.HIGH, "#81c784"),
        ],
    )
    def test_thresholds(self, engine: StatisticsEngine, percentage: float,
                        tier: CompletionTier, color: str) -> None:
        assert engine.get_completion_tier(percentage) is tier
        assert engine.get_completion_color(percentage) == color

    @pytest.mark.parametrize(
        ("count", "tier"),
        [(0, CellTier.EMPTY), (1, CellTier.PARTIAL), (2, CellTier.PARTIAL),
         (3, CellTier.SUCCESS), (5, CellTier.SUCCESS)],
    )
    def test_multiple_cell_tiers(self, engine: StatisticsEngine, water: Habit, count: int,
                                 tier: CellTier) -> None:
        assert engine.get_cell_tier(water, count, count >= 3) is tier

    def test_daily_cell_tiers_follow_completed(self, engine: StatisticsEngine,
                                               reading: Habit) -> None:
        """Verifies daily cells are binary on the completed flag, not the count.

        Arrangement:
        A daily habit toggled twice (count 2, completed False).

        Action:
        get_cell_tier() for both flag values.

        Assertion Strategy:
        Validates EMPTY when not completed, SUCCESS when completed.
        """
        assert engine.get_cell_tier(reading, 2, False) is CellTier.EMPTY
        assert engine.get_cell_tier(reading, 1, True) is CellTier.SUCCESS

    def test_unknown_tracking_type_rejected(self, engine: StatisticsEngine) -> None:
        habit = Habit(id="h", user_id="u1", name="Odd")
        habit.tracking_type = "weekly"  # type: ignore[assignment]
        with pytest.raises(ValueError):
            engine.get_cell_tier(habit, 1, True)


class TestYearlyReport:
    """Tests for generate_yearly_report."""

    def test_report_header_and_rows(self, engine: StatisticsEngine, reading: Habit) -> None:
        logs = _completed_logs(reading.id, date(2024, 1, 1), 10)
        report = engine.generate_yearly_report([reading], logs, date(2024, 1, 1))

        assert "HABIT TRACKER - 2024 COMPLETION REPORT" in report
        assert "Jan" in report and "Dec" in report
        row = next(line for line in report.splitlines() if line.startswith("Read"))
        assert "32%" in row

    def test_report_without_habits(self, engine: StatisticsEngine) -> None:
        report = engine.generate_yearly_report([], [], date(2024, 1, 1))
        assert "No habits yet" in report
