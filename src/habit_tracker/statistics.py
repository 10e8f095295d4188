"""
Statistics engine for Habit Tracker.

PURPOSE: Completion lookups, yearly aggregation and color classification.
AI CONTEXT: Pure data processing - no rendering, no I/O.

OPERATIONS:
1. Completion predicate: is_completed / get_count / get_note for (habit, day)
2. Aggregation: per-habit, per-month completion rates for a reference year
3. Classification: completion color/tier for the year heat-map, fill tier
   for week and month cells
4. Reporting: plain-text yearly report for the CLI

LOOKUP MODEL:
Logs are held as a flat list. The predicate scans it linearly and uses the
first (habit_id, date) match. The aggregator indexes completed
(habit_id, date) pairs once per call so a full year stays linear in the
number of logs.

USAGE:
    engine = StatisticsEngine()
    engine.is_completed(habit, date(2024, 3, 5), logs)
    rates = engine.calculate_yearly_completion_rates(habits, logs, date(2024, 1, 1))
"""

from __future__ import annotations

import calendar
from collections.abc import Sequence
from datetime import date
from enum import StrEnum

from .config import Config
from .models import (
    Habit,
    HabitId,
    HabitLog,
    MonthlyCompletionRate,
    TrackingType,
    format_date,
    same_id,
)

__all__ = [
    "CellTier",
    "CompletionTier",
    "StatisticsEngine",
]


class CompletionTier(StrEnum):
    """Year heat-map bucket for a monthly completion percentage."""

    NEUTRAL = "neutral"
    LOW = "low"
    MEDIUM_LOW = "medium-low"
    MEDIUM_HIGH = "medium-high"
    HIGH = "high"


class CellTier(StrEnum):
    """Fill state of a single day cell in the week and month views."""

    EMPTY = "empty"
    PARTIAL = "partial"
    SUCCESS = "success"


class StatisticsEngine:
    """
    Calculator for habit completion state and completion rates.

    DESIGN:
    - Stateless: Each method operates on provided data
    - Pure: No side effects, only data transformation
    - Deterministic: Same inputs always give the same output
    """

    # =========================================================================
    # COMPLETION PREDICATE
    # =========================================================================

    def find_log(
        self,
        habit: Habit,
        day: date,
        logs: Sequence[HabitLog],
    ) -> HabitLog | None:
        """
        Find the log recorded for a habit on a calendar day.

        Formats the day as yyyy-MM-dd and returns the first log in list
        order whose date matches exactly and whose habit_id names the same
        habit (1 and "1" are the same id).

        Business context: Duplicate (habit, date) logs are not prevented by
        every writer, so all lookups agree on "first match wins".

        Args:
            habit: Habit whose log is wanted.
            day: Calendar day to look up.
            logs: Flat list of logs for the user.

        Returns:
            The matching HabitLog, or None when the day has no log.

        Example:
            >>> engine.find_log(habit, date(2024, 3, 5), logs).count
            3
        """
        day_str = format_date(day)
        for log in logs:
            if same_id(log.habit_id, habit.id) and log.date == day_str:
                return log
        return None

    def is_completed(self, habit: Habit, day: date, logs: Sequence[HabitLog]) -> bool:
        """
        Check whether a habit was completed on a day.

        Args:
            habit: Habit to check.
            day: Calendar day to check.
            logs: Flat list of logs for the user.

        Returns:
            True iff a log exists for (habit.id, day) and it is completed.
            False for an empty log list.

        Example:
            >>> engine.is_completed(habit, date(2024, 3, 5), [])
            False
        """
        log = self.find_log(habit, day, logs)
        return log is not None and log.completed

    def get_count(self, habit: Habit, day: date, logs: Sequence[HabitLog]) -> int:
        """
        Get how many times a habit was logged on a day.

        Args:
            habit: Habit to check.
            day: Calendar day to check.
            logs: Flat list of logs for the user.

        Returns:
            The matching log's count, or 0 if no log exists.

        Example:
            >>> engine.get_count(water, date(2024, 3, 5), logs)
            3
        """
        log = self.find_log(habit, day, logs)
        return log.count if log is not None else 0

    def get_note(self, habit: Habit, day: date, logs: Sequence[HabitLog]) -> str:
        """Get the note attached to a habit's log on a day, or "" if none."""
        log = self.find_log(habit, day, logs)
        return log.notes if log is not None else ""

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    def calculate_yearly_completion_rates(
        self,
        habits: Sequence[Habit],
        logs: Sequence[HabitLog],
        reference_date: date,
    ) -> dict[HabitId, list[MonthlyCompletionRate]]:
        """
        Calculate per-month completion rates of every habit for one year.

        Only the year of reference_date is used. For each habit and each of
        the 12 months, every day of the month counts as completed when a
        completed log exists for exactly that day.

        Business context: Feeds the year heat-map, where each cell shows how
        consistently a habit was kept during that month.

        Args:
            habits: Habits to aggregate.
            logs: Flat list of logs (may contain other users' or years' logs).
            reference_date: Any date in the year to aggregate.

        Returns:
            Dict mapping habit id to a list of 12 MonthlyCompletionRate
            entries, January first. Habits without logs get 12 zero entries.
            Invariant: 0 <= completed_days <= days_in_month.

        Example:
            >>> rates = engine.calculate_yearly_completion_rates([habit], logs, date(2024, 6, 1))
            >>> rates[habit.id][0]
            MonthlyCompletionRate(month='Jan', days_in_month=31, completed_days=10,
                                  percentage=32.25806451612903)
        """
        year = reference_date.year
        completed = {(str(log.habit_id), log.date) for log in logs if log.completed}

        rates: dict[HabitId, list[MonthlyCompletionRate]] = {}
        for habit in habits:
            key = str(habit.id)
            months = []
            for index, label in enumerate(Config.MONTH_LABELS):
                month = index + 1
                days_in_month = calendar.monthrange(year, month)[1]
                completed_days = sum(
                    1
                    for day in range(1, days_in_month + 1)
                    if (key, format_date(date(year, month, day))) in completed
                )
                percentage = (completed_days / days_in_month) * 100 if days_in_month > 0 else 0
                months.append(
                    MonthlyCompletionRate(
                        month=label,
                        days_in_month=days_in_month,
                        completed_days=completed_days,
                        percentage=percentage,
                    )
                )
            rates[habit.id] = months
        return rates

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    def get_completion_tier(self, percentage: float) -> CompletionTier:
        """
        Bucket a completion percentage for the year heat-map.

        Thresholds: exactly 0 -> NEUTRAL, below 25 -> LOW, below 50 ->
        MEDIUM_LOW, below 75 -> MEDIUM_HIGH, otherwise HIGH.

        Args:
            percentage: Monthly completion percentage.

        Returns:
            CompletionTier for the percentage.

        Example:
            >>> engine.get_completion_tier(32.26)
            <CompletionTier.MEDIUM_LOW: 'medium-low'>
        """
        if percentage == 0:
            return CompletionTier.NEUTRAL
        if percentage < 25:
            return CompletionTier.LOW
        if percentage < 50:
            return CompletionTier.MEDIUM_LOW
        if percentage < 75:
            return CompletionTier.MEDIUM_HIGH
        return CompletionTier.HIGH

    def get_completion_color(self, percentage: float) -> str:
        """
        Get the heat-map color for a completion percentage.

        Args:
            percentage: Monthly completion percentage.

        Returns:
            Hex color from Config.COMPLETION_COLORS, e.g. '#ffecb3' for 32.26.
        """
        return Config.COMPLETION_COLORS[self.get_completion_tier(percentage).value]

    def get_cell_tier(self, habit: Habit, count: int, completed: bool) -> CellTier:
        """
        Get the fill tier of a day cell.

        MULTIPLE habits fill in three steps against their target; DAILY
        habits look binary and follow the completed flag.

        Args:
            habit: Habit the cell belongs to.
            count: Count logged for the day (0 when no log).
            completed: Completed flag for the day (False when no log).

        Returns:
            EMPTY, PARTIAL or SUCCESS.

        Raises:
            ValueError: If the habit has an unknown tracking type.

        Example:
            >>> engine.get_cell_tier(water, 3, True)   # target 3
            <CellTier.SUCCESS: 'success'>
            >>> engine.get_cell_tier(water, 1, False)
            <CellTier.PARTIAL: 'partial'>
        """
        if habit.tracking_type is TrackingType.MULTIPLE:
            if count <= 0:
                return CellTier.EMPTY
            if count < habit.target:
                return CellTier.PARTIAL
            return CellTier.SUCCESS
        if habit.tracking_type is TrackingType.DAILY:
            return CellTier.SUCCESS if completed else CellTier.EMPTY
        raise ValueError(f"Unknown tracking type: {habit.tracking_type!r}")

    # =========================================================================
    # REPORTING
    # =========================================================================

    def generate_yearly_report(
        self,
        habits: Sequence[Habit],
        logs: Sequence[HabitLog],
        reference_date: date,
    ) -> str:
        """
        Generate a text table of monthly completion rates for one year.

        One line per habit with the rounded percentage of every month and
        the year total, suitable for terminal output.

        Args:
            habits: Habits to report on.
            logs: Flat list of logs.
            reference_date: Any date in the year to report.

        Returns:
            Multi-line report. Contains a hint line when there are no habits.

        Example:
            >>> print(engine.generate_yearly_report([water], logs, date(2024, 1, 1)))
            ==================================================
            HABIT TRACKER - 2024 COMPLETION REPORT
            ...
        """
        rates = self.calculate_yearly_completion_rates(habits, logs, reference_date)
        name_width = max([len(h.name) for h in habits] + [5])

        lines = [
            "=" * 50,
            f"HABIT TRACKER - {reference_date.year} COMPLETION REPORT",
            "=" * 50,
            "",
        ]

        if not habits:
            lines.extend(["  No habits yet. Add one to start tracking.", "", "=" * 50])
            return "\n".join(lines)

        header = "Habit".ljust(name_width) + "".join(f"{m:>5}" for m in Config.MONTH_LABELS)
        lines.append(header + "   Year")
        for habit in habits:
            months = rates[habit.id]
            cells = "".join(f"{m.rounded_percentage:>4}%" for m in months)
            total_days = sum(m.days_in_month for m in months)
            total_completed = sum(m.completed_days for m in months)
            year_pct = (total_completed / total_days) * 100 if total_days > 0 else 0
            lines.append(f"{habit.name.ljust(name_width)}{cells}  {year_pct:>4.0f}%")

        lines.extend(["", "=" * 50])
        return "\n".join(lines)
