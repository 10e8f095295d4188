"""
Calendar view selection for Habit Tracker.

PURPOSE: Compute the concrete dates each calendar granularity renders.
AI CONTEXT: Pure state transitions - no I/O, no rendering.

GRANULARITIES:
- week: the Monday..Sunday week containing the anchor date
- month: Monday-start 7-day rows covering the anchor's whole month
- year: the first day of each month of the anchor's year

NAVIGATION:
previous/next shift the anchor by 7 days, 1 month or 1 year. Month and
year shifts clamp the day to the length of the target month, so
2024-01-31 + 1 month is 2024-02-29. today() resets the anchor.

USAGE:
    state = CalendarState(ViewType.WEEK, date(2024, 3, 4))
    state.next().date_range()[0]
    # date(2024, 3, 11)
"""

from __future__ import annotations

import calendar
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import StrEnum

__all__ = [
    "ViewType",
    "CalendarState",
    "start_of_week",
    "week_dates",
    "month_weeks",
    "year_months",
    "add_months",
    "add_years",
]


class ViewType(StrEnum):
    """The three calendar granularities. There are no sub-states."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


def start_of_week(day: date) -> date:
    """
    Get the Monday of the week containing a day.

    Args:
        day: Any calendar day.

    Returns:
        The Monday on or before day.

    Example:
        >>> start_of_week(date(2024, 3, 10))  # a Sunday
        datetime.date(2024, 3, 4)
    """
    return day - timedelta(days=day.weekday())


def week_dates(anchor: date) -> list[date]:
    """
    Get the 7 dates Monday..Sunday of the week containing the anchor.

    Args:
        anchor: Any day in the wanted week.

    Returns:
        List of 7 consecutive dates starting on a Monday.
    """
    monday = start_of_week(anchor)
    return [monday + timedelta(days=offset) for offset in range(7)]


def month_weeks(anchor: date) -> list[list[date]]:
    """
    Get Monday-start week rows covering the whole month of the anchor.

    The first row starts on the Monday on or before the 1st, so it may
    include trailing days of the previous month; rows are added until the
    last day of the month is covered, so the last row may include leading
    days of the next month.

    Business context: The month grid renders these rows per habit, dimming
    the days that fall outside the month.

    Args:
        anchor: Any day in the wanted month.

    Returns:
        List of 4 to 6 rows, each a list of 7 consecutive dates. Rows are
        contiguous: every day of the month appears exactly once.

    Example:
        >>> weeks = month_weeks(date(2024, 3, 15))
        >>> weeks[0][0], weeks[-1][-1]
        (datetime.date(2024, 2, 26), datetime.date(2024, 3, 31))
    """
    first = anchor.replace(day=1)
    last = first.replace(day=calendar.monthrange(first.year, first.month)[1])

    weeks = []
    week_start = start_of_week(first)
    while week_start <= last:
        weeks.append([week_start + timedelta(days=offset) for offset in range(7)])
        week_start += timedelta(days=7)
    return weeks


def year_months(anchor: date) -> list[date]:
    """Get the first day of each of the 12 months of the anchor's year."""
    return [date(anchor.year, month, 1) for month in range(1, 13)]


def add_months(day: date, months: int) -> date:
    """
    Shift a day by whole months, clamping to the target month's length.

    Args:
        day: Day to shift.
        months: Months to add (negative to go back).

    Returns:
        Shifted date.

    Example:
        >>> add_months(date(2024, 1, 31), 1)
        datetime.date(2024, 2, 29)
    """
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def add_years(day: date, years: int) -> date:
    """Shift a day by whole years (Feb 29 clamps to Feb 28)."""
    return add_months(day, years * 12)


@dataclass(frozen=True)
class CalendarState:
    """
    View selector state: granularity plus anchor date.

    Every transition returns a new state; the object itself never changes.
    Loading state is deliberately not part of it.
    """

    view_type: ViewType = ViewType.WEEK
    current_date: date = field(default_factory=date.today)

    # =========================================================================
    # DATE RANGES
    # =========================================================================

    def date_range(self) -> list[date]:
        """
        Get the dates the current view renders as columns.

        Returns:
            Week: the 7 days of the week. Month: every day of the week rows,
            row by row. Year: the first day of each month.

        Raises:
            ValueError: If view_type is not a known ViewType.
        """
        if self.view_type is ViewType.WEEK:
            return week_dates(self.current_date)
        if self.view_type is ViewType.MONTH:
            return [day for week in self.weeks() for day in week]
        if self.view_type is ViewType.YEAR:
            return year_months(self.current_date)
        raise ValueError(f"Unknown view type: {self.view_type!r}")

    def weeks(self) -> list[list[date]]:
        """Get the month grid rows for the anchor's month."""
        return month_weeks(self.current_date)

    def in_current_month(self, day: date) -> bool:
        """Check whether a month-grid day belongs to the anchor's month."""
        return (day.year, day.month) == (self.current_date.year, self.current_date.month)

    @property
    def title(self) -> str:
        """
        Heading for the current period.

        Returns:
            'Week of 04 Mar 2024', 'March 2024' or '2024'.
        """
        if self.view_type is ViewType.WEEK:
            return f"Week of {start_of_week(self.current_date):%d %b %Y}"
        if self.view_type is ViewType.MONTH:
            return f"{self.current_date:%B %Y}"
        return f"{self.current_date:%Y}"

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def _shift(self, direction: int) -> CalendarState:
        """Shift the anchor one period forwards (1) or backwards (-1)."""
        if self.view_type is ViewType.WEEK:
            anchor = self.current_date + timedelta(days=7 * direction)
        elif self.view_type is ViewType.MONTH:
            anchor = add_months(self.current_date, direction)
        elif self.view_type is ViewType.YEAR:
            anchor = add_years(self.current_date, direction)
        else:
            raise ValueError(f"Unknown view type: {self.view_type!r}")
        return replace(self, current_date=anchor)

    def previous(self) -> CalendarState:
        """Move the anchor back one period (7 days, 1 month or 1 year)."""
        return self._shift(-1)

    def next(self) -> CalendarState:
        """
        Move the anchor forward one period.

        Example:
            >>> CalendarState(ViewType.WEEK, date(2024, 3, 4)).next().current_date
            datetime.date(2024, 3, 11)
        """
        return self._shift(1)

    def today(self, clock: Callable[[], date] = date.today) -> CalendarState:
        """
        Reset the anchor to the current date.

        Args:
            clock: Source of the current date, injectable for tests.

        Returns:
            New state with the same view type, anchored on clock().
        """
        return replace(self, current_date=clock())

    def with_view(self, view_type: ViewType | str) -> CalendarState:
        """
        Switch granularity, keeping the anchor.

        Args:
            view_type: ViewType or its string value.

        Raises:
            ValueError: If view_type is not 'week', 'month' or 'year'.
        """
        return replace(self, view_type=ViewType(view_type))

    def select_month(self, month_index: int) -> CalendarState:
        """
        Open the month view for a month of the anchor's year.

        Business context: Clicking a year heat-map cell drills down into
        that month.

        Args:
            month_index: 0 for January through 11 for December.

        Returns:
            Month view anchored on the 1st of the chosen month.

        Raises:
            ValueError: If month_index is outside 0..11.

        Example:
            >>> CalendarState(ViewType.YEAR, date(2024, 6, 9)).select_month(2)
            CalendarState(view_type=<ViewType.MONTH: 'month'>,
                          current_date=datetime.date(2024, 3, 1))
        """
        if not 0 <= month_index <= 11:
            raise ValueError(f"month_index must be 0..11, got {month_index}")
        return CalendarState(ViewType.MONTH, date(self.current_date.year, month_index + 1, 1))
