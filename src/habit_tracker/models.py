"""
Data models for Habit Tracker.

PURPOSE: Type-safe dataclasses representing core domain entities.
AI CONTEXT: These models define the data schema for habits, logs and derived rates.

MODEL HIERARCHY:
- Habit: User-defined recurring activity (has many HabitLogs)
- HabitLog: Completion state/count of one habit on one calendar day
- MonthlyCompletionRate: Derived, never persisted - one month of one habit

SERIALIZATION:
Persisted models have to_dict() for JSON persistence and from_dict() for loading.
Calendar days use the yyyy-MM-dd wire format; timestamps use ISO 8601 UTC.

USAGE:
    habit = Habit.create("user-1", "Water", tracking_type=TrackingType.MULTIPLE, target_per_day=3)
    log = HabitLog.create(habit.id, date(2024, 3, 5))
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any

from .config import Config

__all__ = [
    "HabitId",
    "TrackingType",
    "Habit",
    "HabitLog",
    "MonthlyCompletionRate",
    "format_date",
    "generate_id",
    "parse_date",
    "same_id",
]

HabitId = str | int
"""Habit identifiers are opaque; stored ids are strings, imported ids may be ints."""


def same_id(left: HabitId, right: HabitId) -> bool:
    """
    Compare two record ids.

    Ids may arrive as ints from imported data and as strings from URL path
    parameters, so they are compared by their string form.
    """
    return str(left) == str(right)


def _now_iso() -> str:
    """Get current UTC time as ISO 8601 formatted string."""
    return datetime.now(UTC).isoformat()


def generate_id() -> str:
    """Generate an opaque unique record id."""
    return uuid.uuid4().hex


def format_date(day: date) -> str:
    """
    Format a calendar day in the yyyy-MM-dd wire format.

    All log lookups compare this string exactly, so every date that reaches
    a HabitLog or a lookup goes through here.

    Args:
        day: Calendar day (a datetime is accepted; only its date part is used).

    Returns:
        String such as '2024-03-05'.

    Example:
        >>> format_date(date(2024, 3, 5))
        '2024-03-05'
    """
    return day.strftime(Config.DATE_FORMAT)


def parse_date(value: str) -> date:
    """
    Parse a yyyy-MM-dd string into a date.

    Args:
        value: Wire-format calendar day.

    Returns:
        Parsed date.

    Raises:
        ValueError: If value is not a valid yyyy-MM-dd day.

    Example:
        >>> parse_date('2024-03-05')
        datetime.date(2024, 3, 5)
    """
    return datetime.strptime(value, Config.DATE_FORMAT).date()


class TrackingType(StrEnum):
    """
    How a habit is tracked each day.

    DAILY: single completion per day, rendered as a binary toggle.
    MULTIPLE: repeatable count against target_per_day.
    """

    DAILY = "daily"
    MULTIPLE = "multiple"


@dataclass
class Habit:
    """
    User-defined recurring activity tracked per calendar day.

    LIFECYCLE:
    1. Created from the habit form (name required)
    2. Edited in place (name, description, color, tracking type, target)
    3. Deleted by the user, cascading to all of its logs

    TARGET RULES:
    target_per_day is only meaningful for MULTIPLE habits; DAILY habits
    always store 1.
    """

    id: HabitId
    user_id: str
    name: str
    tracking_type: TrackingType = TrackingType.DAILY
    target_per_day: int = 1
    description: str = ""
    color: str = Config.DEFAULT_COLOR
    created_at: str = ""

    @classmethod
    def create(
        cls,
        user_id: str,
        name: str,
        tracking_type: TrackingType = TrackingType.DAILY,
        target_per_day: int = 1,
        description: str = "",
        color: str = Config.DEFAULT_COLOR,
    ) -> Habit:
        """
        Factory method to create a new habit with generated ID and timestamp.

        Trims name and description and normalizes the target so that DAILY
        habits always carry a target of 1.

        Args:
            user_id: Owner of the habit.
            name: Display name (already validated as non-empty).
            tracking_type: DAILY or MULTIPLE.
            target_per_day: Per-day target for MULTIPLE habits.
            description: Optional free text.
            color: UI color token.

        Returns:
            New Habit instance with unique ID and created_at set.

        Example:
            >>> habit = Habit.create('u1', ' Read ', TrackingType.DAILY, 5)
            >>> habit.name, habit.target_per_day
            ('Read', 1)
        """
        return cls(
            id=generate_id(),
            user_id=user_id,
            name=name.strip(),
            tracking_type=tracking_type,
            target_per_day=target_per_day if tracking_type is TrackingType.MULTIPLE else 1,
            description=description.strip(),
            color=color or Config.DEFAULT_COLOR,
            created_at=_now_iso(),
        )

    @property
    def target(self) -> int:
        """Effective per-day target (1 for daily habits, never below 1)."""
        if self.tracking_type is TrackingType.MULTIPLE:
            return max(self.target_per_day, 1)
        return 1

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize habit to dictionary for JSON storage and API responses.

        Returns:
            Dict with id, user_id, name, description, color, tracking_type
            (string value), target_per_day and created_at.
        """
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "tracking_type": self.tracking_type.value,
            "target_per_day": self.target_per_day,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Habit:
        """
        Deserialize habit from dictionary.

        Missing optional fields fall back to defaults; a missing or null
        tracking_type is treated as 'daily'.

        Args:
            data: Dict as stored by to_dict() or returned by the API.

        Returns:
            Habit instance.

        Raises:
            KeyError: If required field 'id' is missing.
            ValueError: If tracking_type is not a known tracking type.

        Example:
            >>> habit = Habit.from_dict({'id': 1, 'name': 'Water', 'tracking_type': 'multiple',
            ...                          'target_per_day': 3})
            >>> habit.target
            3
        """
        return cls(
            id=data["id"],
            user_id=data.get("user_id", ""),
            name=data.get("name", ""),
            tracking_type=TrackingType(data.get("tracking_type") or TrackingType.DAILY.value),
            target_per_day=int(data.get("target_per_day") or 1),
            description=data.get("description") or "",
            color=data.get("color") or Config.DEFAULT_COLOR,
            created_at=data.get("created_at", ""),
        )


@dataclass
class HabitLog:
    """
    One record of a habit's completion state/count for one day.

    INVARIANTS:
    - date is a yyyy-MM-dd string with no time component
    - count is non-negative and only ever incremented by the toggle action
    - at most one log per (habit_id, date); lookups use the first match
    """

    id: str
    habit_id: HabitId
    date: str
    completed: bool = False
    count: int = 0
    notes: str = ""

    @classmethod
    def create(
        cls,
        habit_id: HabitId,
        day: date,
        completed: bool = False,
        count: int = 0,
    ) -> HabitLog:
        """
        Factory method to create a log for a habit and day with a generated ID.

        Args:
            habit_id: Habit the log belongs to.
            day: Calendar day, stored in wire format.
            completed: Initial completion flag.
            count: Initial count.

        Returns:
            New HabitLog instance.

        Example:
            >>> HabitLog.create('h1', date(2024, 3, 5), True, 1).date
            '2024-03-05'
        """
        return cls(
            id=generate_id(),
            habit_id=habit_id,
            date=format_date(day),
            completed=completed,
            count=count,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize log to dictionary for JSON storage and API responses."""
        return {
            "id": self.id,
            "habit_id": self.habit_id,
            "date": self.date,
            "completed": self.completed,
            "count": self.count,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HabitLog:
        """
        Deserialize log from dictionary.

        Args:
            data: Dict as stored by to_dict() or returned by the API.
                'count' and 'notes' may be null in older records.

        Returns:
            HabitLog instance.

        Raises:
            KeyError: If 'habit_id' or 'date' is missing.
        """
        return cls(
            id=str(data.get("id", "")),
            habit_id=data["habit_id"],
            date=data["date"],
            completed=bool(data.get("completed", False)),
            count=max(int(data.get("count") or 0), 0),
            notes=data.get("notes") or "",
        )


@dataclass(frozen=True)
class MonthlyCompletionRate:
    """
    Completion rate of one habit over one calendar month.

    Derived by the aggregator, never persisted. percentage is
    completed_days / days_in_month * 100, or 0 when days_in_month is 0.
    """

    month: str
    days_in_month: int
    completed_days: int
    percentage: float

    @property
    def rounded_percentage(self) -> int:
        """Percentage rounded half-up for display, e.g. 32.26 -> 32."""
        return int(self.percentage + 0.5)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the yearly statistics API."""
        return {
            "month": self.month,
            "days_in_month": self.days_in_month,
            "completed_days": self.completed_days,
            "percentage": self.percentage,
        }
