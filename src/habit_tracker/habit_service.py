"""
Habit Service - shared business logic for habit tracking.

PURPOSE: Validation and mutation rules for habits and logs, independent of
HTTP handling and CLI argument parsing.
AI CONTEXT: This is the service layer used by both web/routes.py and cli.py.

ARCHITECTURE:
    REST routes ──┐
                  ├──► HabitService ◄── StorageManager
    CLI report ───┘

TOGGLE RULES:
- count always increments by one
- daily habits flip completed
- multiple habits set completed = count >= target_per_day

USAGE:
    from .habit_service import HabitService
    service = HabitService()
    result = service.toggle_log(habit_id="abc", day="2024-03-05", user_id="u1")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Any

from .config import Config
from .models import Habit, HabitId, HabitLog, TrackingType, format_date, parse_date
from .statistics import StatisticsEngine
from .storage import StorageManager

__all__ = [
    "ErrorKind",
    "HabitService",
    "ServiceResult",
    "validate_habit_fields",
]

logger = logging.getLogger(__name__)


class ErrorKind(StrEnum):
    """Why a service operation failed; the web layer maps it to a status code."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    NOT_IMPLEMENTED = "not_implemented"
    INTERNAL = "internal"


@dataclass
class ServiceResult:
    """
    Result from a service operation.

    Provides a consistent return type for all service methods with
    success/failure status and optional data or error message.

    Attributes:
        success: Whether the operation completed successfully.
        message: Human-readable result message.
        data: Optional dict with operation-specific data.
        error: Optional error message if success is False.
        kind: Failure category if success is False.
    """

    success: bool
    message: str
    data: dict[str, Any] | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert this ServiceResult to a JSON-serializable dictionary.

        Fields with None/empty values (data, error) are omitted to keep
        payloads compact.

        Returns:
            Dict with keys 'success' (bool) and 'message' (str), plus
            optional 'data' (dict) and 'error' (str) when present.

        Example:
            >>> ServiceResult(success=True, message="Done", data={"id": "abc"}).to_dict()
            {'success': True, 'message': 'Done', 'data': {'id': 'abc'}}
        """
        result: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
        }
        if self.data:
            result["data"] = self.data
        if self.error:
            result["error"] = self.error
        return result


def _failure(kind: ErrorKind, message: str, error: str) -> ServiceResult:
    return ServiceResult(success=False, message=message, error=error, kind=kind)


def _not_found(habit_id: HabitId) -> ServiceResult:
    return _failure(ErrorKind.NOT_FOUND, "Habit not found", f"No habit with ID: {habit_id}")


def _write_failed(message: str) -> ServiceResult:
    return _failure(ErrorKind.INTERNAL, message, "Storage write failed")


def validate_habit_fields(
    name: str | None,
    tracking_type: str | None,
    target_per_day: Any,
) -> str | None:
    """
    Validate the editable fields of a habit form.

    Business context: The same rules run in the tracker controller before
    a request is sent and in the service before anything is stored.

    Args:
        name: Habit name; must be non-empty after trimming.
        tracking_type: 'daily' or 'multiple'.
        target_per_day: Integer 1..10, only checked for 'multiple' habits.

    Returns:
        None when valid, otherwise a message for the user.

    Example:
        >>> validate_habit_fields("Water", "multiple", 12)
        'target_per_day must be between 1 and 10'
    """
    if not name or not name.strip():
        return "Habit name is required"
    if tracking_type not in Config.TRACKING_TYPES:
        return f"tracking_type must be one of: {', '.join(sorted(Config.TRACKING_TYPES))}"
    if tracking_type == TrackingType.MULTIPLE.value:
        if isinstance(target_per_day, bool) or not isinstance(target_per_day, int):
            return "target_per_day must be an integer"
        if not Config.is_valid_target(target_per_day):
            return (
                f"target_per_day must be between {Config.TARGET_PER_DAY_MIN} "
                f"and {Config.TARGET_PER_DAY_MAX}"
            )
    return None


class HabitService:
    """
    Core habit tracking service.

    OPERATIONS:
    - list_habits / list_logs: Read a user's habits and logs
    - create_habit / update_habit / delete_habit: Habit CRUD with validation
    - toggle_log: Upsert-and-increment the log of a habit on a day
    - decrement_log / save_note: Explicit not-implemented slots
    - yearly_rates: Aggregated monthly completion rates for a year

    Every method returns a ServiceResult; errors never propagate.

    Example:
        >>> service = HabitService()
        >>> result = service.create_habit("u1", "Water", "multiple", 3)
        >>> result.data["habit"]["target_per_day"]
        3
    """

    def __init__(
        self,
        storage: StorageManager | None = None,
        stats_engine: StatisticsEngine | None = None,
    ) -> None:
        """
        Initialize the habit service with storage and statistics dependencies.

        Args:
            storage: StorageManager for JSON persistence. Defaults to a new
                StorageManager() using Config paths.
            stats_engine: StatisticsEngine for aggregation. Defaults to a new
                StatisticsEngine().
        """
        self.storage = storage or StorageManager()
        self.stats_engine = stats_engine or StatisticsEngine()

    def _get_owned_habit(self, habit_id: HabitId, user_id: str | None) -> Habit | None:
        """Get a habit, treating another user's habit as missing."""
        habit = self.storage.get_habit(habit_id)
        if habit is None or (user_id is not None and habit.user_id != user_id):
            return None
        return habit

    # =========================================================================
    # READS
    # =========================================================================

    def list_habits(self, user_id: str) -> ServiceResult:
        """
        List the habits of a user in stored order.

        Args:
            user_id: Owner of the habits.

        Returns:
            ServiceResult with data {"habits": [habit dicts]}.
        """
        try:
            habits = self.storage.load_habits(user_id)
            return ServiceResult(
                success=True,
                message=f"Found {len(habits)} habit(s)",
                data={"habits": [h.to_dict() for h in habits]},
            )
        except Exception as e:
            logger.error(f"Error listing habits: {e}")
            return _failure(ErrorKind.INTERNAL, "Failed to list habits", str(e))

    def list_logs(self, user_id: str) -> ServiceResult:
        """
        List the logs of all habits of a user.

        Args:
            user_id: Owner of the habits.

        Returns:
            ServiceResult with data {"logs": [log dicts]}.
        """
        try:
            logs = self.storage.load_habit_logs(user_id)
            return ServiceResult(
                success=True,
                message=f"Found {len(logs)} log(s)",
                data={"logs": [log.to_dict() for log in logs]},
            )
        except Exception as e:
            logger.error(f"Error listing habit logs: {e}")
            return _failure(ErrorKind.INTERNAL, "Failed to list habit logs", str(e))

    # =========================================================================
    # HABIT CRUD
    # =========================================================================

    def create_habit(
        self,
        user_id: str,
        name: str,
        tracking_type: str = TrackingType.DAILY.value,
        target_per_day: int = 1,
        description: str = "",
        color: str = Config.DEFAULT_COLOR,
    ) -> ServiceResult:
        """
        Create a habit for a user.

        Args:
            user_id: Owner of the new habit.
            name: Display name, required.
            tracking_type: 'daily' or 'multiple'.
            target_per_day: 1..10 for 'multiple' habits; ignored for 'daily'.
            description: Optional free text.
            color: UI color token.

        Returns:
            ServiceResult with data {"habit": habit dict} on success, or a
            VALIDATION failure naming the bad field.

        Example:
            >>> service.create_habit("u1", "", "daily").error
            'Habit name is required'
        """
        try:
            if not user_id:
                return _failure(ErrorKind.VALIDATION, "Invalid habit", "userId is required")
            problem = validate_habit_fields(name, tracking_type, target_per_day)
            if problem:
                return _failure(ErrorKind.VALIDATION, "Invalid habit", problem)

            habit = Habit.create(
                user_id=user_id,
                name=name,
                tracking_type=TrackingType(tracking_type),
                target_per_day=target_per_day,
                description=description or "",
                color=color,
            )
            if not self.storage.add_habit(habit):
                return _write_failed("Failed to create habit")

            logger.info(f"Created habit {habit.id} for user {user_id}")
            return ServiceResult(
                success=True,
                message=f"Habit created: {habit.name}",
                data={"habit": habit.to_dict()},
            )
        except Exception as e:
            logger.error(f"Error creating habit: {e}")
            return _failure(ErrorKind.INTERNAL, "Failed to create habit", str(e))

    def update_habit(
        self,
        habit_id: HabitId,
        name: str | None = None,
        tracking_type: str | None = None,
        target_per_day: int | None = None,
        description: str | None = None,
        color: str | None = None,
        user_id: str | None = None,
    ) -> ServiceResult:
        """
        Change some or all editable fields of an existing habit.

        Fields passed as None keep their stored value, so a request that
        only renames a 'multiple' habit leaves its tracking type and target
        alone. The merged habit is validated as a whole. Switching a habit
        to 'daily' resets its target to 1. Existing logs are kept as they are.

        Args:
            habit_id: Habit to update.
            name: New display name; must stay non-empty.
            tracking_type: New tracking type.
            target_per_day: New target for 'multiple' habits.
            description: New description.
            color: New color token.
            user_id: When given, the habit must belong to this user.

        Returns:
            ServiceResult with data {"habit": habit dict}, or a NOT_FOUND /
            VALIDATION failure.

        Example:
            >>> service.update_habit(water.id, name="Hydrate").data["habit"]["target_per_day"]
            3
        """
        try:
            habit = self._get_owned_habit(habit_id, user_id)
            if habit is None:
                return _not_found(habit_id)

            new_name = habit.name if name is None else name
            new_type = habit.tracking_type.value if tracking_type is None else tracking_type
            new_target = habit.target_per_day if target_per_day is None else target_per_day
            problem = validate_habit_fields(new_name, new_type, new_target)
            if problem:
                return _failure(ErrorKind.VALIDATION, "Invalid habit", problem)

            kind = TrackingType(new_type)
            updated = replace(
                habit,
                name=new_name.strip(),
                tracking_type=kind,
                target_per_day=new_target if kind is TrackingType.MULTIPLE else 1,
                description=habit.description if description is None else description.strip(),
                color=habit.color if color is None else (color or Config.DEFAULT_COLOR),
            )
            if not self.storage.update_habit(updated):
                return _write_failed("Failed to update habit")

            logger.info(f"Updated habit {habit.id}")
            return ServiceResult(
                success=True,
                message=f"Habit updated: {updated.name}",
                data={"habit": updated.to_dict()},
            )
        except Exception as e:
            logger.error(f"Error updating habit: {e}")
            return _failure(ErrorKind.INTERNAL, "Failed to update habit", str(e))

    def delete_habit(self, habit_id: HabitId, user_id: str | None = None) -> ServiceResult:
        """
        Delete a habit and all of its logs.

        Args:
            habit_id: Habit to delete.
            user_id: When given, the habit must belong to this user.

        Returns:
            ServiceResult with data {"id": habit_id}, or a NOT_FOUND failure.
        """
        try:
            habit = self._get_owned_habit(habit_id, user_id)
            if habit is None:
                return _not_found(habit_id)
            if not self.storage.delete_habit(habit.id):
                return _write_failed("Failed to delete habit")
            return ServiceResult(
                success=True,
                message=f"Habit deleted: {habit.name}",
                data={"id": habit.id},
            )
        except Exception as e:
            logger.error(f"Error deleting habit: {e}")
            return _failure(ErrorKind.INTERNAL, "Failed to delete habit", str(e))

    # =========================================================================
    # LOG MUTATIONS
    # =========================================================================

    def toggle_log(self, habit_id: HabitId, day: str, user_id: str | None = None) -> ServiceResult:
        """
        Record one more completion of a habit on a day.

        Creates the (habit, day) log if missing, then increments its count.
        Daily habits flip their completed flag, so a second toggle on the
        same day un-completes them; multiple habits are completed once the
        count reaches the target.

        Business context: This is the only write the calendar cells make.
        The returned log is the confirmed state the client caches.

        Args:
            habit_id: Habit being logged.
            day: Calendar day in yyyy-MM-dd format.
            user_id: When given, the habit must belong to this user.

        Returns:
            ServiceResult with data {"log": log dict}, or a VALIDATION /
            NOT_FOUND failure.

        Example:
            >>> service.toggle_log(water.id, "2024-03-05").data["log"]["count"]
            1
        """
        try:
            try:
                parsed = parse_date(day)
            except (TypeError, ValueError):
                return _failure(
                    ErrorKind.VALIDATION, "Invalid date", f"date must be yyyy-MM-dd, got {day!r}"
                )

            habit = self._get_owned_habit(habit_id, user_id)
            if habit is None:
                return _not_found(habit_id)

            log = self.storage.get_log(habit.id, format_date(parsed))
            if log is None:
                log = HabitLog.create(habit.id, parsed)

            log.count += 1
            if habit.tracking_type is TrackingType.DAILY:
                log.completed = not log.completed
            elif habit.tracking_type is TrackingType.MULTIPLE:
                log.completed = log.count >= habit.target
            else:
                raise ValueError(f"Unknown tracking type: {habit.tracking_type!r}")

            if not self.storage.upsert_log(log):
                return _write_failed("Failed to save log")

            logger.info(
                f"Toggled habit {habit.id} on {log.date}: count={log.count}, "
                f"completed={log.completed}"
            )
            return ServiceResult(
                success=True,
                message=f"Logged {habit.name} on {log.date}",
                data={"log": log.to_dict()},
            )
        except Exception as e:
            logger.error(f"Error toggling habit log: {e}")
            return _failure(ErrorKind.INTERNAL, "Failed to save log", str(e))

    def decrement_log(
        self, habit_id: HabitId, day: str, user_id: str | None = None
    ) -> ServiceResult:
        """Decrementing a count is not supported; always fails with NOT_IMPLEMENTED."""
        logger.info(f"Decrement requested for habit {habit_id} on {day}")
        return _failure(
            ErrorKind.NOT_IMPLEMENTED,
            "Not implemented",
            "Decrementing a habit count is not implemented",
        )

    def save_note(
        self,
        habit_id: HabitId,
        day: str,
        notes: str,
        user_id: str | None = None,
    ) -> ServiceResult:
        """Saving notes is not supported; always fails with NOT_IMPLEMENTED."""
        logger.info(f"Note save requested for habit {habit_id} on {day}")
        return _failure(
            ErrorKind.NOT_IMPLEMENTED,
            "Not implemented",
            "Saving habit notes is not implemented",
        )

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def yearly_rates(self, user_id: str, day: str) -> ServiceResult:
        """
        Aggregate the monthly completion rates of a user's habits.

        Args:
            user_id: Owner of the habits.
            day: Any yyyy-MM-dd day of the year to aggregate.

        Returns:
            ServiceResult with data {"year": int, "rates": {habit_id: [12
            rate dicts with an added 'color']}}.
        """
        try:
            try:
                reference = parse_date(day)
            except (TypeError, ValueError):
                return _failure(
                    ErrorKind.VALIDATION, "Invalid date", f"date must be yyyy-MM-dd, got {day!r}"
                )

            habits = self.storage.load_habits(user_id)
            logs = self.storage.load_habit_logs(user_id)
            rates = self.stats_engine.calculate_yearly_completion_rates(habits, logs, reference)

            payload = {
                str(habit_id): [
                    {**m.to_dict(), "color": self.stats_engine.get_completion_color(m.percentage)}
                    for m in months
                ]
                for habit_id, months in rates.items()
            }
            return ServiceResult(
                success=True,
                message=f"Completion rates for {reference.year}",
                data={"year": reference.year, "rates": payload},
            )
        except Exception as e:
            logger.error(f"Error aggregating completion rates: {e}")
            return _failure(ErrorKind.INTERNAL, "Failed to aggregate completion rates", str(e))
