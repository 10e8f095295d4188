"""
HTTP client for the Habit Tracker REST API.

PURPOSE: Typed access to the backend endpoints for the tracker controller
and the CLI.
AI CONTEXT: Every failure surfaces as HabitApiError; nothing is retried.

ENDPOINTS:
- GET    /api/habits?userId=
- GET    /api/habit-logs/all?userId=
- POST   /api/habit-logs          {habit_id, date, userId}
- POST   /api/habits              habit fields + userId
- PUT    /api/habits/{id}         habit fields + userId
- DELETE /api/habits/{id}?userId=
- GET    /api/habit-stats/yearly?userId=&date=

USAGE:
    with HabitApiClient() as client:
        habits = client.get_habits("u1")
        log = client.toggle_log(habits[0].id, date(2024, 3, 5), "u1")
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from .config import Config
from .models import Habit, HabitId, HabitLog, format_date

__all__ = ["HabitApiClient", "HabitApiError"]

logger = logging.getLogger(__name__)


class HabitApiError(Exception):
    """
    Raised when a request to the backend fails.

    Attributes:
        status_code: HTTP status of the failed response, or None when no
            response was received (timeout, connection refused, bad JSON).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    """Extract the backend's {"error": ...} message, falling back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}: {response.text or response.reason_phrase}"


def _parse_habit(data: Any) -> Habit:
    try:
        return Habit.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise HabitApiError(f"Malformed habit record: {e}") from e


def _parse_log(data: Any) -> HabitLog:
    try:
        return HabitLog.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise HabitApiError(f"Malformed habit log record: {e}") from e


class HabitApiClient:
    """
    Synchronous client for the Habit Tracker REST API.

    Wraps an httpx.Client. Pass `transport` (for example
    httpx.MockTransport) to run without a server, as the tests do.

    Example:
        >>> client = HabitApiClient("http://127.0.0.1:8000")
        >>> [h.name for h in client.get_habits("u1")]
        ['Water', 'Read']
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Create the client.

        Args:
            base_url: API root. Default: Config.get_api_url()
            timeout: Per-request timeout in seconds. Default:
                Config.API_TIMEOUT_SECONDS
            transport: Optional httpx transport override.
        """
        self.base_url = (base_url or Config.get_api_url()).rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else Config.API_TIMEOUT_SECONDS,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HabitApiClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        Send a request and decode the JSON body.

        Raises:
            HabitApiError: On timeout, transport error, non-2xx status or a
                body that is not JSON.
        """
        try:
            logger.debug(f"{method} {self.base_url}{path}")
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Request to {path} timed out")
            raise HabitApiError("Request timed out") from e
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(f"API error on {method} {path}: {message}")
            raise HabitApiError(message, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"Could not reach {self.base_url}: {e}")
            raise HabitApiError(f"Could not reach the server: {e}") from e
        except ValueError as e:
            logger.error(f"Invalid JSON from {path}: {e}")
            raise HabitApiError(f"Invalid JSON response: {e}") from e

    # =========================================================================
    # READS
    # =========================================================================

    def get_habits(self, user_id: str) -> list[Habit]:
        """
        Fetch the habits of a user.

        Raises:
            HabitApiError: On any request failure or a malformed record.
        """
        data = self._request("GET", "/api/habits", params={"userId": user_id})
        if not isinstance(data, list):
            raise HabitApiError("Malformed habit list")
        return [_parse_habit(item) for item in data]

    def get_habit_logs(self, user_id: str) -> list[HabitLog]:
        """
        Fetch the logs of all habits of a user.

        Raises:
            HabitApiError: On any request failure or a malformed record.
        """
        data = self._request("GET", "/api/habit-logs/all", params={"userId": user_id})
        if not isinstance(data, list):
            raise HabitApiError("Malformed habit log list")
        return [_parse_log(item) for item in data]

    def get_yearly_stats(self, user_id: str, reference_date: date) -> dict[str, Any]:
        """Fetch the aggregated monthly completion rates for a year."""
        result: dict[str, Any] = self._request(
            "GET",
            "/api/habit-stats/yearly",
            params={"userId": user_id, "date": format_date(reference_date)},
        )
        return result

    # =========================================================================
    # WRITES
    # =========================================================================

    def toggle_log(self, habit_id: HabitId, day: date, user_id: str) -> HabitLog:
        """
        Log one more completion of a habit on a day.

        Args:
            habit_id: Habit being logged.
            day: Calendar day, sent in yyyy-MM-dd format.
            user_id: Owner of the habit.

        Returns:
            The log as stored by the backend.

        Raises:
            HabitApiError: On any request failure or a malformed log.
        """
        data = self._request(
            "POST",
            "/api/habit-logs",
            json={"habit_id": habit_id, "date": format_date(day), "userId": user_id},
        )
        return _parse_log(data)

    def create_habit(self, user_id: str, fields: dict[str, Any]) -> Habit:
        """
        Create a habit from form fields.

        Args:
            user_id: Owner of the new habit.
            fields: name, description, color, tracking_type, target_per_day.

        Raises:
            HabitApiError: On validation (400) or any other failure.
        """
        data = self._request("POST", "/api/habits", json={**fields, "userId": user_id})
        return _parse_habit(data)

    def update_habit(self, habit_id: HabitId, user_id: str, fields: dict[str, Any]) -> Habit:
        """
        Replace the editable fields of a habit.

        Raises:
            HabitApiError: On validation (400), unknown habit (404) or any
                other failure.
        """
        data = self._request(
            "PUT", f"/api/habits/{habit_id}", json={**fields, "userId": user_id}
        )
        return _parse_habit(data)

    def delete_habit(self, habit_id: HabitId, user_id: str) -> None:
        """
        Delete a habit; the backend cascades to its logs.

        Raises:
            HabitApiError: On unknown habit (404) or any other failure.
        """
        self._request("DELETE", f"/api/habits/{habit_id}", params={"userId": user_id})
