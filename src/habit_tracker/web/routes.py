"""
FastAPI routes for Habit Tracker.

PURPOSE: Thin route handlers that delegate to the service and presenters.
AI CONTEXT: Routes should be simple - business logic in HabitService,
view building in presenters.

ROUTE STRUCTURE:
- /api/* : JSON REST API used by HabitApiClient
- / : Tracker page (full HTML)
- /partials/* : htmx partial updates of the calendar and the habit form
- /charts/* : PNG chart images

ERROR BODIES:
Every API failure answers {"error": "<message>"} with 400 (validation),
404 (unknown habit), 501 (not implemented) or 500 (storage).
"""

from __future__ import annotations

import html
import logging
from datetime import date
from typing import TYPE_CHECKING, Annotated, Any
from urllib.parse import urlencode

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse, Response

from ..calendar_view import CalendarState, ViewType
from ..config import Config
from ..habit_service import ErrorKind, HabitService, ServiceResult, validate_habit_fields
from ..models import parse_date
from ..preferences import Preferences, PreferencesStore
from ..presenters import (
    ChartPresenter,
    HabitTrackerPresenter,
    MonthViewModel,
    WeekViewModel,
    YearViewModel,
)
from ..statistics import StatisticsEngine
from ..storage import StorageManager

if TYPE_CHECKING:
    from ..models import Habit
    from ..presenters import CalendarViewModel, DayCellViewModel

__all__ = [
    "router",
    "get_storage",
    "get_statistics",
    "get_habit_service",
    "get_preferences_store",
    "get_tracker_presenter",
    "get_chart_presenter",
]

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.NOT_IMPLEMENTED: 501,
    ErrorKind.INTERNAL: 500,
}

# =============================================================================
# CSS Styles
# =============================================================================

_TRACKER_CSS = """
:root {
    --bg: #fafafa;
    --surface: #ffffff;
    --border: #e0e0e0;
    --text: #212121;
    --text-muted: #757575;
    --primary: #2196f3;
    --partial: #ffe082;
    --success: #81c784;
    --danger: #e57373;
}
body.dark {
    --bg: #121212;
    --surface: #1e1e1e;
    --border: #333333;
    --text: #eeeeee;
    --text-muted: #9e9e9e;
}
* { box-sizing: border-box; margin: 0; padding: 0; }
body {
    font-family: system-ui, -apple-system, sans-serif;
    background: var(--bg);
    color: var(--text);
    line-height: 1.5;
    padding: 1rem;
}
.container { max-width: 1200px; margin: 0 auto; }
header {
    display: flex;
    justify-content: space-between;
    align-items: center;
    margin-bottom: 1rem;
}
h1 { font-size: 1.5rem; font-weight: 600; }
h2 { font-size: 1.1rem; font-weight: 500; }
.toolbar { display: flex; gap: 0.5rem; align-items: center; margin-bottom: 1rem; }
.toolbar .spacer { flex: 1; }
button {
    background: var(--surface);
    color: var(--text);
    border: 1px solid var(--border);
    border-radius: 0.25rem;
    padding: 0.25rem 0.75rem;
    cursor: pointer;
}
button.active { background: var(--primary); color: white; }
.error {
    background: var(--danger);
    color: white;
    padding: 0.5rem 1rem;
    border-radius: 0.25rem;
    margin-bottom: 1rem;
    display: flex;
    justify-content: space-between;
}
table { width: 100%; border-collapse: collapse; background: var(--surface); }
th, td { padding: 0.4rem; border: 1px solid var(--border); text-align: center; }
th { color: var(--text-muted); font-weight: 500; font-size: 0.85rem; }
td.habit-name { text-align: left; font-weight: 500; }
.swatch { display: inline-block; width: 0.75rem; height: 0.75rem; border-radius: 50%; }
.cell { cursor: pointer; min-width: 2.5rem; }
.cell-empty { background: var(--surface); }
.cell-partial { background: var(--partial); }
.cell-success { background: var(--success); }
.cell-today { outline: 2px solid var(--primary); outline-offset: -2px; }
.cell-outside { opacity: 0.35; cursor: default; }
.year-cell { cursor: pointer; color: #212121; }
.habit-link { cursor: pointer; }
.habit-link:hover { text-decoration: underline; }
.habit-form {
    background: var(--surface);
    border: 1px solid var(--border);
    border-radius: 0.25rem;
    padding: 1rem;
    margin-bottom: 1rem;
    display: grid;
    gap: 0.5rem;
    max-width: 28rem;
}
.habit-form input[type="text"], .habit-form textarea, .habit-form select {
    width: 100%;
    padding: 0.25rem;
    border: 1px solid var(--border);
    background: var(--bg);
    color: var(--text);
}
.habit-form .form-error { color: var(--danger); }
.habit-form .actions { display: flex; gap: 0.5rem; }
.color-option input { display: none; }
.color-option input:checked + .swatch { outline: 2px solid var(--text); outline-offset: 2px; }
.color-option .swatch { width: 1.25rem; height: 1.25rem; cursor: pointer; }
.chart-container { margin-top: 1rem; text-align: center; }
.chart-container img { max-width: 100%; }
footer { margin-top: 2rem; color: var(--text-muted); font-size: 0.85rem; text-align: center; }
"""

# =============================================================================
# Dependency Factory Functions
# =============================================================================


def get_storage() -> StorageManager:
    """
    Create and return a StorageManager instance for data access.

    A new instance per request keeps reads fresh; tests replace this
    factory through app.dependency_overrides.

    Returns:
        StorageManager using Config.get_storage_dir().
    """
    return StorageManager()


def get_statistics() -> StatisticsEngine:
    """Create and return a StatisticsEngine instance for calculations."""
    return StatisticsEngine()


def get_habit_service(
    storage: Annotated[StorageManager, Depends(get_storage)],
    statistics: Annotated[StatisticsEngine, Depends(get_statistics)],
) -> HabitService:
    """
    Create and return a HabitService over the request's storage.

    Returns:
        HabitService sharing the injected StorageManager and StatisticsEngine.
    """
    return HabitService(storage, statistics)


def get_preferences_store(
    storage: Annotated[StorageManager, Depends(get_storage)],
) -> PreferencesStore:
    """Create and return a PreferencesStore over the request's storage."""
    return PreferencesStore(storage)


def get_tracker_presenter(
    storage: Annotated[StorageManager, Depends(get_storage)],
    statistics: Annotated[StatisticsEngine, Depends(get_statistics)],
) -> HabitTrackerPresenter:
    """
    Create and return a HabitTrackerPresenter reading from storage.

    Returns:
        Presenter whose HabitSource is the request's StorageManager.
    """
    return HabitTrackerPresenter(storage, statistics)


def get_chart_presenter(
    storage: Annotated[StorageManager, Depends(get_storage)],
    statistics: Annotated[StatisticsEngine, Depends(get_statistics)],
) -> ChartPresenter:
    """Create and return a ChartPresenter reading from storage."""
    return ChartPresenter(storage, statistics)


# =============================================================================
# Helpers
# =============================================================================


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _failure_response(result: ServiceResult) -> JSONResponse:
    """Turn a failed ServiceResult into an {"error": ...} response."""
    status_code = ERROR_STATUS.get(result.kind or ErrorKind.INTERNAL, 500)
    return _error(result.error or result.message, status_code)


def _habit_fields(payload: dict[str, Any]) -> dict[str, Any]:
    """Pick the editable habit fields out of a request body."""
    return {
        "name": payload.get("name") or "",
        "tracking_type": payload.get("tracking_type") or "daily",
        "target_per_day": payload.get("target_per_day", 1),
        "description": payload.get("description") or "",
        "color": payload.get("color") or Config.DEFAULT_COLOR,
    }


def _habit_changes(payload: dict[str, Any]) -> dict[str, Any]:
    """Pick only the habit fields a PUT body actually carries; the rest stay as stored."""
    return {
        key: payload[key]
        for key in ("name", "tracking_type", "target_per_day", "description", "color")
        if payload.get(key) is not None
    }


def _habit_form_values(habit: Habit | None) -> dict[str, Any]:
    """Initial values of the habit form: the stored habit, or defaults for a new one."""
    if habit is None:
        return {
            "name": "",
            "description": "",
            "color": Config.DEFAULT_COLOR,
            "tracking_type": "daily",
            "target_per_day": Config.TARGET_PER_DAY_MIN,
        }
    return {
        "name": habit.name,
        "description": habit.description,
        "color": habit.color,
        "tracking_type": habit.tracking_type.value,
        "target_per_day": habit.target,
    }


def _habit_form_fields(payload: dict[str, Any]) -> tuple[dict[str, Any], str | None]:
    """
    Convert submitted habit form values into service fields.

    json-enc sends every input as a string, so the target is parsed here;
    daily habits ignore it. The fields are then checked with the same
    validate_habit_fields() rules the tracker and the service apply.

    Returns:
        (fields, problem) where problem is None when the form is valid.
    """
    fields = _habit_fields(payload)
    fields["name"] = str(fields["name"])
    fields["tracking_type"] = str(fields["tracking_type"])
    if fields["tracking_type"] != "multiple":
        fields["target_per_day"] = 1
    else:
        try:
            fields["target_per_day"] = int(str(fields["target_per_day"]).strip())
        except ValueError:
            return fields, "target_per_day must be an integer"
    problem = validate_habit_fields(
        fields["name"], fields["tracking_type"], fields["target_per_day"]
    )
    return fields, problem


def _parse_state(view: str | None, day: str | None) -> CalendarState:
    """
    Build the calendar state of an HTML request.

    Unknown views fall back to week and malformed dates to today, so a
    hand-edited URL still renders a page.
    """
    try:
        view_type = ViewType(view or ViewType.WEEK.value)
    except ValueError:
        view_type = ViewType.WEEK
    try:
        anchor = parse_date(day) if day else date.today()
    except ValueError:
        anchor = date.today()
    return CalendarState(view_type, anchor)


def _state_query(user_id: str, state: CalendarState, **extra: str) -> str:
    params = {
        "userId": user_id,
        "view": state.view_type.value,
        "date": state.current_date.isoformat(),
    }
    params.update(extra)
    return urlencode(params)


# =============================================================================
# JSON API Routes
# =============================================================================


@router.get("/api/habits")
async def api_list_habits(
    service: Annotated[HabitService, Depends(get_habit_service)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> Response:
    """
    List the habits of a user.

    Example:
        >>> # GET /api/habits?userId=u1
        >>> [{"id": "...", "name": "Water", "tracking_type": "multiple", ...}]
    """
    if not user_id:
        return _error("userId is required", 400)
    result = service.list_habits(user_id)
    if not result.success:
        return _failure_response(result)
    return JSONResponse((result.data or {}).get("habits", []))


@router.get("/api/habit-logs/all")
async def api_list_habit_logs(
    service: Annotated[HabitService, Depends(get_habit_service)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> Response:
    """List the logs of all habits of a user."""
    if not user_id:
        return _error("userId is required", 400)
    result = service.list_logs(user_id)
    if not result.success:
        return _failure_response(result)
    return JSONResponse((result.data or {}).get("logs", []))


@router.post("/api/habit-logs")
async def api_toggle_log(
    service: Annotated[HabitService, Depends(get_habit_service)],
    payload: Annotated[dict[str, Any], Body()],
) -> Response:
    """
    Upsert the (habit, date) log and increment its count.

    Body:
        {"habit_id": ..., "date": "yyyy-MM-dd", "userId": ...}

    Returns:
        The stored HabitLog as JSON, or {"error": ...} with 400/404.
    """
    habit_id = payload.get("habit_id")
    if habit_id is None or habit_id == "":
        return _error("habit_id is required", 400)
    result = service.toggle_log(habit_id, payload.get("date") or "", payload.get("userId"))
    if not result.success:
        return _failure_response(result)
    return JSONResponse((result.data or {})["log"])


@router.post("/api/habit-logs/decrement")
async def api_decrement_log(
    service: Annotated[HabitService, Depends(get_habit_service)],
    payload: Annotated[dict[str, Any], Body()],
) -> Response:
    """Decrement a log's count. Not implemented: always answers 501."""
    result = service.decrement_log(
        payload.get("habit_id", ""), payload.get("date") or "", payload.get("userId")
    )
    return _failure_response(result)


@router.put("/api/habit-logs/notes")
async def api_save_note(
    service: Annotated[HabitService, Depends(get_habit_service)],
    payload: Annotated[dict[str, Any], Body()],
) -> Response:
    """Save a log's note. Not implemented: always answers 501."""
    result = service.save_note(
        payload.get("habit_id", ""),
        payload.get("date") or "",
        payload.get("notes") or "",
        payload.get("userId"),
    )
    return _failure_response(result)


@router.post("/api/habits")
async def api_create_habit(
    service: Annotated[HabitService, Depends(get_habit_service)],
    payload: Annotated[dict[str, Any], Body()],
) -> Response:
    """
    Create a habit.

    Body:
        {"userId", "name", "description", "color", "tracking_type",
         "target_per_day"}

    Returns:
        201 with the created habit, or {"error": ...} with 400.
    """
    result = service.create_habit(payload.get("userId") or "", **_habit_fields(payload))
    if not result.success:
        return _failure_response(result)
    return JSONResponse((result.data or {})["habit"], status_code=201)


@router.put("/api/habits/{habit_id}")
async def api_update_habit(
    habit_id: str,
    service: Annotated[HabitService, Depends(get_habit_service)],
    payload: Annotated[dict[str, Any], Body()],
) -> Response:
    """
    Update a habit.

    Only the fields present in the body change; omitted or null fields
    keep their stored values, so {"name": "Hydrate"} leaves a counted
    habit counted.

    Returns:
        200 with the updated habit, 404 if unknown, or 400 when the merged
        habit is invalid.
    """
    result = service.update_habit(
        habit_id, user_id=payload.get("userId"), **_habit_changes(payload)
    )
    if not result.success:
        return _failure_response(result)
    return JSONResponse((result.data or {})["habit"])


@router.delete("/api/habits/{habit_id}")
async def api_delete_habit(
    habit_id: str,
    service: Annotated[HabitService, Depends(get_habit_service)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> Response:
    """Delete a habit and its logs; 404 if unknown."""
    result = service.delete_habit(habit_id, user_id)
    if not result.success:
        return _failure_response(result)
    return JSONResponse({"deleted": str(habit_id)})


@router.get("/api/habit-stats/yearly")
async def api_yearly_stats(
    service: Annotated[HabitService, Depends(get_habit_service)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    day: Annotated[str | None, Query(alias="date")] = None,
) -> Response:
    """
    Monthly completion rates of every habit of a user for one year.

    Example:
        >>> # GET /api/habit-stats/yearly?userId=u1&date=2024-06-01
        >>> {"year": 2024, "rates": {"<habit id>": [{"month": "Jan", ...}, ...]}}
    """
    if not user_id:
        return _error("userId is required", 400)
    result = service.yearly_rates(user_id, day or date.today().isoformat())
    if not result.success:
        return _failure_response(result)
    return JSONResponse(result.data)


@router.get("/api/preferences")
async def api_get_preferences(
    store: Annotated[PreferencesStore, Depends(get_preferences_store)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> Response:
    """Get the display preferences of a user (defaults if none are stored)."""
    if not user_id:
        return _error("userId is required", 400)
    return JSONResponse(store.load(user_id).to_dict())


@router.put("/api/preferences")
async def api_put_preferences(
    store: Annotated[PreferencesStore, Depends(get_preferences_store)],
    payload: Annotated[dict[str, Any], Body()],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> Response:
    """Change the display preferences of a user; 400 on unknown values."""
    if not user_id:
        return _error("userId is required", 400)
    try:
        prefs = store.update(
            user_id,
            theme_mode=payload.get("theme_mode"),
            text_size=payload.get("text_size"),
        )
    except ValueError as e:
        return _error(str(e), 400)
    except OSError as e:
        logger.error(f"Failed to save preferences: {e}")
        return _error(str(e), 500)
    return JSONResponse(prefs.to_dict())


# =============================================================================
# HTML Routes
# =============================================================================


@router.get("/", response_class=HTMLResponse)
async def tracker_page(
    presenter: Annotated[HabitTrackerPresenter, Depends(get_tracker_presenter)],
    store: Annotated[PreferencesStore, Depends(get_preferences_store)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    view: str | None = None,
    day: Annotated[str | None, Query(alias="date")] = None,
) -> HTMLResponse:
    """
    Render the full tracker page.

    Query parameters select the user, the view (week/month/year) and the
    anchor date; the calendar itself is refreshed through /partials/*.
    """
    user = user_id or Config.get_default_user_id()
    state = _parse_state(view, day)
    body = _render_tracker(presenter.get_view(state, user), state, user)
    html_doc = _render_page_html(body, user, store.load(user))
    return HTMLResponse(content=html_doc, media_type="text/html; charset=utf-8")


@router.get("/partials/tracker", response_class=HTMLResponse)
async def tracker_partial(
    presenter: Annotated[HabitTrackerPresenter, Depends(get_tracker_presenter)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    view: str | None = None,
    day: Annotated[str | None, Query(alias="date")] = None,
) -> HTMLResponse:
    """Render the calendar fragment for htmx navigation and view switching."""
    user = user_id or Config.get_default_user_id()
    state = _parse_state(view, day)
    content = _render_tracker(presenter.get_view(state, user), state, user)
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")


@router.post("/partials/toggle", response_class=HTMLResponse)
async def toggle_partial(
    service: Annotated[HabitService, Depends(get_habit_service)],
    presenter: Annotated[HabitTrackerPresenter, Depends(get_tracker_presenter)],
    habit_id: str,
    log_date: Annotated[str, Query(alias="logDate")],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    view: str | None = None,
    day: Annotated[str | None, Query(alias="date")] = None,
) -> HTMLResponse:
    """
    Log a habit on a day from a calendar cell, then re-render the calendar.

    On failure the calendar is re-rendered unchanged with the error shown
    above it.
    """
    user = user_id or Config.get_default_user_id()
    state = _parse_state(view, day)
    result = service.toggle_log(habit_id, log_date, user)
    error = None if result.success else (result.error or result.message)
    content = _render_tracker(presenter.get_view(state, user), state, user, error)
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")


@router.post("/partials/decrement", response_class=HTMLResponse)
async def decrement_partial(
    service: Annotated[HabitService, Depends(get_habit_service)],
    presenter: Annotated[HabitTrackerPresenter, Depends(get_tracker_presenter)],
    habit_id: str,
    log_date: Annotated[str, Query(alias="logDate")],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    view: str | None = None,
    day: Annotated[str | None, Query(alias="date")] = None,
) -> HTMLResponse:
    """Decrement control of counted cells; shows the not-implemented message."""
    user = user_id or Config.get_default_user_id()
    state = _parse_state(view, day)
    result = service.decrement_log(habit_id, log_date, user)
    content = _render_tracker(presenter.get_view(state, user), state, user, result.error)
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")


@router.post("/partials/theme")
async def theme_partial(
    store: Annotated[PreferencesStore, Depends(get_preferences_store)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
) -> Response:
    """Switch light/dark mode and ask htmx to reload the page."""
    user = user_id or Config.get_default_user_id()
    try:
        store.toggle_theme(user)
    except OSError as e:
        logger.error(f"Failed to save theme: {e}")
        return Response(status_code=500)
    return Response(status_code=204, headers={"HX-Refresh": "true"})


# =============================================================================
# Habit Form Routes
# =============================================================================


@router.get("/partials/habit-form", response_class=HTMLResponse)
async def habit_form_partial(
    storage: Annotated[StorageManager, Depends(get_storage)],
    presenter: Annotated[HabitTrackerPresenter, Depends(get_tracker_presenter)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    view: str | None = None,
    day: Annotated[str | None, Query(alias="date")] = None,
    habit_id: str | None = None,
) -> HTMLResponse:
    """
    Open the habit form above the calendar.

    Without habit_id the form creates a habit; with it the form is filled
    from the stored habit and offers Delete. An unknown or foreign habit
    shows the error banner instead of a form.
    """
    user = user_id or Config.get_default_user_id()
    state = _parse_state(view, day)
    error = None
    form_html = ""
    if habit_id:
        habit = storage.get_habit(habit_id)
        if habit is None or habit.user_id != user:
            error = f"No habit with ID: {habit_id}"
        else:
            form_html = _render_habit_form(_habit_form_values(habit), state, user, habit_id)
    else:
        form_html = _render_habit_form(_habit_form_values(None), state, user)
    content = _render_tracker(presenter.get_view(state, user), state, user, error, form_html)
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")


@router.post("/partials/habits", response_class=HTMLResponse)
async def save_habit_partial(
    service: Annotated[HabitService, Depends(get_habit_service)],
    presenter: Annotated[HabitTrackerPresenter, Depends(get_tracker_presenter)],
    payload: Annotated[dict[str, Any], Body()],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    view: str | None = None,
    day: Annotated[str | None, Query(alias="date")] = None,
    habit_id: str | None = None,
) -> HTMLResponse:
    """
    Submit the habit form (htmx json-enc body), creating or updating a habit.

    Form values arrive as strings. Invalid input re-renders the form with
    the submitted values and an inline message; nothing is stored. On
    success the form closes and the calendar shows the saved habit.
    """
    user = user_id or Config.get_default_user_id()
    state = _parse_state(view, day)
    fields, problem = _habit_form_fields(payload)
    if problem is None:
        if habit_id:
            result = service.update_habit(habit_id, user_id=user, **fields)
        else:
            result = service.create_habit(user, **fields)
        if not result.success:
            problem = result.error or result.message

    form_html = ""
    if problem:
        form_html = _render_habit_form(
            {**fields, "target_per_day": payload.get("target_per_day", "")},
            state,
            user,
            habit_id,
            problem,
        )
    content = _render_tracker(presenter.get_view(state, user), state, user, None, form_html)
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")


@router.post("/partials/habits/delete", response_class=HTMLResponse)
async def delete_habit_partial(
    service: Annotated[HabitService, Depends(get_habit_service)],
    presenter: Annotated[HabitTrackerPresenter, Depends(get_tracker_presenter)],
    habit_id: str,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    view: str | None = None,
    day: Annotated[str | None, Query(alias="date")] = None,
) -> HTMLResponse:
    """Delete a habit and its logs from the edit form, then re-render the calendar."""
    user = user_id or Config.get_default_user_id()
    state = _parse_state(view, day)
    result = service.delete_habit(habit_id, user)
    error = None if result.success else (result.error or result.message)
    content = _render_tracker(presenter.get_view(state, user), state, user, error)
    return HTMLResponse(content=content, media_type="text/html; charset=utf-8")


# =============================================================================
# Chart Routes
# =============================================================================


@router.get("/charts/year.png")
async def year_chart(
    presenter: Annotated[ChartPresenter, Depends(get_chart_presenter)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    day: Annotated[str | None, Query(alias="date")] = None,
) -> Response:
    """
    Generate and serve the year heat-map as a PNG image.

    Returns:
        image/png, or a placeholder image/svg+xml when matplotlib is missing.
    """
    user = user_id or Config.get_default_user_id()
    reference = _parse_state(ViewType.YEAR.value, day).current_date
    try:
        png_bytes = presenter.render_year_heatmap(user, reference)
        return Response(content=png_bytes, media_type="image/png")
    except ImportError:
        # matplotlib not installed - return placeholder
        return Response(
            content=_placeholder_chart_svg("Year Heat-map"),
            media_type="image/svg+xml",
        )


def _placeholder_chart_svg(title: str) -> bytes:
    """
    Generate a placeholder SVG when matplotlib is unavailable.

    Args:
        title: Chart title to display in the placeholder.

    Returns:
        UTF-8 encoded SVG reading "{title} Chart (install matplotlib)".

    Example:
        >>> b'Year Heat-map Chart' in _placeholder_chart_svg('Year Heat-map')
        True
    """
    svg = f"""<svg xmlns="http://www.w3.org/2000/svg" width="400" height="200">
        <rect width="100%" height="100%" fill="#f5f5f5"/>
        <text x="50%" y="50%" text-anchor="middle" fill="#757575" font-size="16">
            {title} Chart (install matplotlib)
        </text>
    </svg>"""
    return svg.encode("utf-8")


# =============================================================================
# HTML Rendering
# =============================================================================


def _render_page_html(tracker_html: str, user_id: str, prefs: Preferences) -> str:
    """
    Render the complete tracker HTML document.

    Args:
        tracker_html: Calendar fragment from _render_tracker().
        user_id: Current user, carried in every htmx request.
        prefs: Display preferences (theme class and font scale).

    Returns:
        Full HTML document with embedded CSS and the htmx script.
    """
    theme_label = "Light mode" if prefs.is_dark else "Dark mode"
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Habit Tracker</title>
    <script src="https://unpkg.com/htmx.org@1.9.10"></script>
    <script src="https://unpkg.com/htmx.org@1.9.10/dist/ext/json-enc.js"></script>
    <style>{_TRACKER_CSS}
    body {{ font-size: {prefs.font_scale}rem; }}
    </style>
</head>
<body class="{prefs.theme_mode}">
    <div class="container">
        <header>
            <h1>Habit Tracker</h1>
            <button hx-post="/partials/theme?{urlencode({"userId": user_id})}"
                    hx-swap="none">{theme_label}</button>
        </header>
        <div id="tracker">{tracker_html}</div>
        <footer>Habit Tracker &bull; Powered by FastAPI + htmx</footer>
    </div>
</body>
</html>"""


def _render_tracker(
    view: CalendarViewModel,
    state: CalendarState,
    user_id: str,
    error: str | None = None,
    form_html: str = "",
) -> str:
    """
    Render the calendar fragment: error banner, habit form, toolbar and grid.

    Args:
        view: View model of the state's granularity.
        state: Calendar state the view was built from.
        user_id: Current user.
        error: Optional message shown in a dismissible banner.
        form_html: Open habit form from _render_habit_form(), if any.

    Returns:
        HTML fragment swapped into #tracker.
    """
    banner = ""
    if error:
        banner = f"""<div class="error"><span>{html.escape(error)}</span>
            <button onclick="this.parentElement.remove()">Dismiss</button></div>"""

    def nav(label: str, target: CalendarState, active: bool = False) -> str:
        css = ' class="active"' if active else ""
        return (
            f'<button{css} hx-get="/partials/tracker?{html.escape(_state_query(user_id, target))}" '
            f'hx-target="#tracker">{label}</button>'
        )

    toolbar = "".join(
        [
            nav("&lsaquo;", state.previous()),
            nav("Today", state.today()),
            nav("&rsaquo;", state.next()),
            (
                f'<button hx-get="/partials/habit-form?'
                f'{html.escape(_state_query(user_id, state))}" hx-target="#tracker">'
                "New habit</button>"
            ),
            f'<h2>{html.escape(view.title)}</h2><span class="spacer"></span>',
            *(
                nav(vt.value.capitalize(), state.with_view(vt), vt is state.view_type)
                for vt in ViewType
            ),
        ]
    )

    if isinstance(view, WeekViewModel):
        grid = _render_week(view, state, user_id)
    elif isinstance(view, MonthViewModel):
        grid = _render_month(view, state, user_id)
    elif isinstance(view, YearViewModel):
        grid = _render_year(view, state, user_id)
    else:
        raise TypeError(f"Cannot render {type(view).__name__}")

    return f'{banner}{form_html}<div class="toolbar">{toolbar}</div>{grid}'


def _render_habit_form(
    values: dict[str, Any],
    state: CalendarState,
    user_id: str,
    habit_id: str | None = None,
    error: str | None = None,
) -> str:
    """
    Render the create/edit habit form.

    The color picker offers Config.COLOR_OPTIONS and the target slider spans
    the allowed per-day target range; the target only matters for counted
    habits. Editing adds a Delete button that removes the habit's logs too.

    Args:
        values: Field values from _habit_form_values() or a rejected submit.
        state: Calendar state to return to after saving.
        user_id: Current user.
        habit_id: Habit being edited, or None to create one.
        error: Inline validation message.

    Returns:
        HTML fragment placed above the calendar toolbar.
    """
    extra = {"habit_id": habit_id} if habit_id else {}
    query = html.escape(_state_query(user_id, state, **extra))
    back = html.escape(_state_query(user_id, state))
    heading = "Edit habit" if habit_id else "New habit"
    message = f'<p class="form-error">{html.escape(error)}</p>' if error else ""

    colors = "".join(
        f'<label class="color-option" title="{label}">'
        f'<input type="radio" name="color" value="{value}"'
        f'{" checked" if value == values["color"] else ""}>'
        f'<span class="swatch" style="background: {value}"></span></label>'
        for value, label in Config.COLOR_OPTIONS
    )
    types = "".join(
        f'<option value="{kind}"{" selected" if kind == values["tracking_type"] else ""}>'
        f"{label}</option>"
        for kind, label in (("daily", "Once a day"), ("multiple", "Several times a day"))
    )
    name = html.escape(str(values["name"]))
    description = html.escape(str(values["description"]))
    target = html.escape(str(values["target_per_day"]))
    delete = ""
    if habit_id:
        delete = (
            f'<button type="button" hx-post="/partials/habits/delete?{query}" '
            f'hx-target="#tracker" hx-confirm="Delete this habit and all of its logs?">'
            "Delete</button>"
        )

    return f"""<form class="habit-form" hx-post="/partials/habits?{query}" hx-ext="json-enc"
        hx-target="#tracker">
        <h2>{heading}</h2>{message}
        <label>Name <input type="text" name="name" value="{name}" required></label>
        <label>Description
            <textarea name="description">{description}</textarea></label>
        <div>Color {colors}</div>
        <label>Tracking <select name="tracking_type">{types}</select></label>
        <label>Target per day <input type="range" name="target_per_day"
            min="{Config.TARGET_PER_DAY_MIN}" max="{Config.TARGET_PER_DAY_MAX}" value="{target}"
            oninput="this.nextElementSibling.value = this.value"><output>{target}</output></label>
        <div class="actions"><button type="submit" class="active">Save</button>
            <button type="button" hx-get="/partials/tracker?{back}"
                hx-target="#tracker">Cancel</button>
            {delete}</div>
    </form>"""


def _render_cell(cell: DayCellViewModel, state: CalendarState, user_id: str) -> str:
    """Render one day cell; interactive cells post a toggle on click."""
    if not cell.interactive:
        return f'<td class="cell {cell.css_class}">{cell.day.day}</td>'

    query = html.escape(
        _state_query(user_id, state, habit_id=str(cell.habit_id), logDate=cell.date_str)
    )
    decrement = ""
    if cell.show_decrement:
        decrement = (
            f' <button hx-post="/partials/decrement?{query}" hx-target="#tracker" '
            f'onclick="event.stopPropagation()">&minus;</button>'
        )
    title = html.escape(cell.note) if cell.note else cell.date_str
    return (
        f'<td class="cell {cell.css_class}" title="{title}" '
        f'hx-post="/partials/toggle?{query}" hx-target="#tracker">'
        f"{html.escape(cell.label)}{decrement}</td>"
    )


def _habit_label(habit: Habit, state: CalendarState, user_id: str) -> str:
    """Habit swatch and name; clicking the name opens the edit form."""
    query = html.escape(_state_query(user_id, state, habit_id=str(habit.id)))
    return (
        f'<span class="swatch" style="background: {html.escape(habit.color)}"></span> '
        f'<span class="habit-link" hx-get="/partials/habit-form?{query}" '
        f'hx-target="#tracker">{html.escape(habit.name)}</span>'
    )


def _render_week(view: WeekViewModel, state: CalendarState, user_id: str) -> str:
    """Render the week grid: habit rows x 7 day columns."""
    headers = "".join(f"<th>{h}</th>" for h in view.day_headers)
    rows = ""
    for row in view.rows:
        cells = "".join(_render_cell(c, state, user_id) for c in row.cells)
        label = _habit_label(row.habit, state, user_id)
        rows += f'<tr><td class="habit-name">{label}</td>{cells}</tr>'
    if not rows:
        rows = '<tr><td colspan="8">No habits yet</td></tr>'
    return f"<table><thead><tr><th>Habit</th>{headers}</tr></thead><tbody>{rows}</tbody></table>"


def _render_month(view: MonthViewModel, state: CalendarState, user_id: str) -> str:
    """Render the month grid: per habit, one sub-row per week with a spanning name cell."""
    headers = "".join(f"<th>{h}</th>" for h in view.weekday_headers)
    rows = ""
    for block in view.blocks:
        for index, week in enumerate(block.weeks):
            name = ""
            if index == 0:
                name = (
                    f'<td class="habit-name" rowspan="{block.row_span}">'
                    f"{_habit_label(block.habit, state, user_id)}</td>"
                )
            cells = "".join(_render_cell(c, state, user_id) for c in week)
            rows += f"<tr>{name}{cells}</tr>"
    if not rows:
        rows = '<tr><td colspan="8">No habits yet</td></tr>'
    return f"<table><thead><tr><th>Habit</th>{headers}</tr></thead><tbody>{rows}</tbody></table>"


def _render_year(view: YearViewModel, state: CalendarState, user_id: str) -> str:
    """Render the year heat-map; clicking a cell opens that month."""
    headers = "".join(f"<th>{m}</th>" for m in view.month_headers)
    rows = ""
    for row in view.rows:
        cells = ""
        for cell in row.cells:
            target = state.select_month(cell.month_index)
            query = html.escape(_state_query(user_id, target))
            cells += (
                f'<td class="year-cell tier-{cell.tier.value}" style="background: {cell.color}" '
                f'title="{cell.tooltip}" hx-get="/partials/tracker?{query}" '
                f'hx-target="#tracker">{cell.rounded_percentage}%</td>'
            )
        label = _habit_label(row.habit, state, user_id)
        rows += f'<tr><td class="habit-name">{label}</td>{cells}</tr>'
    if not rows:
        rows = '<tr><td colspan="13">No habits yet</td></tr>'
    chart_query = html.escape(
        urlencode({"userId": user_id, "date": state.current_date.isoformat()})
    )
    return (
        f"<table><thead><tr><th>Habit</th>{headers}</tr></thead><tbody>{rows}</tbody></table>"
        f'<div class="chart-container"><img src="/charts/year.png?{chart_query}" '
        f'alt="Completion heat-map {view.year}"></div>'
    )
