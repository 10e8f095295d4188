"""
Presenters for the Habit Tracker calendar views.

PURPOSE: Testable business logic layer between data and UI.
AI CONTEXT: Pure data transformation - no I/O beyond the injected source,
no HTML.

DESIGN PRINCIPLES:
1. Presenters receive a data source, return view models (dataclasses)
2. No dependencies on a specific UI framework; web/routes.py renders HTML
   and render_text() renders terminal output from the same view models
3. Fully unit-testable with an in-memory source
4. One builder per calendar granularity

VIEWS:
- Week: habit rows x 7 day cells
- Month: per habit, 4-6 week sub-rows of 7 day cells (name spans all rows)
- Year: habit rows x 12 month cells colored by completion rate

USAGE:
    presenter = HabitTrackerPresenter(storage, StatisticsEngine())
    view = presenter.get_view(CalendarState(ViewType.WEEK, date.today()), "u1")
"""

from __future__ import annotations

import io
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Protocol

from .calendar_view import CalendarState, ViewType
from .config import Config
from .models import Habit, HabitId, HabitLog, TrackingType, format_date
from .statistics import CellTier, CompletionTier

if TYPE_CHECKING:
    from .statistics import StatisticsEngine

__all__ = [
    "HabitSource",
    "DayCellViewModel",
    "HabitWeekRow",
    "WeekViewModel",
    "HabitMonthBlock",
    "MonthViewModel",
    "YearCellViewModel",
    "HabitYearRow",
    "YearViewModel",
    "HabitTrackerPresenter",
    "ChartPresenter",
    "render_text",
]

CELL_MARKS: dict[str, str] = {
    CellTier.EMPTY: "·",
    CellTier.PARTIAL: "◐",
    CellTier.SUCCESS: "●",
}


class HabitSource(Protocol):
    """
    Anything that can supply a user's habits and logs.

    Implemented by StorageManager (server side) and HabitTracker (the
    client-side cache), so the same presenter renders both.
    """

    def load_habits(self, user_id: str) -> list[Habit]: ...

    def load_habit_logs(self, user_id: str) -> list[HabitLog]: ...


# =============================================================================
# WEEK / MONTH CELLS
# =============================================================================


@dataclass
class DayCellViewModel:
    """View model for one habit on one calendar day."""

    habit_id: HabitId
    day: date
    tracking_type: TrackingType
    target: int
    count: int
    completed: bool
    note: str
    tier: CellTier
    is_today: bool = False
    in_month: bool = True

    @property
    def date_str(self) -> str:
        """Day in yyyy-MM-dd wire format."""
        return format_date(self.day)

    @property
    def interactive(self) -> bool:
        """
        Whether clicking the cell logs the habit.

        Days outside the displayed month are rendered dimmed and inert.
        """
        return self.in_month

    @property
    def show_decrement(self) -> bool:
        """A decrement control is offered only for counted habits with a count."""
        return (
            self.interactive
            and self.tracking_type is TrackingType.MULTIPLE
            and self.count > 0
        )

    @property
    def label(self) -> str:
        """
        Short text shown inside the cell.

        Returns:
            'count/target' for multiple habits (e.g. '2/3'), a check mark
            for completed daily habits, '' otherwise.
        """
        if self.tracking_type is TrackingType.MULTIPLE:
            return f"{self.count}/{self.target}"
        return "✓" if self.completed else ""

    @property
    def css_class(self) -> str:
        """CSS classes for the cell: tier, plus today/outside markers."""
        classes = [f"cell-{self.tier.value}"]
        if self.is_today:
            classes.append("cell-today")
        if not self.in_month:
            classes.append("cell-outside")
        return " ".join(classes)


@dataclass
class HabitWeekRow:
    """One habit's row in the week grid."""

    habit: Habit
    cells: list[DayCellViewModel] = field(default_factory=list)


@dataclass
class WeekViewModel:
    """Complete view model for the week grid."""

    title: str
    days: list[date]
    rows: list[HabitWeekRow] = field(default_factory=list)

    @property
    def day_headers(self) -> list[str]:
        """Column headers such as 'Mon 04'."""
        return [f"{Config.WEEKDAY_LABELS[d.weekday()]} {d:%d}" for d in self.days]


@dataclass
class HabitMonthBlock:
    """One habit's block of week sub-rows in the month grid."""

    habit: Habit
    weeks: list[list[DayCellViewModel]] = field(default_factory=list)

    @property
    def row_span(self) -> int:
        """Number of week rows the habit name spans."""
        return len(self.weeks)


@dataclass
class MonthViewModel:
    """Complete view model for the month grid."""

    title: str
    month_start: date
    blocks: list[HabitMonthBlock] = field(default_factory=list)

    @property
    def weekday_headers(self) -> tuple[str, ...]:
        return Config.WEEKDAY_LABELS


# =============================================================================
# YEAR CELLS
# =============================================================================


@dataclass(frozen=True)
class YearCellViewModel:
    """View model for one habit over one month in the year heat-map."""

    month_index: int
    label: str
    completed_days: int
    days_in_month: int
    percentage: float
    color: str
    tier: CompletionTier
    year: int

    @property
    def rounded_percentage(self) -> int:
        return int(self.percentage + 0.5)

    @property
    def tooltip(self) -> str:
        """
        Hover text of the cell.

        Returns:
            String like '10/31 days (32%)'.
        """
        return f"{self.completed_days}/{self.days_in_month} days ({self.rounded_percentage}%)"

    @property
    def target_date(self) -> date:
        """Anchor of the month view this cell navigates to."""
        return date(self.year, self.month_index + 1, 1)


@dataclass
class HabitYearRow:
    """One habit's row in the year heat-map."""

    habit: Habit
    cells: list[YearCellViewModel] = field(default_factory=list)


@dataclass
class YearViewModel:
    """Complete view model for the year heat-map."""

    title: str
    year: int
    rows: list[HabitYearRow] = field(default_factory=list)

    @property
    def month_headers(self) -> tuple[str, ...]:
        return Config.MONTH_LABELS


CalendarViewModel = WeekViewModel | MonthViewModel | YearViewModel


class HabitTrackerPresenter:
    """
    Presenter for the habit tracker calendar.

    Transforms a user's habits and logs into the view model of the
    selected calendar granularity. All methods are pure apart from
    reading the injected source once per call.
    """

    def __init__(
        self,
        source: HabitSource,
        statistics: StatisticsEngine,
        clock: Callable[[], date] = date.today,
    ) -> None:
        """
        Initialize the tracker presenter with data dependencies.

        Args:
            source: HabitSource for loading a user's habits and logs.
            statistics: StatisticsEngine for completion lookups and rates.
            clock: Source of the current date for the is-today marker.

        Example:
            >>> presenter = HabitTrackerPresenter(StorageManager(), StatisticsEngine())
            >>> presenter.get_week_view(CalendarState(), "u1").title
            'Week of 04 Mar 2024'
        """
        self.source = source
        self.statistics = statistics
        self.clock = clock

    def get_view(self, state: CalendarState, user_id: str) -> CalendarViewModel:
        """
        Build the view model for the state's granularity.

        Args:
            state: Current calendar state.
            user_id: Owner of the habits to show.

        Returns:
            WeekViewModel, MonthViewModel or YearViewModel.

        Raises:
            ValueError: If the state's view type is unknown.
        """
        if state.view_type is ViewType.WEEK:
            return self.get_week_view(state, user_id)
        if state.view_type is ViewType.MONTH:
            return self.get_month_view(state, user_id)
        if state.view_type is ViewType.YEAR:
            return self.get_year_view(state, user_id)
        raise ValueError(f"Unknown view type: {state.view_type!r}")

    def get_week_view(self, state: CalendarState, user_id: str) -> WeekViewModel:
        """
        Build the week grid: one row per habit, one cell per day.

        Args:
            state: Calendar state; its anchor selects the week.
            user_id: Owner of the habits to show.

        Returns:
            WeekViewModel with rows in habit order. Habits without logs
            get empty cells.
        """
        habits = self.source.load_habits(user_id)
        logs = self.source.load_habit_logs(user_id)
        week_state = state.with_view(ViewType.WEEK)
        days = week_state.date_range()
        today = self.clock()

        rows = [
            HabitWeekRow(
                habit=habit,
                cells=[self._build_cell(habit, day, logs, today) for day in days],
            )
            for habit in habits
        ]
        return WeekViewModel(title=week_state.title, days=days, rows=rows)

    def get_month_view(self, state: CalendarState, user_id: str) -> MonthViewModel:
        """
        Build the month grid: per habit, one sub-row per week.

        Days outside the anchor's month are kept so every row has 7 cells,
        but are marked in_month=False (dimmed, not interactive).

        Args:
            state: Calendar state; its anchor selects the month.
            user_id: Owner of the habits to show.

        Returns:
            MonthViewModel with one HabitMonthBlock per habit.
        """
        habits = self.source.load_habits(user_id)
        logs = self.source.load_habit_logs(user_id)
        weeks = state.weeks()
        today = self.clock()

        blocks = [
            HabitMonthBlock(
                habit=habit,
                weeks=[
                    [
                        self._build_cell(habit, day, logs, today, state.in_current_month(day))
                        for day in week
                    ]
                    for week in weeks
                ],
            )
            for habit in habits
        ]
        return MonthViewModel(
            title=state.with_view(ViewType.MONTH).title,
            month_start=state.current_date.replace(day=1),
            blocks=blocks,
        )

    def get_year_view(self, state: CalendarState, user_id: str) -> YearViewModel:
        """
        Build the year heat-map: habit rows x 12 month cells.

        Args:
            state: Calendar state; its anchor selects the year.
            user_id: Owner of the habits to show.

        Returns:
            YearViewModel whose cells carry color, tier, tooltip and the
            month-view navigation target.

        Example:
            >>> view = presenter.get_year_view(CalendarState(ViewType.YEAR, date(2024, 6, 1)), "u1")
            >>> view.rows[0].cells[0].tooltip
            '10/31 days (32%)'
        """
        habits = self.source.load_habits(user_id)
        logs = self.source.load_habit_logs(user_id)
        year = state.current_date.year
        rates = self.statistics.calculate_yearly_completion_rates(habits, logs, state.current_date)

        rows = []
        for habit in habits:
            cells = [
                YearCellViewModel(
                    month_index=index,
                    label=rate.month,
                    completed_days=rate.completed_days,
                    days_in_month=rate.days_in_month,
                    percentage=rate.percentage,
                    color=self.statistics.get_completion_color(rate.percentage),
                    tier=self.statistics.get_completion_tier(rate.percentage),
                    year=year,
                )
                for index, rate in enumerate(rates[habit.id])
            ]
            rows.append(HabitYearRow(habit=habit, cells=cells))
        return YearViewModel(title=str(year), year=year, rows=rows)

    def _build_cell(
        self,
        habit: Habit,
        day: date,
        logs: Sequence[HabitLog],
        today: date,
        in_month: bool = True,
    ) -> DayCellViewModel:
        """Build one day cell from the first matching log."""
        log = self.statistics.find_log(habit, day, logs)
        count = log.count if log is not None else 0
        completed = log is not None and log.completed
        return DayCellViewModel(
            habit_id=habit.id,
            day=day,
            tracking_type=habit.tracking_type,
            target=habit.target,
            count=count,
            completed=completed,
            note=log.notes if log is not None else "",
            tier=self.statistics.get_cell_tier(habit, count, completed),
            is_today=day == today,
            in_month=in_month,
        )


# =============================================================================
# TEXT RENDERING
# =============================================================================


def _text_cell(cell: DayCellViewModel) -> str:
    if not cell.in_month:
        return "   "
    if cell.tracking_type is TrackingType.MULTIPLE:
        return f"{cell.count}/{cell.target}".rjust(3)
    return f" {CELL_MARKS[cell.tier]} "


def render_text(view: CalendarViewModel) -> str:
    """
    Render a calendar view model for terminal output.

    Args:
        view: Week, month or year view model.

    Returns:
        Multi-line string; a hint line when there are no habits.

    Raises:
        TypeError: If view is not a calendar view model.
    """
    if not isinstance(view, (WeekViewModel, MonthViewModel, YearViewModel)):
        raise TypeError(f"Cannot render {type(view).__name__}")

    lines = [view.title, ""]

    if isinstance(view, WeekViewModel):
        if not view.rows:
            return "\n".join([*lines, "No habits yet."])
        width = max(len(r.habit.name) for r in view.rows)
        lines.append(" " * width + " " + " ".join(h.rjust(6) for h in view.day_headers))
        for row in view.rows:
            cells = " ".join(_text_cell(c).rjust(6) for c in row.cells)
            lines.append(f"{row.habit.name.ljust(width)} {cells}")
        return "\n".join(lines)

    if isinstance(view, MonthViewModel):
        if not view.blocks:
            return "\n".join([*lines, "No habits yet."])
        header = " ".join(label.rjust(6) for label in view.weekday_headers)
        for block in view.blocks:
            lines.extend([block.habit.name, header])
            for week in block.weeks:
                lines.append(
                    " ".join(
                        (f"{c.day.day:>2} {_text_cell(c).strip()}" if c.in_month else "").rjust(6)
                        for c in week
                    )
                )
            lines.append("")
        return "\n".join(lines).rstrip()

    if not view.rows:
        return "\n".join([*lines, "No habits yet."])
    width = max(len(r.habit.name) for r in view.rows)
    lines.append(" " * width + "".join(m.rjust(5) for m in view.month_headers))
    for row in view.rows:
        cells = "".join(f"{c.rounded_percentage:>4}%" for c in row.cells)
        lines.append(f"{row.habit.name.ljust(width)}{cells}")
    return "\n".join(lines)


# =============================================================================
# CHARTS
# =============================================================================


class ChartPresenter:
    """
    Presenter for generating chart images.

    Uses matplotlib for server-side chart rendering.
    Returns PNG images as bytes for htmx refresh.
    """

    def __init__(
        self,
        source: HabitSource,
        statistics: StatisticsEngine,
    ) -> None:
        """
        Initialize chart presenter with data dependencies.

        matplotlib is imported lazily by each render method so it stays an
        optional dependency.

        Args:
            source: HabitSource for loading a user's habits and logs.
            statistics: StatisticsEngine for completion rates and colors.
        """
        self.source = source
        self.statistics = statistics

    def render_year_heatmap(self, user_id: str, reference_date: date) -> bytes:
        """
        Render the year heat-map as a PNG: habits x months, tier-colored.

        Business context: A downloadable/embeddable image of the same data
        the year view shows, one colored square per habit and month with
        the rounded percentage printed inside.

        Args:
            user_id: Owner of the habits to chart.
            reference_date: Any date in the year to chart.

        Returns:
            PNG image as bytes.

        Raises:
            ImportError: If matplotlib is not installed. Caller should
                catch this and provide a fallback (e.g., placeholder SVG).
        """
        # Lazy import matplotlib to keep it optional
        import matplotlib

        matplotlib.use("Agg")  # Non-interactive backend
        import matplotlib.pyplot as plt
        from matplotlib.patches import Rectangle

        habits = self.source.load_habits(user_id)
        logs = self.source.load_habit_logs(user_id)
        rates = self.statistics.calculate_yearly_completion_rates(habits, logs, reference_date)

        fig, ax = plt.subplots(figsize=(8, max(1.5, 0.5 * len(habits) + 1)))

        if not habits:
            ax.text(0.5, 0.5, "No habits yet", ha="center", va="center", fontsize=12)
            ax.axis("off")
        else:
            for row, habit in enumerate(habits):
                for col, rate in enumerate(rates[habit.id]):
                    color = self.statistics.get_completion_color(rate.percentage)
                    ax.add_patch(
                        Rectangle((col, row), 0.95, 0.95, facecolor=color, edgecolor="white")
                    )
                    ax.text(
                        col + 0.475,
                        row + 0.475,
                        f"{rate.rounded_percentage}",
                        ha="center",
                        va="center",
                        fontsize=7,
                    )
            ax.set_xlim(0, 12)
            ax.set_ylim(len(habits), 0)
            ax.set_xticks([i + 0.475 for i in range(12)])
            ax.set_xticklabels(Config.MONTH_LABELS, fontsize=8)
            ax.set_yticks([i + 0.475 for i in range(len(habits))])
            ax.set_yticklabels([h.name for h in habits], fontsize=8)
            ax.tick_params(length=0)
            for spine in ax.spines.values():
                spine.set_visible(False)

        ax.set_title(f"Completion {reference_date.year}")

        buf = io.BytesIO()
        plt.tight_layout()
        plt.savefig(buf, format="png", dpi=100, bbox_inches="tight")
        plt.close(fig)
        buf.seek(0)
        return buf.read()

