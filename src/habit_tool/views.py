"""Modelos de vista (calendario y crecimiento) y su render en texto."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

import pandas as pd

from habit_tool.analytics import (
    HabitStats,
    MetricAnalytics,
    entries_frame,
    habit_stats,
    is_metric_due,
    metric_analytics,
    next_metric_due_date,
)
from habit_tool.calendar_grid import (
    CalendarMonth,
    CompletionBand,
    CompletionPredicate,
    DayState,
    WeekStart,
    completion_band,
    completion_predicate,
    day_state,
    grid_rows,
    month_grid,
    month_of,
    weekday_symbols,
)
from habit_tool.growth import daily_change_rate, days_tracked, project_growth
from habit_tool.model import Habit, MetricEntry

logger = logging.getLogger(__name__)

POSITIVE_COLOR = "#34C759"
NEGATIVE_COLOR = "#FF3B30"
CONSISTENCY_COLOR = "#007AFF"
BEST_COLOR = "#FFCC00"

_PREVIEW_HEADERS: dict[str, str] = {
    "date": "Date",
    "value": "Value",
    "conditions": "Conditions",
    "notes": "Notes",
}

_BAND_MARKS: dict[CompletionBand, str] = {
    CompletionBand.HIGH: "#",
    CompletionBand.MEDIUM: "+",
    CompletionBand.LOW: "-",
    CompletionBand.NONE: " ",
}


@dataclass(frozen=True)
class DayCellView:
    """One day of the month grid, ready to draw."""

    day: date
    state: DayState
    is_today: bool
    is_selected: bool

    @property
    def label(self) -> str:
        return str(self.day.day)


@dataclass(frozen=True)
class SelectedDayInfo:
    """Detail panel for the tapped day."""

    day: date
    completed: bool
    notes: str | None = None
    satisfaction: int | None = None


@dataclass(frozen=True)
class CalendarView:
    """Month calendar of one habit's check-ins."""

    habit_name: str
    color: str
    month: CalendarMonth
    weekday_headers: list[str]
    rows: list[list[DayCellView | None]]
    can_go_next: bool
    selected: SelectedDayInfo | None = None

    @property
    def title(self) -> str:
        return self.month.title


def build_calendar_view(
    habit: Habit,
    month: CalendarMonth,
    today: date,
    week_start: WeekStart = WeekStart.SUNDAY,
    selected: date | None = None,
) -> CalendarView:
    """Compose the calendar view for ``habit`` in ``month``."""
    is_completed = completion_predicate(habit.logs)
    rows: list[list[DayCellView | None]] = []
    for row in grid_rows(month_grid(month, week_start)):
        rows.append(
            [
                None
                if cell.day is None
                else DayCellView(
                    day=cell.day,
                    state=day_state(cell.day, today, is_completed(cell.day)),
                    is_today=cell.day == today,
                    is_selected=cell.day == selected,
                )
                for cell in row
            ]
        )

    current = month_of(today)
    info = None
    if selected is not None:
        log = next((lg for lg in habit.logs if lg.day == selected), None)
        info = SelectedDayInfo(
            day=selected,
            completed=log is not None,
            notes=log.notes if log is not None else None,
            satisfaction=log.satisfaction if log is not None else None,
        )

    return CalendarView(
        habit_name=habit.action_name,
        color=habit.color,
        month=month,
        weekday_headers=weekday_symbols(week_start),
        rows=rows,
        can_go_next=(month.year, month.month) < (current.year, current.month),
        selected=info,
    )


@dataclass(frozen=True)
class OverviewCellView:
    """One day of the all-habits calendar."""

    day: date
    completed: int
    total: int
    band: CompletionBand
    is_today: bool

    @property
    def label(self) -> str:
        return str(self.day.day)


@dataclass(frozen=True)
class OverviewView:
    """Month calendar coloured by the share of habits done each day."""

    month: CalendarMonth
    weekday_headers: list[str]
    rows: list[list[OverviewCellView | None]]
    habit_count: int

    @property
    def title(self) -> str:
        return self.month.title


def build_overview_view(
    habits: Sequence[Habit],
    month: CalendarMonth,
    today: date,
    week_start: WeekStart = WeekStart.SUNDAY,
) -> OverviewView:
    """Compose the all-habits calendar for ``month``.

    A habit counts on a day once it exists (``created_at <= day``). Future
    days have no due habits and fall in the ``NONE`` band.
    """
    checkers = [(h.created_at, completion_predicate(h.logs)) for h in habits]
    rows: list[list[OverviewCellView | None]] = []
    for row in grid_rows(month_grid(month, week_start)):
        cells: list[OverviewCellView | None] = []
        for cell in row:
            if cell.day is None:
                cells.append(None)
                continue
            due: list[CompletionPredicate] = []
            if cell.day <= today:
                due = [
                    is_done for created, is_done in checkers if created <= cell.day
                ]
            completed = sum(1 for is_done in due if is_done(cell.day))
            cells.append(
                OverviewCellView(
                    day=cell.day,
                    completed=completed,
                    total=len(due),
                    band=completion_band(completed, len(due)),
                    is_today=cell.day == today,
                )
            )
        rows.append(cells)

    return OverviewView(
        month=month,
        weekday_headers=weekday_symbols(week_start),
        rows=rows,
        habit_count=len(habits),
    )


@dataclass(frozen=True)
class InsightCard:
    """Small stat card (Current, Change, Consistency, Best)."""

    title: str
    value: str
    unit: str
    color: str
    icon: str


@dataclass(frozen=True)
class GrowthHeader:
    name: str
    frequency_text: str
    goal_icon: str
    color: str


@dataclass(frozen=True)
class ProjectionView:
    """Forward projection shown in the "Compound Effect" card."""

    days_tracked: int
    daily_rate: float
    values: dict[int, float]
    unit: str


@dataclass(frozen=True)
class GrowthView:
    """Outcome tracking view of a habit's metric."""

    header: GrowthHeader | None
    unit: str
    consistency_rate: float
    improvement: float | None
    insights: list[InsightCard] = field(default_factory=list)
    chart_points: list[tuple[date, float]] = field(default_factory=list)
    correlation: str | None = None
    projection: ProjectionView | None = None
    entries: list[MetricEntry] = field(default_factory=list)
    stats: HabitStats | None = None
    average: float | None = None
    metric_due: bool = False
    next_due: date | None = None


def build_growth_view(habit: Habit, today: date) -> GrowthView:
    """Compose the outcome tracking view.

    Sections that need history are left empty: insights, chart and
    projection need two entries, the consistency correlation needs three.
    Streaks and the next measurement date come with every view.
    """
    analytics = metric_analytics(habit, today)
    config = habit.metric_config
    ascending = analytics.sorted_entries()
    count = len(ascending)

    header = None
    unit = ""
    if config is not None:
        unit = config.unit
        header = GrowthHeader(
            name=config.name,
            frequency_text=(
                f"Tracked {config.tracking_frequency.display_text.lower()}"
            ),
            goal_icon=config.goal_direction.system_icon,
            color=habit.color,
        )

    improvement = analytics.improvement
    latest = analytics.latest_value
    insights: list[InsightCard] = []
    chart_points: list[tuple[date, float]] = []
    projection = None
    if count >= 2:
        insights = _insight_cards(habit, analytics, unit)
        chart_points = [(e.day, e.value) for e in ascending]
        if improvement is not None and latest is not None and config is not None:
            projection = ProjectionView(
                days_tracked=days_tracked(ascending, today),
                daily_rate=daily_change_rate(ascending, improvement, today),
                values=project_growth(ascending, improvement, today),
                unit=unit,
            )
    else:
        logger.debug("Habit %s: %d entries, projection omitted", habit.id, count)

    return GrowthView(
        header=header,
        unit=unit,
        consistency_rate=analytics.consistency_rate,
        improvement=improvement,
        insights=insights,
        chart_points=chart_points,
        correlation=analytics.consistency_correlation if count >= 3 else None,
        projection=projection,
        entries=analytics.sorted_entries(descending=True),
        stats=habit_stats(habit, today),
        average=analytics.average_value if count and config is not None else None,
        metric_due=is_metric_due(habit, today),
        next_due=next_metric_due_date(habit, today),
    )


def _insight_cards(
    habit: Habit, analytics: MetricAnalytics, unit: str
) -> list[InsightCard]:
    cards: list[InsightCard] = []
    has_config = habit.metric_config is not None
    latest = analytics.latest_value
    if latest is not None and has_config:
        cards.append(
            InsightCard(
                title="Current",
                value=f"{latest:.1f}",
                unit=unit,
                color=habit.color,
                icon="chart.line.uptrend.xyaxis",
            )
        )
    improvement = analytics.improvement
    if improvement is not None:
        up = improvement > 0
        cards.append(
            InsightCard(
                title="Change",
                value=f"{abs(improvement):.1f}%",
                unit="↑" if up else "↓",
                color=POSITIVE_COLOR if up else NEGATIVE_COLOR,
                icon=analytics.trend.icon,
            )
        )
    cards.append(
        InsightCard(
            title="Consistency",
            value=f"{analytics.consistency_rate * 100:.0f}%",
            unit="",
            color=CONSISTENCY_COLOR,
            icon="calendar.badge.checkmark",
        )
    )
    best = analytics.best_value
    if best is not None and has_config:
        cards.append(
            InsightCard(
                title="Best",
                value=f"{best:.1f}",
                unit=unit,
                color=BEST_COLOR,
                icon="trophy.fill",
            )
        )
    return cards


def render_calendar(view: CalendarView) -> str:
    """Plain-text month grid.

    Completed days carry ``*``, future days ``.`` and today is bracketed.
    """
    lines = [f"{view.habit_name} - {view.title}"]
    lines.append(" ".join(f"{h:^5}" for h in view.weekday_headers).rstrip())
    for row in view.rows:
        lines.append(" ".join(_render_cell(cell) for cell in row).rstrip())
    if view.selected is not None:
        lines.append("")
        lines.extend(_render_selected(view.selected))
    return "\n".join(lines)


def _render_cell(cell: DayCellView | None) -> str:
    if cell is None:
        return " " * 5
    mark = {
        DayState.COMPLETED: "*",
        DayState.FUTURE: ".",
        DayState.MISSED: " ",
    }[cell.state]
    return _boxed(f"{cell.label:>2}{mark}", cell.is_today)


def _boxed(text: str, is_today: bool) -> str:
    if is_today:
        return f"[{text}]"
    return f" {text} "


def _render_selected(info: SelectedDayInfo) -> list[str]:
    status = "Completed" if info.completed else "Not completed"
    lines = [f"{info.day.strftime('%b %d, %Y')}: {status}"]
    if info.notes:
        lines.append(f"Notes: {info.notes}")
    if info.satisfaction is not None:
        stars = "★" * info.satisfaction + "☆" * (5 - info.satisfaction)
        lines.append(f"Satisfaction: {stars}")
    return lines


def render_growth(view: GrowthView) -> str:
    """Plain-text outcome tracking view."""
    lines: list[str] = []
    if view.header is not None:
        lines.append(view.header.name)
        lines.append(view.header.frequency_text)
        lines.append("")

    if view.stats is not None:
        lines.extend(_render_stats(view.stats))
    if view.metric_due:
        lines.append("Measurement due today")
    elif view.next_due is not None:
        lines.append(f"Next measurement: {view.next_due.strftime('%b %d, %Y')}")
    if view.stats is not None or view.next_due is not None:
        lines.append("")

    for card in view.insights:
        unit = f" {card.unit}" if card.unit else ""
        lines.append(f"{card.title:<12}{card.value}{unit}")
    if view.average is not None:
        lines.append(f"{'Average':<12}{view.average:.1f} {view.unit}".rstrip())

    if view.correlation is not None:
        lines.append("")
        lines.append(f"System -> Results: {view.correlation}")

    if view.projection is not None:
        lines.append("")
        lines.append("Compound Effect (if you maintain your current consistency)")
        for horizon, value in view.projection.values.items():
            lines.append(f"  In {horizon} days: {value:.1f} {view.projection.unit}")

    lines.append("")
    if view.entries:
        lines.append(entries_table(view.entries))
    else:
        lines.append("No entries yet")
    return "\n".join(lines).strip("\n")


def _render_stats(stats: HabitStats) -> list[str]:
    return [
        f"{'Streak':<12}{stats.current_streak} days (best {stats.longest_streak})",
        (
            f"{'Completion':<12}{stats.completion_rate * 100:.0f}% "
            f"({stats.total_days} days logged)"
        ),
    ]


def render_overview(view: OverviewView) -> str:
    """Plain-text all-habits calendar.

    Each day shows its band: ``#`` at 80% or more of the habits done, ``+``
    at 50% or more, ``-`` below that and a blank when nothing was due.
    """
    lines = [f"All habits ({view.habit_count}) - {view.title}"]
    lines.append(" ".join(f"{h:^5}" for h in view.weekday_headers).rstrip())
    for row in view.rows:
        rendered = []
        for cell in row:
            if cell is None:
                rendered.append(" " * 5)
            else:
                text = f"{cell.label:>2}{_BAND_MARKS[cell.band]}"
                rendered.append(_boxed(text, cell.is_today))
        lines.append(" ".join(rendered).rstrip())
    lines.append("")
    lines.append("# >=80%   + >=50%   - <50%")
    return "\n".join(lines)


def entries_table(entries: list[MetricEntry], limit: int = 120) -> str:
    """Entries newest first, aligned the way the preview pane shows them."""
    df = entries_frame(entries)
    if df.empty:
        return ""
    df = df.iloc[::-1].head(limit).rename(columns=_PREVIEW_HEADERS)
    return _display_frame(df).to_string(index=False, max_colwidth=28)


def _display_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Prepare a string-renderable DataFrame for aligned preview."""
    if df.empty:
        return df.copy()
    out = df.copy()
    for col in out.columns:
        out[col] = out[col].map(_format_preview_value)
    return out


def _format_preview_value(value: object) -> str:
    """Format preview values without NaN/scientific notation."""
    if value is None or pd.isna(value):
        return ""
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y %H:%M")
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        text = format(value, "f").rstrip("0").rstrip(".")
        return text if text else "0"
    return str(value)
