"""Grilla mensual del calendario (celdas vacías + días del mes)."""

from __future__ import annotations

import calendar
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from dateutil.relativedelta import relativedelta

from habit_tool.model import HabitLog

logger = logging.getLogger(__name__)

CompletionPredicate = Callable[[date], bool]

_WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


class WeekStart(Enum):
    """First column of the grid, as a ``date.weekday()`` index."""

    MONDAY = 0
    SUNDAY = 6

    @classmethod
    def parse(cls, raw: str) -> WeekStart:
        try:
            return cls[raw.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown week start: {raw!r}") from None


class DayState(Enum):
    """Visual state of a day cell."""

    FUTURE = "future"
    COMPLETED = "completed"
    MISSED = "missed"


class CompletionBand(Enum):
    """Color band for the share of due tasks completed on a day."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class CalendarMonth:
    """A year + month pair."""

    year: int
    month: int

    @property
    def title(self) -> str:
        """Month title like ``March 2025``."""
        return f"{calendar.month_name[self.month]} {self.year}"


@dataclass(frozen=True)
class CalendarCell:
    """Grid slot: ``day`` is None for the leading padding."""

    day: date | None = None

    @property
    def is_blank(self) -> bool:
        return self.day is None


def month_of(day: date) -> CalendarMonth:
    """Month containing ``day``."""
    return CalendarMonth(day.year, day.month)


def shift_month(month: CalendarMonth, delta: int) -> CalendarMonth:
    """Move ``delta`` months forward (negative goes back)."""
    moved = date(month.year, month.month, 1) + relativedelta(months=delta)
    return CalendarMonth(moved.year, moved.month)


def _first_day(month: CalendarMonth) -> date | None:
    try:
        return date(month.year, month.month, 1)
    except (ValueError, TypeError, OverflowError):
        return None


def first_weekday_of(
    month: CalendarMonth, week_start: WeekStart = WeekStart.SUNDAY
) -> int:
    """1-based column of the month's first day (0 if month is invalid)."""
    first = _first_day(month)
    if first is None:
        return 0
    return (first.weekday() - week_start.value) % 7 + 1


def build_month_grid(month: CalendarMonth, first_weekday: int) -> list[CalendarCell]:
    """Build the ordered cells for a month grid.

    Args:
        month: Year and month to render.
        first_weekday: 1-based column (1..7) of the month's first day in the
            active week-start convention.

    Returns:
        ``first_weekday - 1`` blank cells followed by one cell per day of the
        month. The trailing row is not padded. An empty list means the month
        could not be resolved.
    """
    first = _first_day(month)
    if first is None or not 1 <= first_weekday <= 7:
        logger.debug("Unresolvable month grid: %s (col %s)", month, first_weekday)
        return []

    _, days_in_month = calendar.monthrange(first.year, first.month)
    cells = [CalendarCell() for _ in range(first_weekday - 1)]
    cells.extend(CalendarCell(first + timedelta(days=i)) for i in range(days_in_month))
    return cells


def month_grid(
    month: CalendarMonth, week_start: WeekStart = WeekStart.SUNDAY
) -> list[CalendarCell]:
    """Grid cells for ``month`` using ``week_start`` as the first column."""
    return build_month_grid(month, first_weekday_of(month, week_start))


def grid_rows(cells: Sequence[CalendarCell]) -> list[list[CalendarCell]]:
    """Split cells into 7-wide rows; the last row may be shorter."""
    return [list(cells[i : i + 7]) for i in range(0, len(cells), 7)]


def weekday_symbols(week_start: WeekStart = WeekStart.SUNDAY) -> list[str]:
    """Single-letter weekday headers, starting at ``week_start``."""
    start = week_start.value
    return [_WEEKDAY_NAMES[(start + i) % 7][0] for i in range(7)]


def completion_predicate(logs: Iterable[HabitLog]) -> CompletionPredicate:
    """Predicate telling whether a day has a check-in."""
    logged_days = {log.day for log in logs}
    return logged_days.__contains__


def day_state(day: date, today: date, completed: bool) -> DayState:
    """State used to colour a day cell (future days are never completed)."""
    if day > today:
        return DayState.FUTURE
    if completed:
        return DayState.COMPLETED
    return DayState.MISSED


def completion_band(completed: int, total: int) -> CompletionBand:
    """Band for ``completed`` of ``total`` due tasks."""
    if total <= 0:
        return CompletionBand.NONE
    rate = completed / total
    if rate >= 0.8:
        return CompletionBand.HIGH
    if rate >= 0.5:
        return CompletionBand.MEDIUM
    return CompletionBand.LOW
