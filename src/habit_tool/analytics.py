"""Estadísticas de hábitos (rachas, consistencia) y analítica de métricas."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

import pandas as pd

from habit_tool.model import Habit, HabitLog, MetricEntry, MetricTrend

ENTRY_COLUMNS = ["date", "value", "conditions", "notes"]


@dataclass(frozen=True)
class MetricAnalytics:
    """Summary of a habit's metric entries and its check-in consistency."""

    entries: tuple[MetricEntry, ...]
    consistency_rate: float

    def sorted_entries(self, descending: bool = False) -> list[MetricEntry]:
        return sorted(self.entries, key=lambda e: e.day, reverse=descending)

    @property
    def improvement(self) -> float | None:
        """Percentage change from the first to the latest entry."""
        if len(self.entries) < 2:
            return None
        ordered = self.sorted_entries()
        first = ordered[0].value
        if first == 0:
            return None
        return (ordered[-1].value - first) / first * 100

    @property
    def trend(self) -> MetricTrend:
        imp = self.improvement
        if imp is None:
            return MetricTrend.NO_DATA
        if imp > 5:
            return MetricTrend.IMPROVING
        if imp < -5:
            return MetricTrend.DECLINING
        return MetricTrend.STABLE

    @property
    def average_value(self) -> float:
        if not self.entries:
            return 0.0
        return sum(e.value for e in self.entries) / len(self.entries)

    @property
    def best_value(self) -> float | None:
        if not self.entries:
            return None
        return max(e.value for e in self.entries)

    @property
    def latest_value(self) -> float | None:
        if not self.entries:
            return None
        return self.sorted_entries()[-1].value

    @property
    def consistency_correlation(self) -> str:
        """Narrative linking check-in consistency with the metric change."""
        imp = self.improvement
        if imp is None or len(self.entries) < 3:
            return "Not enough data yet"

        consistency_pct = int(self.consistency_rate * 100)
        improvement_pct = abs(int(imp))
        if self.consistency_rate >= 0.8 and abs(imp) >= 10:
            return (
                f"Your {consistency_pct}% consistency led to "
                f"{improvement_pct}% improvement!"
            )
        if self.consistency_rate >= 0.6:
            return (
                f"With {consistency_pct}% consistency, "
                "you're making steady progress"
            )
        return "Higher consistency could accelerate your progress"


def current_streak(logs: Sequence[HabitLog], today: date) -> int:
    """Consecutive logged days ending today."""
    logged = {log.day for log in logs}
    streak = 0
    day = today
    while day in logged:
        streak += 1
        day -= timedelta(days=1)
    return streak


def longest_streak(logs: Sequence[HabitLog]) -> int:
    """Longest run of consecutive logged days."""
    longest = 0
    current = 0
    last: date | None = None
    for day in sorted({log.day for log in logs}):
        if last is not None and (day - last).days == 1:
            current += 1
        else:
            current = 1
        longest = max(longest, current)
        last = day
    return longest


def completion_rate(created_at: date, logs: Sequence[HabitLog], today: date) -> float:
    """Logs per day since the habit was created (0.0 on the creation day)."""
    if not logs:
        return 0.0
    days = (today - created_at).days
    if days <= 0:
        return 0.0
    return len(logs) / (days + 1)


@dataclass(frozen=True)
class HabitStats:
    """Key stats of a habit: streaks, completion rate and logged days."""

    current_streak: int
    longest_streak: int
    completion_rate: float
    total_days: int


def habit_stats(habit: Habit, today: date) -> HabitStats:
    return HabitStats(
        current_streak=current_streak(habit.logs, today),
        longest_streak=longest_streak(habit.logs),
        completion_rate=completion_rate(habit.created_at, habit.logs, today),
        total_days=len(habit.logs),
    )


def metric_analytics(habit: Habit, today: date) -> MetricAnalytics:
    """Analytics over the metric tracking period of ``habit``.

    Consistency counts check-ins since the first metric entry; before there
    is a full day of tracking it falls back to the habit completion rate.
    """
    entries = tuple(habit.metric_entries)
    fallback = completion_rate(habit.created_at, habit.logs, today)
    if not entries:
        return MetricAnalytics(entries=(), consistency_rate=fallback)

    first_day = min(e.day for e in entries)
    days_since_first = (today - first_day).days
    if days_since_first <= 0:
        return MetricAnalytics(entries=entries, consistency_rate=fallback)

    logs_in_period = [log for log in habit.logs if log.day >= first_day]
    rate = len(logs_in_period) / (days_since_first + 1)
    return MetricAnalytics(entries=entries, consistency_rate=rate)


def _last_entry_day(habit: Habit) -> date | None:
    if not habit.metric_entries:
        return None
    return max(e.day for e in habit.metric_entries)


def is_metric_due(habit: Habit, today: date) -> bool:
    """True when a new measurement is due for an enabled metric."""
    config = habit.metric_config
    if config is None or not config.is_enabled:
        return False
    last = _last_entry_day(habit)
    if last is None:
        return True
    return (today - last).days >= config.tracking_frequency.days_interval


def next_metric_due_date(habit: Habit, today: date) -> date | None:
    """Date the next measurement is due (``today`` if never measured)."""
    config = habit.metric_config
    if config is None or not config.is_enabled:
        return None
    last = _last_entry_day(habit)
    if last is None:
        return today
    return last + timedelta(days=config.tracking_frequency.days_interval)


def entries_frame(entries: Sequence[MetricEntry]) -> pd.DataFrame:
    """Metric entries as a DataFrame sorted by date."""
    rows = [
        {
            "date": e.day,
            "value": e.value,
            "conditions": e.conditions,
            "notes": e.notes,
        }
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=ENTRY_COLUMNS)
    if df.empty:
        return df
    return df.sort_values("date", kind="stable").reset_index(drop=True)
