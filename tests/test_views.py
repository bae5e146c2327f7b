from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta

import pytest

from habit_tool import views
from habit_tool.calendar_grid import CalendarMonth, CompletionBand, DayState, WeekStart
from habit_tool.model import (
    Habit,
    HabitLog,
    MetricConfig,
    MetricEntry,
    TrackingFrequency,
)
from habit_tool.views import (
    build_calendar_view,
    build_growth_view,
    build_overview_view,
    entries_table,
    render_calendar,
    render_growth,
    render_overview,
)

TODAY = date(2025, 3, 15)
MARCH = CalendarMonth(2025, 3)
D0 = TODAY - timedelta(days=90)


def _habit(**kwargs: object) -> Habit:
    defaults: dict[str, object] = {
        "id": 7,
        "identity": "I am a runner",
        "action_name": "runs",
        "created_at": D0,
        "color": "#FF3B30",
    }
    defaults.update(kwargs)
    return Habit(**defaults)  # type: ignore[arg-type]


def _metric_habit(*entries: MetricEntry, config: bool = True) -> Habit:
    return _habit(
        metric_entries=entries,
        metric_config=MetricConfig("Body weight", "kg") if config else None,
    )


# --- calendario ---


def test_calendar_view_rows_and_states() -> None:
    habit = _habit(
        logs=(
            HabitLog(date(2025, 3, 1)),
            HabitLog(date(2025, 3, 14), notes="easy 5k", satisfaction=4),
            HabitLog(date(2025, 3, 20)),
        )
    )
    view = build_calendar_view(habit, MARCH, TODAY)

    assert view.title == "March 2025"
    assert view.weekday_headers == ["S", "M", "T", "W", "T", "F", "S"]
    assert [len(r) for r in view.rows] == [7, 7, 7, 7, 7, 2]
    assert view.rows[0][:6] == [None] * 6

    cells = {c.day: c for row in view.rows for c in row if c is not None}
    assert len(cells) == 31
    assert cells[date(2025, 3, 1)].state is DayState.COMPLETED
    assert cells[date(2025, 3, 2)].state is DayState.MISSED
    assert cells[date(2025, 3, 20)].state is DayState.FUTURE
    assert cells[TODAY].is_today
    assert not view.can_go_next
    assert view.selected is None


def test_calendar_view_previous_month_can_go_next() -> None:
    view = build_calendar_view(_habit(), CalendarMonth(2025, 2), TODAY)
    assert view.can_go_next


def test_calendar_view_monday_start() -> None:
    view = build_calendar_view(_habit(), MARCH, TODAY, week_start=WeekStart.MONDAY)
    assert view.weekday_headers[0] == "M"
    assert view.rows[0][:5] == [None] * 5


def test_calendar_view_selected_day_info() -> None:
    habit = _habit(logs=(HabitLog(date(2025, 3, 14), notes="easy 5k", satisfaction=4),))
    view = build_calendar_view(habit, MARCH, TODAY, selected=date(2025, 3, 14))
    assert view.selected is not None
    assert view.selected.completed
    assert view.selected.notes == "easy 5k"
    assert view.selected.satisfaction == 4
    cells = [c for row in view.rows for c in row if c is not None]
    assert [c.day for c in cells if c.is_selected] == [date(2025, 3, 14)]

    missed = build_calendar_view(habit, MARCH, TODAY, selected=date(2025, 3, 2))
    assert missed.selected is not None
    assert not missed.selected.completed
    assert missed.selected.notes is None


def test_calendar_view_invalid_month_renders_nothing() -> None:
    view = build_calendar_view(_habit(), CalendarMonth(2025, 13), TODAY)
    assert view.rows == []


def test_render_calendar_marks_completed_and_today() -> None:
    habit = _habit(logs=(HabitLog(date(2025, 3, 14), notes="easy 5k", satisfaction=4),))
    text = render_calendar(
        build_calendar_view(habit, MARCH, TODAY, selected=date(2025, 3, 14))
    )
    assert text.splitlines()[0] == "runs - March 2025"
    assert "14*" in text
    assert "[15 ]" in text
    assert "31." in text
    assert "Mar 14, 2025: Completed" in text
    assert "Notes: easy 5k" in text
    assert "Satisfaction: ★★★★☆" in text


# --- crecimiento ---


def test_growth_view_projects_30_and_90_days() -> None:
    habit = _metric_habit(
        MetricEntry(day=D0, value=50.0),
        MetricEntry(day=D0 + timedelta(days=45), value=60.0, conditions="rainy"),
        MetricEntry(day=D0 + timedelta(days=80), value=68.0),
    )
    view = build_growth_view(habit, TODAY)

    assert view.header is not None
    assert view.header.name == "Body weight"
    assert view.header.frequency_text == "Tracked daily"
    assert view.header.goal_icon == "arrow.up.circle.fill"
    assert view.improvement == pytest.approx(36.0)
    titles = [c.title for c in view.insights]
    assert titles == ["Current", "Change", "Consistency", "Best"]
    change = view.insights[1]
    assert change.value == "36.0%"
    assert change.unit == "↑"

    assert view.projection is not None
    assert view.projection.days_tracked == 90
    assert view.projection.daily_rate == pytest.approx(0.4)
    assert view.projection.values[30] == pytest.approx(76.16)
    assert view.projection.values[90] == pytest.approx(92.48)

    assert [p[1] for p in view.chart_points] == [50.0, 60.0, 68.0]
    assert [e.value for e in view.entries] == [68.0, 60.0, 50.0]
    assert view.correlation == "Higher consistency could accelerate your progress"


def test_growth_view_omits_sections_without_history() -> None:
    view = build_growth_view(_metric_habit(MetricEntry(day=D0, value=50.0)), TODAY)
    assert view.insights == []
    assert view.chart_points == []
    assert view.projection is None
    assert view.correlation is None
    assert len(view.entries) == 1


def test_growth_view_two_entries_has_no_correlation() -> None:
    view = build_growth_view(
        _metric_habit(MetricEntry(D0, 50.0), MetricEntry(TODAY, 40.0)), TODAY
    )
    assert view.projection is not None
    assert view.correlation is None
    assert view.insights[1].unit == "↓"


def test_growth_view_without_config_has_no_projection() -> None:
    habit = _metric_habit(MetricEntry(D0, 50.0), MetricEntry(TODAY, 60.0), config=False)
    view = build_growth_view(habit, TODAY)
    assert view.header is None
    assert view.projection is None
    assert [c.title for c in view.insights] == ["Change", "Consistency"]


def test_growth_view_guards_projection_call(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []

    def _project(
        series: Sequence[MetricEntry], improvement: float, as_of: date
    ) -> dict[int, float]:
        assert len(series) >= 2
        calls.append(len(series))
        return {30: 1.0, 90: 2.0}

    monkeypatch.setattr(views, "project_growth", _project)

    build_growth_view(_metric_habit(), TODAY)
    build_growth_view(_metric_habit(MetricEntry(D0, 50.0)), TODAY)
    assert calls == []

    two = _metric_habit(MetricEntry(D0, 50.0), MetricEntry(TODAY, 55.0))
    build_growth_view(two, TODAY)
    assert calls == [2]


def test_render_growth_text() -> None:
    habit = _metric_habit(
        MetricEntry(day=D0, value=50.0),
        MetricEntry(day=D0 + timedelta(days=80), value=68.0, notes="new best"),
    )
    text = render_growth(build_growth_view(habit, TODAY))
    assert text.startswith("Body weight\nTracked daily")
    assert "Current     68.0 kg" in text
    assert "In 30 days: 76.2 kg" in text
    assert "In 90 days: 92.5 kg" in text
    assert "new best" in text


def test_render_growth_empty() -> None:
    text = render_growth(build_growth_view(_metric_habit(), TODAY))
    assert text.endswith("No entries yet")


def test_entries_table_newest_first_without_nan() -> None:
    table = entries_table(
        [MetricEntry(D0, 50.0), MetricEntry(TODAY, 52.25, conditions="windy")]
    )
    lines = table.splitlines()
    assert "Date" in lines[0] and "Value" in lines[0]
    assert "15/03/2025" in lines[1]
    assert "52.25" in lines[1]
    assert "nan" not in table.lower()
    assert "None" not in table
    assert entries_table([]) == ""


def test_growth_view_shows_streaks_average_and_next_measurement() -> None:
    habit = _habit(
        logs=(HabitLog(TODAY - timedelta(days=1)), HabitLog(TODAY)),
        metric_entries=(
            MetricEntry(day=TODAY - timedelta(days=3), value=60.0),
            MetricEntry(day=TODAY - timedelta(days=1), value=62.0),
        ),
        metric_config=MetricConfig(
            "Body weight", "kg", tracking_frequency=TrackingFrequency.weekly()
        ),
    )
    view = build_growth_view(habit, TODAY)
    assert view.stats is not None
    assert view.stats.current_streak == 2
    assert view.stats.longest_streak == 2
    assert view.average == pytest.approx(61.0)
    assert view.metric_due is False
    assert view.next_due == TODAY + timedelta(days=6)

    text = render_growth(view)
    assert "Streak      2 days (best 2)" in text
    assert "Average     61.0 kg" in text
    assert "Next measurement: Mar 21, 2025" in text


def test_render_growth_measurement_due_without_entries() -> None:
    text = render_growth(build_growth_view(_metric_habit(), TODAY))
    assert "Measurement due today" in text
    assert "Average" not in text


def test_overview_view_bands_by_share_of_habits_done() -> None:
    day = date(2025, 3, 10)
    habits = [
        _habit(id=1, logs=(HabitLog(day), HabitLog(date(2025, 3, 11)))),
        _habit(id=2, logs=(HabitLog(day),)),
        _habit(id=3, created_at=date(2025, 3, 11)),
    ]
    view = build_overview_view(habits, MARCH, TODAY)
    cells = {c.day: c for row in view.rows for c in row if c is not None}

    assert (cells[day].completed, cells[day].total) == (2, 2)
    assert cells[day].band is CompletionBand.HIGH
    march_11 = cells[date(2025, 3, 11)]
    assert (march_11.completed, march_11.total) == (1, 3)
    assert march_11.band is CompletionBand.LOW
    assert cells[date(2025, 3, 20)].band is CompletionBand.NONE
    assert cells[TODAY].is_today

    text = render_overview(view)
    assert text.splitlines()[0] == "All habits (3) - March 2025"
    assert " 10# " in text
    assert " 11- " in text
