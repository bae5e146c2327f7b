"""Proyección de crecimiento de una métrica a 30/90 días."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime

from habit_tool.model import MetricEntry

logger = logging.getLogger(__name__)

DEFAULT_HORIZONS: tuple[int, ...] = (30, 90)


def _as_day(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_tracked(series: Sequence[MetricEntry], as_of: date) -> int:
    """Days from the first observation to ``as_of``, floored at 1."""
    return max(1, (_as_day(as_of) - _as_day(series[0].day)).days)


def daily_change_rate(
    series: Sequence[MetricEntry], improvement_percent: float, as_of: date
) -> float:
    """Percentage points of change per tracked day."""
    return improvement_percent / days_tracked(series, as_of)


def project_growth(
    series: Sequence[MetricEntry],
    improvement_percent: float,
    as_of: date,
    horizons: Sequence[int] = DEFAULT_HORIZONS,
) -> dict[int, float]:
    """Project the latest value forward at each horizon.

    The observed improvement is spread evenly over the tracked days and
    extrapolated linearly: ``latest * (1 + rate * h / 100)``. The view calls
    this a compound effect, but the math is linear.

    Args:
        series: Observations in ascending date order (at least two).
        improvement_percent: Aggregate change between first and latest value.
        as_of: Reference date, usually today.
        horizons: Days ahead to project.

    Returns:
        Mapping horizon -> projected value, in ``horizons`` order.

    Raises:
        ValueError: If the series has fewer than two observations.
    """
    if len(series) < 2:
        raise ValueError("Growth projection needs at least two observations")

    latest = series[-1].value
    rate = daily_change_rate(series, improvement_percent, as_of)
    projected = {h: latest * (1 + (rate * h / 100)) for h in horizons}
    logger.debug(
        "Projected %s from %.4f (rate %.4f%%/day): %s",
        list(horizons),
        latest,
        rate,
        projected,
    )
    return projected
