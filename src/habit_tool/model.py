"""Modelos tipados para hábitos, registros diarios y métricas de resultado."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


@dataclass(frozen=True)
class HabitLog:
    """One completed check-in for a habit (date-based)."""

    day: date
    notes: str | None = None
    satisfaction: int | None = None


@dataclass(frozen=True)
class MetricEntry:
    """One outcome measurement (an observation in a tracked series)."""

    day: date
    value: float
    notes: str | None = None
    conditions: str | None = None


class MetricGoalDirection(Enum):
    """Whether higher or lower metric values are better."""

    HIGHER = "Higher is better"
    LOWER = "Lower is better"

    @property
    def system_icon(self) -> str:
        if self is MetricGoalDirection.HIGHER:
            return "arrow.up.circle.fill"
        return "arrow.down.circle.fill"


class MetricTrend(Enum):
    """Tendencia de la métrica con icono y color de presentación."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"
    NO_DATA = "no_data"

    @property
    def icon(self) -> str:
        return _TREND_ICONS[self]

    @property
    def color(self) -> str:
        return _TREND_COLORS[self]


_TREND_ICONS: dict[MetricTrend, str] = {
    MetricTrend.IMPROVING: "arrow.up.right.circle.fill",
    MetricTrend.STABLE: "arrow.right.circle.fill",
    MetricTrend.DECLINING: "arrow.down.right.circle.fill",
    MetricTrend.NO_DATA: "questionmark.circle.fill",
}

_TREND_COLORS: dict[MetricTrend, str] = {
    MetricTrend.IMPROVING: "#34C759",
    MetricTrend.STABLE: "#007AFF",
    MetricTrend.DECLINING: "#FF9500",
    MetricTrend.NO_DATA: "#8E8E93",
}


@dataclass(frozen=True)
class TrackingFrequency:
    """How often a metric is measured: every ``count`` days or weeks."""

    unit: str = "days"
    count: int = 1

    def __post_init__(self) -> None:
        if self.unit not in ("days", "weeks"):
            raise ValueError(f"Unknown frequency unit: {self.unit}")
        if self.count < 1:
            raise ValueError("Frequency count must be >= 1")

    @property
    def display_text(self) -> str:
        if self.unit == "days":
            return "Daily" if self.count == 1 else f"Every {self.count} days"
        return "Weekly" if self.count == 1 else f"Every {self.count} weeks"

    @property
    def days_interval(self) -> int:
        return self.count if self.unit == "days" else self.count * 7

    @classmethod
    def daily(cls) -> TrackingFrequency:
        return cls("days", 1)

    @classmethod
    def weekly(cls) -> TrackingFrequency:
        return cls("weeks", 1)

    @classmethod
    def biweekly(cls) -> TrackingFrequency:
        return cls("weeks", 2)

    @classmethod
    def monthly(cls) -> TrackingFrequency:
        return cls("days", 30)


@dataclass(frozen=True)
class MetricConfig:
    """Outcome metric configuration attached to a habit."""

    name: str
    unit: str
    goal_direction: MetricGoalDirection = MetricGoalDirection.HIGHER
    tracking_frequency: TrackingFrequency = field(
        default_factory=TrackingFrequency.daily
    )
    is_enabled: bool = True
    reminder_enabled: bool = True
    target_value: float | None = None

    def to_dict(self) -> dict[str, object]:
        """Serializable form, stored as JSON next to the habit."""
        return {
            "name": self.name,
            "unit": self.unit,
            "goal_direction": self.goal_direction.name.lower(),
            "frequency": {
                "type": self.tracking_frequency.unit,
                "count": self.tracking_frequency.count,
            },
            "is_enabled": self.is_enabled,
            "reminder_enabled": self.reminder_enabled,
            "target_value": self.target_value,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, object]) -> MetricConfig:
        freq = raw.get("frequency") or {}
        if not isinstance(freq, dict):
            raise ValueError("Metric frequency must be an object")
        target = raw.get("target_value")
        return cls(
            name=str(raw["name"]),
            unit=str(raw.get("unit", "")),
            goal_direction=MetricGoalDirection[
                str(raw.get("goal_direction", "higher")).upper()
            ],
            tracking_frequency=TrackingFrequency(
                unit=str(freq.get("type", "days")),
                count=int(freq.get("count", 1)),
            ),
            is_enabled=bool(raw.get("is_enabled", True)),
            reminder_enabled=bool(raw.get("reminder_enabled", True)),
            target_value=float(target) if target is not None else None,
        )


@dataclass(frozen=True)
class Habit:
    """Read-only snapshot of a habit with its logs and metric entries."""

    id: int
    identity: str
    action_name: str
    created_at: date
    color: str = "#007AFF"
    icon: str = "star.fill"
    logs: tuple[HabitLog, ...] = ()
    metric_entries: tuple[MetricEntry, ...] = ()
    metric_config: MetricConfig | None = None

    @property
    def has_metric_tracking(self) -> bool:
        return self.metric_config is not None and self.metric_config.is_enabled
