"""Validación de formularios (métrica, check-in, hábito) antes de persistir."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date

from habit_tool.model import HabitLog, MetricEntry

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _optional_text(raw: str) -> str | None:
    text = raw.strip()
    return text if text else None


def parse_metric_value(raw: str) -> float | None:
    """Parse a positive metric value; None when empty, invalid or <= 0."""
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


@dataclass(frozen=True)
class MetricEntryForm:
    """Raw input of the "Log Metric" editor."""

    value: str
    notes: str = ""
    conditions: str = ""

    @property
    def is_valid(self) -> bool:
        return parse_metric_value(self.value) is not None

    def to_entry(self, day: date) -> MetricEntry:
        """Build the entry to save.

        Raises:
            ValueError: If the value is not a positive number.
        """
        value = parse_metric_value(self.value)
        if value is None:
            raise ValueError(f"Metric value must be a positive number: {self.value!r}")
        return MetricEntry(
            day=day,
            value=value,
            notes=_optional_text(self.notes),
            conditions=_optional_text(self.conditions),
        )


@dataclass(frozen=True)
class CheckInForm:
    """Raw input of the check-in editor (satisfaction 1-5 is optional)."""

    notes: str = ""
    satisfaction: str = ""

    def _satisfaction(self) -> int | None:
        raw = self.satisfaction.strip()
        if not raw:
            return None
        try:
            level = int(raw)
        except ValueError:
            raise ValueError(f"Satisfaction must be 1-5: {raw!r}") from None
        if not 1 <= level <= 5:
            raise ValueError(f"Satisfaction must be 1-5: {raw!r}")
        return level

    @property
    def is_valid(self) -> bool:
        try:
            self._satisfaction()
        except ValueError:
            return False
        return True

    def to_log(self, day: date) -> HabitLog:
        return HabitLog(
            day=day,
            notes=_optional_text(self.notes),
            satisfaction=self._satisfaction(),
        )


@dataclass(frozen=True)
class HabitForm:
    """Raw input of the create/edit habit editor."""

    identity: str
    action_name: str
    color: str = "#007AFF"
    icon: str = "star.fill"

    def errors(self) -> list[str]:
        out: list[str] = []
        if not self.identity.strip():
            out.append("Identity is required")
        if not self.action_name.strip():
            out.append("Action is required")
        if not _HEX_COLOR.match(self.color.strip()):
            out.append(f"Color must be #RRGGBB: {self.color!r}")
        return out

    @property
    def is_valid(self) -> bool:
        return not self.errors()

    def cleaned(self) -> dict[str, str]:
        """Normalized field values.

        Raises:
            ValueError: With every validation message joined.
        """
        errors = self.errors()
        if errors:
            raise ValueError("; ".join(errors))
        return {
            "identity": self.identity.strip(),
            "action_name": self.action_name.strip(),
            "color": self.color.strip().upper(),
            "icon": self.icon.strip() or "star.fill",
        }
