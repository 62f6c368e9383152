"""Timer state dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class TimerState:
    """Snapshot of one named periodic timer."""

    name: str
    interval_days: int
    last_reset: date

    def days_passed(self, today: date) -> int:
        """Whole calendar days since the last reset."""
        return (today - self.last_reset).days

    def is_due(self, today: date) -> bool:
        return self.days_passed(today) >= self.interval_days
