from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal

QUARTER_MINUTES = 15
MINUTES_PER_DAY = 24 * 60


@dataclass
class Entry:
    """One candidate timesheet row. Absent fields stay `None` for human review."""

    worker: str | None = None
    date: date | None = None
    address: str | None = None
    unit: str | None = None
    start: time | None = None
    end: time | None = None
    total_hours: float | None = None
    materials: Decimal | None = None
    notes: str = ""
    flags: list[str] = field(default_factory=list)

    def has_times(self) -> bool:
        return self.start is not None and self.end is not None

    def has_hours(self) -> bool:
        """A usable duration: stated hours, or a start/end pair even if it rounds to zero."""
        return bool(self.total_hours) or self.has_times()

    def add_note(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        self.notes = f"{self.notes} {text}" if self.notes.strip() else text

    def flag(self, name: str) -> None:
        if name not in self.flags:
            self.flags.append(name)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def round_quarter(minutes: float) -> int:
    return round_half_up(minutes / QUARTER_MINUTES) * QUARTER_MINUTES


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_to_time(minutes: int) -> time:
    minutes %= MINUTES_PER_DAY
    return time(hour=minutes // 60, minute=minutes % 60)


def span_minutes(start: time, end: time) -> int:
    minutes = time_to_minutes(end) - time_to_minutes(start)
    if minutes < 0:
        minutes += MINUTES_PER_DAY
    return minutes


def hours_between(start: time, end: time) -> float:
    """Quarter-hour rounded duration, wrapping past midnight."""
    return round_quarter(span_minutes(start, end)) / 60
