from __future__ import annotations

from datetime import date
from decimal import Decimal

from field_timesheets.modules.parsing.classifier import find_money, find_weekday_date
from field_timesheets.modules.parsing.models import Entry, hours_between


def normalize_entry(entry: Entry, *, today: date) -> Entry:
    """Backfill what the segmenter could not see line-by-line. Mutates and returns `entry`."""
    entry.notes = " ".join(entry.notes.split())

    if entry.date is None and entry.notes:
        weekday = find_weekday_date(entry.notes, today)
        if weekday is not None:
            entry.date = weekday.value

    if entry.date is None and entry.has_times():
        entry.date = today

    if entry.materials is None and entry.notes:
        money = find_money(entry.notes, today)
        if money is not None:
            entry.materials = money.value

    if not entry.total_hours and entry.has_times():
        entry.total_hours = hours_between(entry.start, entry.end)

    if entry.materials is not None:
        entry.materials = Decimal(str(entry.materials))

    return entry


def normalize_entries(entries: list[Entry], *, today: date) -> list[Entry]:
    return [normalize_entry(e, today=today) for e in entries]
