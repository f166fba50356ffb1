from __future__ import annotations

from datetime import date, time
from decimal import Decimal

import pytest

from field_timesheets.modules.parsing.models import Entry, hours_between
from field_timesheets.modules.parsing.normalizer import normalize_entry
from field_timesheets.modules.parsing.service import TimesheetInputError, parse_text_to_entries

SAMPLE = """
Chris: 12/6
12 Main St 8:00 AM - 12:00 PM replaced faucet $45

Chris: 12/6
40 Elm Ave leak repair, helper 2 hrs, gas 18
Myer: Saturday
Hours: 9 - 3 PM shoveled snow at 7 Pine Rd
see you monday
"""


def test_example_line_parses_to_full_entry(today):
    entries = parse_text_to_entries(
        "Jose: 1513 Lafayette 9:00 AM - 5:30 PM Checked water pressure $10", today=today
    )
    assert len(entries) == 1
    entry = entries[0]
    assert entry.worker == "Jose"
    assert entry.address == "1513 Lafayette"
    assert entry.start == time(9, 0)
    assert entry.end == time(17, 30)
    assert entry.total_hours == 8.5
    assert entry.materials == Decimal("10")
    assert entry.notes == "Checked water pressure"
    assert entry.date == today


def test_multi_entry_text(today):
    entries = parse_text_to_entries(SAMPLE, today=today)
    assert [e.worker for e in entries] == ["Chris", "Chris", "Myer"]

    first, second, third = entries
    assert first.date == date(2026, 12, 6)
    assert first.address == "12 Main St"
    assert first.total_hours == 4.0
    assert first.materials == Decimal("45")
    assert first.notes == "replaced faucet"

    assert second.address == "40 Elm Ave"
    assert second.start is None and second.total_hours is None
    assert second.materials == Decimal("18")
    assert "helper 2hrs." in second.notes

    assert third.date == date(2026, 1, 10)
    assert third.address == "7 Pine Rd"
    assert (third.start, third.end) == (time(9, 0), time(15, 0))
    assert third.total_hours == 6.0


def test_entries_missing_fields_are_kept_for_review(today):
    entries = parse_text_to_entries("12 Main St\nfixed the gate", today=today)
    assert len(entries) == 1
    assert entries[0].worker is None
    assert entries[0].address == "12 Main St"
    assert entries[0].date is None
    assert entries[0].notes == "fixed the gate"


@pytest.mark.parametrize("text", ["", "   \n\t\n", None, 42])
def test_unusable_input_is_rejected(today, text):
    with pytest.raises(TimesheetInputError):
        parse_text_to_entries(text, today=today)


def test_normalizer_backfills_weekday_from_notes(today):
    entry = normalize_entry(Entry(worker="Jose", notes="came back  saturday"), today=today)
    assert entry.date == date(2026, 1, 10)
    assert entry.notes == "came back saturday"


def test_normalizer_defaults_date_only_when_timed(today):
    assert normalize_entry(Entry(notes="no times"), today=today).date is None
    timed = normalize_entry(Entry(start=time(8), end=time(9)), today=today)
    assert timed.date == today


def test_normalizer_rescans_notes_for_money(today):
    entry = normalize_entry(Entry(notes="materials 12.75 helper 2hrs."), today=today)
    assert entry.materials == Decimal("12.75")


def test_normalizer_wraps_past_midnight_and_rounds_to_quarter(today):
    entry = normalize_entry(Entry(start=time(22, 0), end=time(6, 10)), today=today)
    assert entry.total_hours == 8.25


def test_normalizer_keeps_existing_hours(today):
    entry = normalize_entry(
        Entry(start=time(8), end=time(12), total_hours=3.0), today=today
    )
    assert entry.total_hours == 3.0


def test_timed_entries_have_consistent_hours(today):
    text = "\n".join(
        [
            "Jose: 1 Oak St 7:05 - 9:52",
            "Damian: 2 Oak St 11:40 PM - 1:20 AM",
            "Chris: 3 Oak St 6:00 to 6:07",
        ]
    )
    for entry in parse_text_to_entries(text, today=today):
        assert entry.total_hours == hours_between(entry.start, entry.end)
