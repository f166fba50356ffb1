from __future__ import annotations

from datetime import date, time
from decimal import Decimal

from field_timesheets.modules.parsing.classifier import classify_line
from field_timesheets.modules.parsing.models import Entry
from field_timesheets.modules.parsing.segmenter import SegmenterState, advance, segment


def _line(text, today):
    return classify_line(text, today=today)


def test_worker_colon_line_opens_block_and_emits_previous(today):
    previous = Entry(worker="Myer", address="5 Oak St")
    state, emitted = advance(
        SegmenterState(current=previous), _line("Chris: 12 Main St 8:00 - 10:00", today)
    )
    assert emitted is previous
    assert state.current.worker == "Chris"
    assert state.current.address == "12 Main St"
    assert (state.current.start, state.current.end) == (time(8, 0), time(10, 0))


def test_time_range_without_open_entry_opens_unknown_worker_entry(today):
    state, emitted = advance(SegmenterState(), _line("9:00 - 11:30", today))
    assert emitted is None
    assert state.current.worker is None
    assert (state.current.start, state.current.end) == (time(9, 0), time(11, 30))


def test_time_range_with_unlabelled_name_keeps_worker_unknown(today):
    state, emitted = advance(SegmenterState(), _line("Chris started at 8 stopped at 4 pm", today))
    assert emitted is None
    assert state.current.worker is None
    assert (state.current.start, state.current.end) == (time(8, 0), time(16, 0))
    assert "Chris" in state.current.notes


def test_partial_line_without_times_keeps_named_worker(today):
    state, _ = advance(SegmenterState(), _line("Chris 12 Main St", today))
    assert state.current.worker == "Chris"
    assert state.current.address == "12 Main St"


def test_noise_without_open_entry_is_discarded(today):
    state, emitted = advance(SegmenterState(), _line("ok thanks", today))
    assert emitted is None
    assert state.current is None


def test_partial_line_opens_minimal_entry(today):
    state, _ = advance(SegmenterState(), _line("gas $18", today))
    assert state.current.materials == Decimal("18")
    assert state.current.notes == "gas"


def test_merge_is_first_writer_wins(today):
    state, _ = advance(SegmenterState(), _line("Damian: 12 Main St $5", today))
    state, emitted = advance(state, _line("40 Elm St $9 replaced trap", today))
    assert emitted is None
    entry = state.current
    assert entry.address == "12 Main St"
    assert entry.materials == Decimal("5")
    assert "40 Elm St" in entry.notes
    assert "$9" in entry.notes
    assert "replaced trap" in entry.notes


def test_merge_fills_unset_fields(today):
    state, _ = advance(SegmenterState(), _line("Damian: 12 Main St", today))
    state, _ = advance(state, _line("Saturday 8:00 AM - 1:00 PM", today))
    assert state.current.date == date(2026, 1, 10)
    assert (state.current.start, state.current.end) == (time(8, 0), time(13, 0))


def test_helper_hours_become_a_note(today):
    state, _ = advance(SegmenterState(), _line("Jose: 3 Birch Ln", today))
    state, _ = advance(state, _line("helper 2 hrs", today))
    assert state.current.notes == "helper 2hrs."
    assert state.current.materials is None


def test_advance_does_not_mutate_incoming_state(today):
    state, _ = advance(SegmenterState(), _line("Jose: 3 Birch Ln", today))
    before = state.current
    next_state, _ = advance(state, _line("$30 fittings", today))
    assert before.materials is None
    assert before.notes == ""
    assert next_state.current.materials == Decimal("30")


def test_segment_flushes_last_entry(today):
    lines = [
        _line(t, today)
        for t in [
            "Chris: 12 Main St",
            "8:00 AM - 12:00 PM replaced faucet",
            "random noise",
            "Chris: 40 Elm Ave",
            "leak repair",
        ]
    ]
    entries = segment(lines)
    assert [e.address for e in entries] == ["12 Main St", "40 Elm Ave"]
    assert entries[0].notes == "replaced faucet random noise"
    assert entries[1].notes == "leak repair"
