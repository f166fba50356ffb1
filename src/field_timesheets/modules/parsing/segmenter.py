from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from field_timesheets.modules.parsing.classifier import ClassifiedLine, FieldMatch
from field_timesheets.modules.parsing.models import Entry


@dataclass(frozen=True)
class SegmenterState:
    current: Entry | None = None


def advance(state: SegmenterState, line: ClassifiedLine) -> tuple[SegmenterState, Entry | None]:
    """
    Feed one classified line to the segmenter.

    Returns the next state and the entry finalized by this line, if any. The
    incoming state's entry is never mutated.

    A worker name on a line with a colon is the only reliable block boundary in
    OCR text; everything else either opens a minimal entry or merges into the
    open one with first-writer-wins.
    """
    if line.worker is not None and line.has_colon:
        return SegmenterState(current=_open_block(line)), state.current

    if state.current is None:
        if not line.has_any_field():
            return state, None
        return SegmenterState(current=_open_minimal(line)), None

    return SegmenterState(current=_merge(state.current, line)), None


def finish(state: SegmenterState) -> Entry | None:
    return state.current


def segment(lines: Iterable[ClassifiedLine]) -> list[Entry]:
    state = SegmenterState()
    out: list[Entry] = []
    for line in lines:
        state, emitted = advance(state, line)
        if emitted is not None:
            out.append(emitted)
    last = finish(state)
    if last is not None:
        out.append(last)
    return out


def _open_block(line: ClassifiedLine) -> Entry:
    entry = Entry(worker=line.worker.value)
    claimed = [line.worker, *_fill(entry, line)]
    _note_helper(entry, line)
    if line.label_colon is not None:
        notes_from = line.label_colon + 1
    else:
        notes_from = line.worker.spans[0][1]
    entry.add_note(line.remainder(claimed, start=notes_from))
    return entry


def _open_minimal(line: ClassifiedLine) -> Entry:
    entry = Entry()
    claimed = _fill(entry, line)
    # A bare time range opens an entry for an unknown worker; a name without
    # the colon label is not a block signal.
    if line.worker is not None and line.times is None:
        entry.worker = line.worker.value
        claimed.append(line.worker)
    _note_helper(entry, line)
    entry.add_note(line.remainder(claimed))
    return entry


def _merge(current: Entry, line: ClassifiedLine) -> Entry:
    entry = replace(current, flags=list(current.flags))
    claimed = _fill(entry, line)
    if line.worker is not None and entry.worker is None:
        entry.worker = line.worker.value
        claimed.append(line.worker)
    _note_helper(entry, line)
    entry.add_note(line.remainder(claimed))
    return entry


def _fill(entry: Entry, line: ClassifiedLine) -> list[FieldMatch]:
    """Copy the line's fields into unset slots; return the matches that landed."""
    claimed: list[FieldMatch] = []
    if line.date is not None and entry.date is None:
        entry.date = line.date.value
        claimed.append(line.date)
    if line.address is not None and entry.address is None:
        entry.address = line.address.value
        claimed.append(line.address)
    if line.unit is not None and entry.unit is None:
        entry.unit = line.unit.value
        claimed.append(line.unit)
    if line.times is not None and entry.start is None and entry.end is None:
        entry.start, entry.end = line.times.value
        claimed.append(line.times)
    if line.money is not None and entry.materials is None:
        entry.materials = line.money.value
        claimed.append(line.money)
    if line.helper_hours is not None:
        claimed.append(line.helper_hours)
    return claimed


def _note_helper(entry: Entry, line: ClassifiedLine) -> None:
    if line.helper_hours is not None:
        entry.add_note(f"helper {line.helper_hours.value}hrs.")
