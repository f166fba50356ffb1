from __future__ import annotations

import logging
import re
import time as time_mod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date, time

from field_timesheets.core.config import Settings, settings
from field_timesheets.core.logging import get_logger, log_event, log_exception, monotonic_ms
from field_timesheets.modules.allocation.travel import Deadline, TravelTimeProvider
from field_timesheets.modules.parsing.models import (
    QUARTER_MINUTES,
    Entry,
    hours_between,
    minutes_to_time,
    round_half_up,
    round_quarter,
    time_to_minutes,
)

logger = get_logger(__name__)

DAY_TOTAL_CONFLICT = "day_total_conflict"

DEFAULT_COMPLEXITY_KEYWORDS: tuple[str, ...] = (
    "install",
    "replace",
    "repair",
    "leak",
    "leaking",
    "remove",
    "service",
    "shovel",
    "snow",
    "emergency",
)


@dataclass(frozen=True)
class AllocationConfig:
    complexity_keywords: tuple[str, ...] = DEFAULT_COMPLEXITY_KEYWORDS
    base_weight: int = 1
    keyword_weight: int = 1
    travel_buffer_minutes: int = 15
    default_day_hours: float = 8.0
    day_start: time = time(8, 0)
    discrepancy_tolerance_hours: float = 0.25


DEFAULT_ALLOCATION = AllocationConfig()


def allocation_config_from_settings(s: Settings = settings) -> AllocationConfig:
    return AllocationConfig(
        complexity_keywords=tuple(k.strip().lower() for k in s.complexity_keywords if k.strip()),
        default_day_hours=float(s.default_day_hours),
    )


@dataclass(frozen=True)
class DayTotal:
    hours: float
    source: str
    conflict: bool = False


_STATED_TOTAL_RES = (
    re.compile(
        r"\b(?:day\s+)?total(?:\s+hours)?\s*[:=\-]?\s*(\d+(?:\.\d+)?)(?!\s*[:$\d])", re.I
    ),
    re.compile(r"(?<![\d.:$])(\d+(?:\.\d+)?)\s*(?:hrs?|hours?)\s+(?:day\s+)?total\b", re.I),
)


def stated_total_hours(notes: str | None) -> float | None:
    if not notes:
        return None
    for pattern in _STATED_TOTAL_RES:
        m = pattern.search(notes)
        if m:
            value = float(m.group(1))
            return value if value > 0 else None
    return None


def complexity_weight(text: str | None, config: AllocationConfig = DEFAULT_ALLOCATION) -> int:
    lowered = (text or "").lower()
    weight = config.base_weight
    for keyword in config.complexity_keywords:
        if keyword in lowered:
            weight += config.keyword_weight
    return weight


def day_total_hours(
    rows: Sequence[Entry], config: AllocationConfig = DEFAULT_ALLOCATION
) -> DayTotal:
    """
    Work out how many hours the worker put in that day.

    Priority: a single per-row total, the sum of per-row totals, a total stated
    in the notes, the summed start/end spans, then the configured default.
    A single per-row total that disagrees with the summed rows is reported as a
    conflict rather than reconciled.
    """
    known = [float(r.total_hours) for r in rows if r.total_hours]
    distinct = set(known)
    if len(distinct) == 1:
        single = next(iter(distinct))
        conflict = abs(sum(known) - single) > config.discrepancy_tolerance_hours
        return DayTotal(hours=single, source="single_row_total", conflict=conflict)
    if sum(known) > 0:
        return DayTotal(hours=sum(known), source="summed_rows")

    stated = {v for v in (stated_total_hours(r.notes) for r in rows) if v is not None}
    if len(stated) == 1:
        return DayTotal(hours=stated.pop(), source="stated_in_notes")

    timed = sum(hours_between(r.start, r.end) for r in rows if r.has_times())
    if timed > 0:
        return DayTotal(hours=timed, source="timed_rows", conflict=len(stated) > 1)

    return DayTotal(hours=config.default_day_hours, source="default", conflict=len(stated) > 1)


def group_entries(entries: Iterable[Entry]) -> dict[tuple[str | None, date | None], list[Entry]]:
    groups: dict[tuple[str | None, date | None], list[Entry]] = {}
    for entry in entries:
        groups.setdefault((entry.worker, entry.date), []).append(entry)
    return groups


def allocate_entries(
    entries: Iterable[Entry],
    *,
    travel_provider: TravelTimeProvider | None = None,
    config: AllocationConfig = DEFAULT_ALLOCATION,
    timeout_seconds: float | None = None,
) -> list[Entry]:
    """
    Spread each (worker, date) day total across the stops that lack their own hours.

    Groups are independent. Each one is computed on copies and emitted whole, so
    a slow or failing travel provider only ever downgrades a group to the flat
    travel buffer.
    """
    deadline = Deadline(timeout_seconds)
    out: list[Entry] = []
    for (worker, work_date), rows in group_entries(entries).items():
        out.extend(
            allocate_group(
                rows,
                travel_provider=travel_provider,
                config=config,
                deadline=deadline,
                worker=worker,
                work_date=work_date,
            )
        )
    return out


def allocate_group(
    rows: Sequence[Entry],
    *,
    travel_provider: TravelTimeProvider | None = None,
    config: AllocationConfig = DEFAULT_ALLOCATION,
    deadline: Deadline | None = None,
    worker: str | None = None,
    work_date: date | None = None,
) -> list[Entry]:
    rows = [replace(r, flags=list(r.flags)) for r in rows]
    for r in rows:
        if not r.total_hours and r.has_times():
            r.total_hours = hours_between(r.start, r.end)

    if all(r.has_hours() for r in rows):
        return rows

    start = time_mod.monotonic()
    total = day_total_hours(rows, config)
    if total.conflict:
        for r in rows:
            r.flag(DAY_TOTAL_CONFLICT)
        log_event(
            logger,
            "allocation.day_total.conflict",
            level=logging.WARNING,
            worker=worker,
            date=work_date,
            day_total_hours=total.hours,
            summed_hours=sum(float(r.total_hours or 0) for r in rows),
            source=total.source,
        )

    fixed = [r for r in rows if r.has_hours()]
    targets = [r for r in rows if not r.has_hours()]

    day_minutes = round_half_up(total.hours * 60)
    fixed_minutes = round_half_up(sum(float(r.total_hours) for r in fixed) * 60)
    remainder = max(0, day_minutes - fixed_minutes)

    weights = [complexity_weight(f"{t.address or ''} {t.notes or ''}", config) for t in targets]
    travel, travel_source = _travel_minutes(targets, travel_provider, config, deadline)
    available = max(0, remainder - sum(travel))

    weight_sum = sum(weights) or len(targets)
    shares = [round_half_up(w / weight_sum * available) for w in weights]

    fixed_starts = [time_to_minutes(r.start) for r in fixed if r.start is not None]
    cursor = round_quarter(min(fixed_starts)) if fixed_starts else time_to_minutes(config.day_start)

    starts: list[int] = []
    for i, target in enumerate(targets):
        starts.append(cursor)
        target.start = minutes_to_time(cursor)
        end = cursor + shares[i]
        target.end = minutes_to_time(end)
        target.total_hours = round_quarter(shares[i]) / 60
        leg = travel[i] if i < len(travel) else 0
        cursor = round_quarter(end + leg)
        # Snapping down must not start the next stop before this one ends.
        if cursor < end:
            cursor += QUARTER_MINUTES

    _cap_targets(targets, starts, cap_minutes=max(0, day_minutes + QUARTER_MINUTES - fixed_minutes))

    log_event(
        logger,
        "allocation.group.allocated",
        worker=worker,
        date=work_date,
        day_total_hours=total.hours,
        day_total_source=total.source,
        fixed_count=len(fixed),
        target_count=len(targets),
        travel_source=travel_source,
        travel_minutes=sum(travel),
        available_minutes=available,
        duration_ms=monotonic_ms(start),
    )
    return [*fixed, *targets]


def _travel_minutes(
    targets: Sequence[Entry],
    provider: TravelTimeProvider | None,
    config: AllocationConfig,
    deadline: Deadline | None,
) -> tuple[list[int], str]:
    legs = len(targets) - 1
    if legs <= 0:
        return [], "none"

    fallback = [config.travel_buffer_minutes] * legs
    if provider is None:
        return fallback, "flat_buffer"
    if deadline is not None and deadline.expired():
        log_event(
            logger,
            "allocation.travel.deadline",
            level=logging.WARNING,
            pairs_resolved=0,
            pairs_total=legs,
        )
        return fallback, "flat_buffer"

    addresses = [t.address or t.notes or "Unknown" for t in targets]
    try:
        durations = provider.durations(addresses, deadline=deadline)
    except Exception:  # noqa: BLE001
        log_exception(logger, "allocation.travel.error", pairs_total=legs)
        return fallback, "flat_buffer"

    if durations is None or len(durations) != legs:
        return fallback, "flat_buffer"
    return [max(0, int(d)) for d in durations], "provider"


def _cap_targets(targets: Sequence[Entry], starts: Sequence[int], *, cap_minutes: int) -> None:
    """Trim quarter hours off the last targets until they fit under `cap_minutes`."""
    allotted = [round_half_up(float(t.total_hours) * 60) for t in targets]
    excess = sum(allotted) - cap_minutes
    idx = len(targets) - 1
    while excess > 0 and idx >= 0:
        if allotted[idx] <= 0:
            idx -= 1
            continue
        cut = min(allotted[idx], QUARTER_MINUTES)
        allotted[idx] -= cut
        excess -= cut
        targets[idx].total_hours = allotted[idx] / 60
        targets[idx].end = minutes_to_time(starts[idx] + allotted[idx])
