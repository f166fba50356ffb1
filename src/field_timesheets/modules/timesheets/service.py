from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import date
from datetime import time as clock
from decimal import Decimal

from field_timesheets.core.config import settings
from field_timesheets.core.logging import get_logger, log_event, monotonic_ms, timesheet_run
from field_timesheets.modules.allocation.service import (
    AllocationConfig,
    allocate_entries,
    allocation_config_from_settings,
)
from field_timesheets.modules.allocation.travel import provider_for
from field_timesheets.modules.parsing.models import Entry
from field_timesheets.modules.parsing.service import (
    local_today,
    parse_text_to_entries,
    resolve_timezone,
)
from field_timesheets.modules.payroll.rates import DEFAULT_RATES, RateTable
from field_timesheets.modules.payroll.service import compute_row_pay

logger = get_logger(__name__)


@dataclass(frozen=True)
class PayRow:
    date: date | None
    address: str | None
    unit: str | None
    start: clock | None
    end: clock | None
    total_hours: float
    worker: str | None
    pay: Decimal
    materials: Decimal | None
    notes: str
    flags: tuple[str, ...] = ()

    @classmethod
    def from_entry(cls, entry: Entry, *, pay: Decimal) -> PayRow:
        return cls(
            date=entry.date,
            address=entry.address,
            unit=entry.unit,
            start=entry.start,
            end=entry.end,
            total_hours=float(entry.total_hours or 0),
            worker=entry.worker,
            pay=pay,
            materials=entry.materials,
            notes=entry.notes,
            flags=tuple(entry.flags),
        )


def price_entries(
    entries: list[Entry], *, tz: str, rates: RateTable = DEFAULT_RATES
) -> list[PayRow]:
    return [PayRow.from_entry(e, pay=compute_row_pay(e, tz=tz, rates=rates)) for e in entries]


def build_timesheet(
    text: str,
    *,
    tz: str | None = None,
    travel_api_key: str | None = None,
    today: date | None = None,
    rates: RateTable = DEFAULT_RATES,
    allocation: AllocationConfig | None = None,
    timeout_seconds: float | None = None,
) -> list[PayRow]:
    """
    Raw OCR/free text in, reviewable pay rows out.

    `travel_api_key` enables travel-time lookups between stops; without it
    (or when the lookups fail) a flat buffer is used between stops.
    """
    tz_name = (tz or settings.timezone).strip()
    resolve_timezone(tz_name)

    with timesheet_run():
        start = time.monotonic()
        entries = parse_text_to_entries(
            text, today=today or local_today(tz_name), workers=rates.workers
        )
        allocated = allocate_entries(
            entries,
            travel_provider=provider_for(
                travel_api_key, timeout_seconds=settings.travel_time_timeout_seconds
            ),
            config=allocation or allocation_config_from_settings(),
            timeout_seconds=timeout_seconds,
        )
        rows = price_entries(allocated, tz=tz_name, rates=rates)
        log_event(
            logger,
            "timesheet.build.finish",
            timezone=tz_name,
            row_count=len(rows),
            flagged_rows=sum(1 for r in rows if r.flags),
            travel_lookups=bool(travel_api_key),
            duration_ms=monotonic_ms(start),
        )
        return rows
