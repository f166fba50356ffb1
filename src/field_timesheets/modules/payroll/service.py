from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from zoneinfo import ZoneInfo

from field_timesheets.modules.parsing.models import Entry
from field_timesheets.modules.payroll.rates import DEFAULT_RATES, RateTable

DEFAULT_TIMEZONE = "America/New_York"

_CENTS = Decimal("0.01")


def is_weekend(work_date: date | datetime | None, tz: str = DEFAULT_TIMEZONE) -> bool:
    if work_date is None:
        return False
    if isinstance(work_date, datetime):
        # Naive datetimes are taken as UTC instants.
        if work_date.tzinfo is None:
            work_date = work_date.replace(tzinfo=ZoneInfo("UTC"))
        work_date = work_date.astimezone(ZoneInfo(tz)).date()
    return work_date.weekday() >= 5


def compute_pay(
    *,
    worker: str | None,
    work_date: date | datetime | None,
    total_hours: float | Decimal | None,
    tz: str = DEFAULT_TIMEZONE,
    rates: RateTable = DEFAULT_RATES,
) -> Decimal:
    """
    Pay for one row: hours x rate, with the weekend premium for eligible workers.

    Unknown workers have a zero rate. A `date` is a calendar day in the worker's
    zone already; an aware `datetime` is converted to `tz` before the weekday is
    taken.
    """
    hours = Decimal(str(total_hours or 0))
    if hours < 0:
        hours = Decimal("0")
    rate = rates.rate_for(worker)
    if is_weekend(work_date, tz) and rates.is_premium(worker):
        rate = rate * rates.weekend_multiplier
    return (hours * rate).quantize(_CENTS, rounding=ROUND_HALF_UP)


def compute_row_pay(
    entry: Entry, *, tz: str = DEFAULT_TIMEZONE, rates: RateTable = DEFAULT_RATES
) -> Decimal:
    return compute_pay(
        worker=entry.worker,
        work_date=entry.date,
        total_hours=entry.total_hours,
        tz=tz,
        rates=rates,
    )
