from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from field_timesheets.modules.parsing.models import Entry
from field_timesheets.modules.payroll.rates import DEFAULT_RATES, RateTable
from field_timesheets.modules.payroll.service import compute_pay, compute_row_pay, is_weekend

SATURDAY = date(2026, 1, 10)
WEDNESDAY = date(2026, 1, 14)


@pytest.mark.parametrize(
    ("worker", "work_date", "hours", "expected"),
    [
        ("Chris", SATURDAY, 8, Decimal("360.00")),
        ("Myer", SATURDAY, 8, Decimal("160.00")),
        ("Jose", WEDNESDAY, 8, Decimal("200.00")),
        ("José", SATURDAY, 2.25, Decimal("84.38")),
        ("Damian", WEDNESDAY, 0.25, Decimal("7.50")),
    ],
)
def test_compute_pay(worker, work_date, hours, expected):
    assert compute_pay(worker=worker, work_date=work_date, total_hours=hours) == expected


def test_unknown_or_missing_worker_is_paid_zero():
    assert compute_pay(worker="Stranger", work_date=SATURDAY, total_hours=8) == Decimal("0.00")
    assert compute_pay(worker=None, work_date=SATURDAY, total_hours=8) == Decimal("0.00")


def test_missing_hours_or_date_do_not_fail():
    assert compute_pay(worker="Chris", work_date=SATURDAY, total_hours=None) == Decimal("0.00")
    assert compute_pay(worker="Chris", work_date=None, total_hours=1) == Decimal("30.00")


def test_row_pay_is_idempotent():
    entry = Entry(worker="Damian", date=SATURDAY, total_hours=5.25)
    assert compute_row_pay(entry) == compute_row_pay(entry) == Decimal("236.25")


def test_weekend_is_taken_in_the_configured_zone():
    # 02:00 UTC Saturday is still Friday evening in New York.
    instant = datetime(2026, 1, 10, 2, 0, tzinfo=timezone.utc)
    assert not is_weekend(instant, "America/New_York")
    assert is_weekend(instant, "UTC")
    assert compute_pay(
        worker="Chris", work_date=instant, total_hours=8, tz="America/New_York"
    ) == Decimal("240.00")


def test_custom_rate_table_rounds_half_up():
    rates = RateTable(rates={"Ana": Decimal("20.02")}, premium_workers=frozenset({"Ana"}))
    # 0.25 * 20.02 * 1.5 = 7.5075
    assert compute_pay(
        worker="Ana", work_date=SATURDAY, total_hours=0.25, rates=rates
    ) == Decimal("7.51")
    assert rates.workers == ("Ana",)


def test_rate_table_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_RATES.rates["Myer"] = Decimal("99")
    assert DEFAULT_RATES.workers == ("Jose", "José", "Damian", "Chris", "Myer")
    assert not DEFAULT_RATES.is_premium("Myer")
