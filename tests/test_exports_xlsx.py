from __future__ import annotations

import io
from datetime import date, time
from decimal import Decimal

from fastapi.testclient import TestClient
from openpyxl import load_workbook

from field_timesheets.main import app
from field_timesheets.modules.exports.service import COLUMNS, build_timesheet_xlsx, rows_for_week
from field_timesheets.modules.timesheets.service import PayRow

WEEK = date(2026, 1, 12)


def _row(worker, day, hours=4.0, pay="100.00"):
    return PayRow(
        date=day,
        address="12 Main St",
        unit=None,
        start=time(8, 0),
        end=time(12, 0),
        total_hours=hours,
        worker=worker,
        pay=Decimal(pay),
        materials=None,
        notes="replaced trap",
    )


def test_rows_for_week_filters_dates_and_worker():
    rows = [
        _row("Jose", WEEK),
        _row("Jose", date(2026, 1, 18)),
        _row("Jose", date(2026, 1, 19)),
        _row("Chris", WEEK),
        _row("Jose", None),
    ]
    assert len(rows_for_week(rows, week_start=WEEK)) == 3
    selected = rows_for_week(rows, week_start=WEEK, worker="Jose")
    assert [r.date for r in selected] == [WEEK, date(2026, 1, 18)]


def test_xlsx_layout():
    body = build_timesheet_xlsx(
        [_row("Jose", WEEK), _row("Chris", WEEK, pay="120.00")], week_start=WEEK, worker="Jose"
    )
    wb = load_workbook(io.BytesIO(body))
    ws = wb["Timesheet"]

    assert [c.value for c in ws[1]] == [h for h, _ in COLUMNS]
    assert all(c.font.bold for c in ws[1])
    assert ws.auto_filter.ref == "A1:J1"
    assert ws.max_row == 2

    data = [c.value for c in ws[2]]
    assert data[0].date() == WEEK
    assert data[1] == "12 Main St"
    assert data[3:8] == ["08:00", "12:00", 4, "Jose", 100]
    assert data[8] == "replaced trap"


def test_export_endpoint_sets_attachment_filename():
    client = TestClient(app)
    r = client.post(
        "/api/exports/timesheet",
        json={
            "week_start": "2026-01-12",
            "worker": "Jose",
            "rows": [
                {
                    "date": "2026-01-13",
                    "address": "12 Main St",
                    "start": "08:00",
                    "end": "12:00",
                    "total_hours": 4,
                    "worker": "Jose",
                    "pay": "100.00",
                    "notes": "replaced trap",
                }
            ],
        },
    )
    assert r.status_code == 200, r.text
    assert r.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert 'filename="timesheet-jose-2026-01-12.xlsx"' in r.headers["content-disposition"]
    ws = load_workbook(io.BytesIO(r.content))["Timesheet"]
    assert ws.cell(row=2, column=2).value == "12 Main St"
