from __future__ import annotations

import io
import re
from collections.abc import Iterable
from datetime import date, timedelta

from openpyxl import Workbook
from openpyxl.styles import Font

from field_timesheets.core.logging import get_logger, log_event
from field_timesheets.modules.timesheets.service import PayRow

logger = get_logger(__name__)

SHEET_TITLE = "Timesheet"
COLUMNS: tuple[tuple[str, int], ...] = (
    ("Date", 14),
    ("Address", 40),
    ("Unit #", 10),
    ("Start Time", 12),
    ("End Time", 12),
    ("Total Hours", 12),
    ("Worker", 15),
    ("Worker Pay", 14),
    ("Description", 40),
    ("Materials Cost", 14),
)


def rows_for_week(
    rows: Iterable[PayRow], *, week_start: date, worker: str | None = None
) -> list[PayRow]:
    week_end = week_start + timedelta(days=6)
    out: list[PayRow] = []
    for row in rows:
        if row.date is None or not week_start <= row.date <= week_end:
            continue
        if worker and row.worker != worker:
            continue
        out.append(row)
    return out


def export_filename(*, worker: str | None, week_start: date) -> str:
    safe_worker = re.sub(r"\s+", "-", (worker or "worker").strip()).lower()
    return f"timesheet-{safe_worker}-{week_start.isoformat()}.xlsx"


def build_timesheet_xlsx(
    rows: Iterable[PayRow], *, week_start: date, worker: str | None = None
) -> bytes:
    selected = rows_for_week(rows, week_start=week_start, worker=worker)

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    for col, (header, width) in enumerate(COLUMNS, start=1):
        ws.cell(row=1, column=col, value=header).font = Font(bold=True)
        ws.column_dimensions[ws.cell(row=1, column=col).column_letter].width = width

    for row in selected:
        ws.append(
            [
                row.date,
                row.address or "",
                row.unit or "",
                row.start.strftime("%H:%M") if row.start else "",
                row.end.strftime("%H:%M") if row.end else "",
                float(row.total_hours or 0),
                row.worker or "",
                float(row.pay),
                row.notes or "",
                float(row.materials) if row.materials is not None else "",
            ]
        )

    ws.auto_filter.ref = "A1:J1"

    out = io.BytesIO()
    wb.save(out)
    log_event(
        logger,
        "export.timesheet.built",
        worker=worker,
        week_start=week_start.isoformat(),
        row_count=len(selected),
    )
    return out.getvalue()
