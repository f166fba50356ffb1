from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response

from field_timesheets.modules.exports.schemas import TimesheetExportIn
from field_timesheets.modules.exports.service import build_timesheet_xlsx, export_filename

router = APIRouter(tags=["exports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/exports/timesheet")
def export_timesheet(payload: TimesheetExportIn) -> Response:
    body = build_timesheet_xlsx(
        [r.to_row() for r in payload.rows],
        week_start=payload.week_start,
        worker=payload.worker,
    )
    filename = export_filename(worker=payload.worker, week_start=payload.week_start)
    return Response(
        content=body,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
