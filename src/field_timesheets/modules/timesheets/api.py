from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from field_timesheets.core.config import settings
from field_timesheets.modules.parsing.service import TimesheetInputError
from field_timesheets.modules.timesheets.schemas import (
    TimesheetParseIn,
    TimesheetParseOut,
    TimesheetRowOut,
)
from field_timesheets.modules.timesheets.service import build_timesheet

router = APIRouter(tags=["timesheets"])


@router.post("/timesheets/parse", response_model=TimesheetParseOut)
def parse_timesheet_endpoint(payload: TimesheetParseIn) -> TimesheetParseOut:
    try:
        rows = build_timesheet(
            payload.text,
            tz=payload.timezone,
            travel_api_key=settings.google_maps_api_key,
            today=payload.today,
            timeout_seconds=settings.allocation_timeout_seconds,
        )
    except TimesheetInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return TimesheetParseOut(
        rows=[TimesheetRowOut.from_row(r) for r in rows],
        row_count=len(rows),
    )
