from __future__ import annotations

import datetime as dt

from pydantic import BaseModel

from field_timesheets.modules.timesheets.schemas import TimesheetRowOut


class TimesheetExportIn(BaseModel):
    rows: list[TimesheetRowOut]
    week_start: dt.date
    worker: str | None = None
