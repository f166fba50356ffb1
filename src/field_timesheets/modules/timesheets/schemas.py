from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer

from field_timesheets.modules.timesheets.service import PayRow


class TimesheetParseIn(BaseModel):
    text: str
    timezone: str | None = None
    today: dt.date | None = None


class TimesheetRowOut(BaseModel):
    date: dt.date | None = None
    address: str | None = None
    unit: str | None = None
    start: dt.time | None = None
    end: dt.time | None = None
    total_hours: float = 0.0
    worker: str | None = None
    pay: Decimal = Decimal("0.00")
    materials: Decimal | None = None
    notes: str = ""
    flags: list[str] = Field(default_factory=list)

    @field_serializer("start", "end")
    def _clock(self, value: dt.time | None) -> str | None:
        return value.strftime("%H:%M") if value is not None else None

    @classmethod
    def from_row(cls, row: PayRow) -> TimesheetRowOut:
        return cls(
            date=row.date,
            address=row.address,
            unit=row.unit,
            start=row.start,
            end=row.end,
            total_hours=row.total_hours,
            worker=row.worker,
            pay=row.pay,
            materials=row.materials,
            notes=row.notes,
            flags=list(row.flags),
        )

    def to_row(self) -> PayRow:
        return PayRow(
            date=self.date,
            address=self.address,
            unit=self.unit,
            start=self.start,
            end=self.end,
            total_hours=self.total_hours,
            worker=self.worker,
            pay=self.pay,
            materials=self.materials,
            notes=self.notes,
            flags=tuple(self.flags),
        )


class TimesheetParseOut(BaseModel):
    rows: list[TimesheetRowOut]
    row_count: int
