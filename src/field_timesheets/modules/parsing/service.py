from __future__ import annotations

import re
import time
from collections.abc import Sequence
from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from field_timesheets.core.config import settings
from field_timesheets.core.logging import get_logger, log_event, monotonic_ms
from field_timesheets.modules.parsing.classifier import classify_line
from field_timesheets.modules.parsing.models import Entry
from field_timesheets.modules.parsing.normalizer import normalize_entries
from field_timesheets.modules.parsing.segmenter import segment
from field_timesheets.modules.payroll.rates import DEFAULT_RATES

logger = get_logger(__name__)


class TimesheetInputError(ValueError):
    """Input the pipeline cannot work with at all (as opposed to fields it cannot find)."""


def resolve_timezone(tz: str | None) -> ZoneInfo:
    name = (tz or settings.timezone or "").strip()
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TimesheetInputError(f"Unknown time zone: {name!r}") from e


def local_today(tz: str | None = None) -> date:
    return datetime.now(resolve_timezone(tz)).date()


def split_lines(text: object) -> list[str]:
    if not isinstance(text, str):
        raise TimesheetInputError("Timesheet text must be a string.")
    lines = [ln.strip() for ln in re.split(r"\r?\n", text)]
    lines = [ln for ln in lines if ln]
    if not lines:
        raise TimesheetInputError("Timesheet text is empty.")
    return lines


def parse_text_to_entries(
    text: str,
    *,
    today: date | None = None,
    workers: Sequence[str] | None = None,
) -> list[Entry]:
    lines = split_lines(text)
    today = today or local_today()
    roster = tuple(workers) if workers is not None else DEFAULT_RATES.workers

    start = time.monotonic()
    classified = [classify_line(ln, today=today, workers=roster) for ln in lines]
    entries = normalize_entries(segment(classified), today=today)
    log_event(
        logger,
        "parse.text.finish",
        line_count=len(lines),
        entry_count=len(entries),
        missing_worker=sum(1 for e in entries if e.worker is None),
        missing_address=sum(1 for e in entries if e.address is None),
        duration_ms=monotonic_ms(start),
    )
    return entries
