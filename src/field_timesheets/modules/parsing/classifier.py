from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, time, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from field_timesheets.modules.payroll.rates import DEFAULT_RATES

Span = tuple[int, int]


@dataclass(frozen=True)
class FieldMatch:
    value: Any
    spans: tuple[Span, ...]
    rule: str


@dataclass(frozen=True)
class ClassifiedLine:
    text: str
    worker: FieldMatch | None = None
    date: FieldMatch | None = None
    times: FieldMatch | None = None
    money: FieldMatch | None = None
    helper_hours: FieldMatch | None = None
    address: FieldMatch | None = None
    unit: FieldMatch | None = None
    label_colon: int | None = None

    @property
    def has_colon(self) -> bool:
        return ":" in self.text

    def has_any_field(self) -> bool:
        return any((self.worker, self.date, self.times, self.money, self.address))

    def remainder(self, claimed: Iterable[FieldMatch | None], *, start: int = 0) -> str:
        """Text from `start` onward with the claimed spans cut out."""
        spans = sorted(s for m in claimed if m is not None for s in m.spans)
        pieces: list[str] = []
        pos = start
        for s, e in spans:
            if e <= pos:
                continue
            if s > pos:
                pieces.append(self.text[pos:s])
            pos = max(pos, e)
            pieces.append(" ")
        pieces.append(self.text[pos:])
        collapsed = re.sub(r"\s+", " ", "".join(pieces))
        collapsed = re.sub(r"\s+([,.;])", r"\1", collapsed)
        collapsed = re.sub(r"([,;])[,;]+", r"\1", collapsed)
        return collapsed.strip(_SEPARATORS)


_SEPARATORS = " \t,;:-–—|"

# --- time ranges ----------------------------------------------------------

_MERIDIEM = r"(?:\s*([ap])\.?\s?m\b\.?)?"
_RANGE_SEP = r"\s*(?:[-–—]{1,3}|to\b)\s*"

_CLOCK_RANGE_RE = re.compile(
    r"(?<![\d:])(\d{1,2}):(\d{2})" + _MERIDIEM + _RANGE_SEP + r"(\d{1,2}):(\d{2})" + _MERIDIEM,
    re.I,
)
_HOURS_PREFIX_RE = re.compile(
    r"\bhours?\s*[:\-]?\s*(\d{1,2})(?::(\d{2}))?"
    + _MERIDIEM
    + _RANGE_SEP
    + r"(\d{1,2})(?::(\d{2}))?"
    + _MERIDIEM,
    re.I,
)
_STARTED_RE = re.compile(r"\bstart(?:ed)?\s+at\s+(\d{1,2})(?::(\d{2}))?" + _MERIDIEM, re.I)
_STOPPED_RE = re.compile(r"\bstop(?:ped)?\s+(?:at\s+)?(\d{1,2})(?::(\d{2}))?" + _MERIDIEM, re.I)

_TIME_ONLY_RE = re.compile(r"^\s*(?:\d{1,2}:\d{2})?\s*(?:[ap]\.?\s?m\.?)?\s*$", re.I)


def to_clock(hour: str, minute: str | None, meridiem: str | None) -> time | None:
    hh = int(hour)
    mm = int(minute) if minute else 0
    if mm > 59:
        return None
    if meridiem:
        if not 1 <= hh <= 12:
            return None
        pm = meridiem.lower() == "p"
        if pm and hh < 12:
            hh += 12
        elif not pm and hh == 12:
            hh = 0
    if hh > 23:
        return None
    return time(hour=hh, minute=mm)


def _range_from(m: re.Match, rule: str) -> FieldMatch | None:
    h1, m1, ap1, h2, m2, ap2 = m.groups()
    start = to_clock(h1, m1, ap1)
    end = to_clock(h2, m2, ap2)
    if start is None or end is None:
        return None
    return FieldMatch(value=(start, end), spans=(m.span(),), rule=rule)


def find_clock_range(text: str, today: date) -> FieldMatch | None:
    for m in _CLOCK_RANGE_RE.finditer(text):
        found = _range_from(m, "clock_range")
        if found:
            return found
    return None


def find_hours_prefix_range(text: str, today: date) -> FieldMatch | None:
    m = _HOURS_PREFIX_RE.search(text)
    return _range_from(m, "hours_prefix") if m else None


def find_started_stopped(text: str, today: date) -> FieldMatch | None:
    ms = _STARTED_RE.search(text)
    me = _STOPPED_RE.search(text)
    if not ms or not me:
        return None
    start = to_clock(*ms.groups())
    end = to_clock(*me.groups())
    if start is None or end is None:
        return None
    return FieldMatch(value=(start, end), spans=(ms.span(), me.span()), rule="started_stopped")


# --- dates ----------------------------------------------------------------

_WEEKDAYS = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}
_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}  # fmt: skip

_SLASH_DATE_RE = re.compile(
    r"(?<![\d/:.$])(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?(?![\d/:])"
    r"(?!\s*(?:in\b|inch|\"))"
)
_DASH_DATE_RE = re.compile(r"(?<![\d\-:.$])(\d{1,2})-(\d{1,2})-(\d{4}|\d{2})(?![\d\-:])")
_MONTH_NAME_RE = re.compile(
    r"\b(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?\s+"
    r"(\d{1,2})(?:st|nd|rd|th)?\b(?!:\d)(?:,?\s*(\d{4})\b)?",
    re.I,
)
_WEEKDAY_RE = re.compile(
    r"\b(monday|tuesday|wednesday|thursday|friday|saturday|sunday"
    r"|mon|tues?|wed|thu(?:rs?)?|fri|sat|sun)\b",
    re.I,
)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _year(raw: str | None, today: date) -> int:
    if not raw:
        return today.year
    return 2000 + int(raw) if len(raw) == 2 else int(raw)


def find_numeric_date(text: str, today: date) -> FieldMatch | None:
    for pattern in (_SLASH_DATE_RE, _DASH_DATE_RE):
        for m in pattern.finditer(text):
            mm, dd, yy = m.groups()
            value = _safe_date(_year(yy, today), int(mm), int(dd))
            if value:
                return FieldMatch(value=value, spans=(m.span(),), rule="numeric_date")
    return None


def find_month_name_date(text: str, today: date) -> FieldMatch | None:
    for m in _MONTH_NAME_RE.finditer(text):
        month, dd, yy = m.groups()
        value = _safe_date(_year(yy, today), _MONTHS[month[:3].lower()], int(dd))
        if value:
            return FieldMatch(value=value, spans=(m.span(),), rule="month_name_date")
    return None


def resolve_weekday(name: str, today: date) -> date | None:
    """Most recent date on or before `today` falling on the named weekday."""
    target = _WEEKDAYS.get(name[:3].lower())
    if target is None:
        return None
    return today - timedelta(days=(today.weekday() - target) % 7)


def find_weekday_date(text: str, today: date) -> FieldMatch | None:
    m = _WEEKDAY_RE.search(text)
    if not m:
        return None
    value = resolve_weekday(m.group(1), today)
    if value is None:
        return None
    return FieldMatch(value=value, spans=(m.span(),), rule="weekday")


# --- money and helper hours -------------------------------------------------

_DOLLAR_RE = re.compile(r"\$\s*(\d{1,3}(?:,\d{3})+(?:\.\d{1,2})?|\d+(?:\.\d{1,2})?)(?![\d:]|,\d)")
_KEYWORD_MONEY_RE = re.compile(
    r"\b(?:gas|materials?|helper|paid|cost|charge|fee)s?\b\s*[:\-]?\s*\$?\s*"
    r"(\d+(?:\.\d{1,2})?)(?![\d:])(?!\s*(?:hrs?|hours?)\b)",
    re.I,
)
_HELPER_HOURS_RE = re.compile(r"\bhelper\s*[:\-]?\s*(\d+(?:\.\d+)?)\s*(?:hrs?|hours?)\b\.?", re.I)


def _amount(raw: str) -> Decimal | None:
    try:
        return Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None


def find_dollar_amount(text: str, today: date) -> FieldMatch | None:
    m = _DOLLAR_RE.search(text)
    if not m:
        return None
    value = _amount(m.group(1))
    return FieldMatch(value=value, spans=(m.span(),), rule="dollar") if value is not None else None


def find_keyword_amount(text: str, today: date) -> FieldMatch | None:
    m = _KEYWORD_MONEY_RE.search(text)
    if not m:
        return None
    value = _amount(m.group(1))
    # Only the amount is claimed; the keyword stays in notes as context.
    if value is None:
        return None
    return FieldMatch(value=value, spans=(m.span(1),), rule="keyword")


def find_helper_hours(text: str, today: date) -> FieldMatch | None:
    m = _HELPER_HOURS_RE.search(text)
    if not m:
        return None
    return FieldMatch(value=m.group(1), spans=(m.span(),), rule="helper_hours")


# --- unit and address ---------------------------------------------------------

_UNIT_RE = re.compile(
    r"(?:\b(?:unit|apt|apartment|suite|ste)\b\.?\s*#?|#)\s*(\d+[a-z]?|[a-z]\d*)\b", re.I
)
_STREET_TYPES = (
    r"(?i:st|street|ave|avenue|rd|road|blvd|boulevard|dr|drive|ln|lane|ct|court|way"
    r"|pl|place|ter|terrace|pkwy|parkway|hwy|highway|cir|circle|sq|square)"
)
_DURATION_WORD = r"(?!(?i:hrs?|hours?|mins?|minutes?)\b)"
_NUMBERED_STREET_RE = re.compile(
    r"\b\d{1,6}[A-Za-z]?\s+"
    + _DURATION_WORD
    + r"(?:[A-Za-z0-9.'-]+\s+){0,4}?"
    + _STREET_TYPES
    + r"\b\.?"
)
_NAMED_STREET_RE = re.compile(r"\b(?:[A-Z][A-Za-z.'-]*\s+){1,3}" + _STREET_TYPES + r"\b\.?")
_LEADING_NUMBER_RE = re.compile(
    r"^(?:(?i:jobs?)\s*[:\-]?\s*)?"
    r"(\d{1,6}[A-Za-z]?\s+" + _DURATION_WORD + r"[A-Za-z][\w'.-]{2,}.*)$"
)
_PHONE_RE = re.compile(r"(?<!\d)(?:\(\d{3}\)\s*|\d{3}[-.\s])\d{3}[-.\s]\d{4}(?!\d)")

# Beyond this many words a leading-number chunk is taken to run into the notes.
_MAX_BARE_ADDRESS_WORDS = 4


def find_unit(text: str, today: date) -> FieldMatch | None:
    m = _UNIT_RE.search(text)
    if not m:
        return None
    return FieldMatch(value=m.group(1).upper(), spans=(m.span(),), rule="unit")


def _street_address(chunk: str) -> Span | None:
    m = _NUMBERED_STREET_RE.search(chunk) or _NAMED_STREET_RE.search(chunk)
    return m.span() if m else None


def _numbered_address(chunk: str) -> Span | None:
    m = _LEADING_NUMBER_RE.match(chunk)
    if not m:
        return None
    words = m.group(1).split()
    if len(words) > _MAX_BARE_ADDRESS_WORDS:
        words = words[:2]
    start = m.start(1)
    end = start + len(re.match(r"\s*".join(map(re.escape, words)), chunk[start:]).group(0))
    return start, end


def _phone_address(chunk: str) -> Span | None:
    return (0, len(chunk)) if _PHONE_RE.search(chunk) else None


ADDRESS_RULES: Sequence[tuple[str, Callable[[str], Span | None]]] = (
    ("street_type", _street_address),
    ("leading_number", _numbered_address),
    ("phone", _phone_address),
)


def _gaps(text: str, claimed: Iterable[FieldMatch | None]) -> Iterable[tuple[int, str]]:
    spans = sorted(s for m in claimed if m is not None for s in m.spans)
    pos = 0
    for s, e in [*spans, (len(text), len(text))]:
        if s > pos:
            raw = text[pos:s]
            body = raw.strip(_SEPARATORS)
            if body:
                yield pos + raw.index(body), body
        pos = max(pos, e)


def find_address(text: str, claimed: Iterable[FieldMatch | None]) -> FieldMatch | None:
    if _TIME_ONLY_RE.match(text):
        return None
    for offset, chunk in _gaps(text, claimed):
        if _TIME_ONLY_RE.match(chunk):
            continue
        for rule, extract in ADDRESS_RULES:
            span = extract(chunk)
            if span is None:
                continue
            s, e = span
            value = chunk[s:e].strip(_SEPARATORS + ".")
            if value:
                return FieldMatch(value=value, spans=((offset + s, offset + e),), rule=rule)
    return None


# --- workers ----------------------------------------------------------------

_LABEL_COLON_RE = re.compile(r"(?<!\d):|:(?!\d)")


def find_worker(text: str, workers: Sequence[str]) -> FieldMatch | None:
    for name in workers:
        m = re.search(rf"\b{re.escape(name)}\b", text, re.I)
        if m:
            return FieldMatch(value=name, spans=(m.span(),), rule="roster")
    return None


# --- composition ------------------------------------------------------------

Extractor = Callable[[str, date], FieldMatch | None]

DATE_RULES: Sequence[Extractor] = (find_numeric_date, find_month_name_date, find_weekday_date)
TIME_RULES: Sequence[Extractor] = (
    find_hours_prefix_range,
    find_clock_range,
    find_started_stopped,
)
MONEY_RULES: Sequence[Extractor] = (find_dollar_amount, find_keyword_amount)


def first_match(rules: Iterable[Extractor], text: str, today: date) -> FieldMatch | None:
    for rule in rules:
        found = rule(text, today)
        if found is not None:
            return found
    return None


def find_money(text: str, today: date) -> FieldMatch | None:
    return first_match(MONEY_RULES, text, today)


def classify_line(
    line: str, *, today: date, workers: Sequence[str] = DEFAULT_RATES.workers
) -> ClassifiedLine:
    text = line.strip()
    worker = find_worker(text, workers)
    times = first_match(TIME_RULES, text, today)
    money = first_match(MONEY_RULES, text, today)
    helper = find_helper_hours(text, today)
    unit = find_unit(text, today)
    when = _date_outside(text, today, (times, money, helper, unit))
    address = find_address(text, (worker, when, times, money, helper, unit))
    colon = _LABEL_COLON_RE.search(text)
    return ClassifiedLine(
        text=text,
        worker=worker,
        date=when,
        times=times,
        money=money,
        helper_hours=helper,
        address=address,
        unit=unit,
        label_colon=colon.start() if colon else None,
    )


def _date_outside(
    text: str, today: date, claimed: tuple[FieldMatch | None, ...]
) -> FieldMatch | None:
    found = first_match(DATE_RULES, text, today)
    if found is None:
        return None
    for other in claimed:
        if other is None:
            continue
        for s, e in other.spans:
            if s < found.spans[0][1] and found.spans[0][0] < e:
                return None
    return found
