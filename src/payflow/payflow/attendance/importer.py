"""Biometric time-clock export reader.

Turns the raw text of a comma- or tab-delimited export into punches. Rows
that cannot be used are returned as ``SkippedRow`` entries instead of being
raised, so the operator can see what was dropped and why.
"""
from __future__ import annotations

import csv
import logging
import re
from datetime import date, datetime, time
from typing import Optional

from ..core.exceptions import ImportFormatError
from .model import ImportResult, Punch, SkippedRow

logger = logging.getLogger(__name__)

NAME_HEADERS = ("name", "employee name", "fullname", "employee")
DATE_HEADERS = ("date", "date only")
TIME_HEADERS = ("time", "timestamp", "punch time", "datetime", "date/time", "date time")

SKIP_TOO_FEW_COLUMNS = "too_few_columns"
SKIP_HEADER_ECHO = "header_echo"
SKIP_BLANK_NAME = "blank_name"
SKIP_UNPARSEABLE = "unparseable_datetime"

_US_DATE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})")
_ISO_DATE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")
_TIME_12H = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(AM|PM)$", re.IGNORECASE)
_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_COMBINED = re.compile(
    r"(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{1,2}-\d{1,2})[\sT]+(\d{1,2}:\d{2}(?::\d{2})?(?:\s*(?:AM|PM))?)",
    re.IGNORECASE,
)


def detect_delimiter(text: str) -> str:
    head = text.splitlines()[0] if text else ""
    return "\t" if head.count("\t") > head.count(",") else ","


def parse_date(value: str) -> Optional[date]:
    s = (value or "").strip()
    m = _US_DATE.search(s)
    if m:
        month, day, year = int(m.group(1)), int(m.group(2)), int(m.group(3))
    else:
        m = _ISO_DATE.search(s)
        if not m:
            return None
        year, month, day = int(m.group(1)), int(m.group(2)), int(m.group(3))
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_time(value: str) -> Optional[time]:
    """Accept ``H:MM[:SS]`` in 24-hour form or with an AM/PM suffix."""
    s = (value or "").strip()
    m = _TIME_12H.match(s)
    if m:
        hour = int(m.group(1))
        meridiem = m.group(4).upper()
        if meridiem == "PM" and hour != 12:
            hour += 12
        if meridiem == "AM" and hour == 12:
            hour = 0
    else:
        m = _TIME_24H.match(s)
        if not m:
            return None
        hour = int(m.group(1))
    minute = int(m.group(2))
    second = int(m.group(3)) if m.group(3) else 0
    if not (0 <= hour < 24 and 0 <= minute < 60 and 0 <= second < 60):
        return None
    return time(hour, minute, second)


def combine_cells(date_cell: str, time_cell: str = "") -> Optional[datetime]:
    """Build a timestamp from a combined cell, separate cells, or a bare date.

    Tried in that order; a bare date resolves to midnight.
    """
    date_raw = (date_cell or "").strip()

    combo = _COMBINED.search(date_raw)
    if combo:
        d = parse_date(combo.group(1))
        t = parse_time(combo.group(2))
        if d and t:
            return datetime.combine(d, t)

    d = parse_date(date_raw)
    t = parse_time(time_cell or "")
    if d and t:
        return datetime.combine(d, t)
    if d:
        return datetime.combine(d, time.min)
    return None


def _find_column(headers: list[str], names: tuple[str, ...]) -> int:
    for i, h in enumerate(headers):
        if h in names:
            return i
    return -1


def _cell(cols: list[str], idx: int) -> str:
    if idx == -1 or idx >= len(cols):
        return ""
    return (cols[idx] or "").strip()


def _split(line: str, delimiter: str) -> list[str]:
    return next(csv.reader([line], delimiter=delimiter))


def parse_export(raw_text: str) -> ImportResult:
    """Parse an uploaded export into punches plus the rows that were dropped."""
    if not isinstance(raw_text, str):
        raise ImportFormatError("Invalid file content.")

    text = raw_text.lstrip("\ufeff")
    delimiter = detect_delimiter(text)
    numbered = [(i + 1, line) for i, line in enumerate(text.splitlines()) if line.strip()]
    if len(numbered) < 2:
        raise ImportFormatError("File is empty or invalid.")

    headers = [h.strip().lower() for h in _split(numbered[0][1], delimiter)]
    idx_name = _find_column(headers, NAME_HEADERS)
    idx_date = _find_column(headers, DATE_HEADERS)
    idx_time = _find_column(headers, TIME_HEADERS)
    idx_dept = _find_column(headers, ("department",))
    idx_id = _find_column(headers, ("id",))
    idx_device = _find_column(headers, ("device id",))

    if idx_name == -1 or (idx_date == -1 and idx_time == -1):
        raise ImportFormatError("Missing required columns: Name + (Date OR Date/Time).")

    need_max = max(idx_name, idx_date, idx_time)
    punches: list[Punch] = []
    skipped: list[SkippedRow] = []

    for line_number, line in numbered[1:]:
        cols = _split(line, delimiter)
        if len(cols) <= need_max:
            skipped.append(SkippedRow(line_number, line, SKIP_TOO_FEW_COLUMNS))
            continue

        name = _cell(cols, idx_name)
        date_cell = _cell(cols, idx_date)
        time_cell = _cell(cols, idx_time)

        if not name:
            skipped.append(SkippedRow(line_number, line, SKIP_BLANK_NAME))
            continue

        # Exports repeat the header block mid-file
        echoes_header = (
            name.lower() == "name"
            or date_cell.lower() == "date"
            or time_cell.lower() == "time"
            or _cell(cols, idx_dept).lower() == "department"
            or _cell(cols, idx_id).lower() == "id"
            or _cell(cols, idx_device).lower() == "device id"
        )
        if echoes_header:
            skipped.append(SkippedRow(line_number, line, SKIP_HEADER_ECHO))
            continue

        # Without a date column the time column carries the whole timestamp
        if idx_date != -1:
            stamp = combine_cells(date_cell, time_cell)
        else:
            stamp = combine_cells(time_cell)
        if stamp is None:
            skipped.append(SkippedRow(line_number, line, SKIP_UNPARSEABLE))
            continue

        punches.append(Punch(name=name, date_only=stamp.date(), timestamp=stamp))

    for row in skipped:
        logger.debug("Skipped attendance row %d (%s): %r", row.line_number, row.reason, row.raw_line)
    logger.info("Parsed %d punches, skipped %d rows", len(punches), len(skipped))
    return ImportResult(punches=tuple(punches), skipped_rows=tuple(skipped))
