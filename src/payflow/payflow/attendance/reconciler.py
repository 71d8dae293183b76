from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from ..common.datetime_utils import at_time, minute_of_day, parse_hhmm
from ..core.constants import (
    HALF_DAY_HOURS,
    LUNCH_END,
    LUNCH_START,
    MAX_DAILY_HOURS,
    SHIFT_START,
    TIME_IN_WINDOW_END,
    TIME_IN_WINDOW_START,
    TIME_OUT_WINDOW_START,
)
from ..core.exceptions import ValidationError
from .factory import ShiftRuleFactory, normalize_alias
from .model import AttendanceRecord, CutoffWindow, Punch
from .strategies.base import ShiftRule

logger = logging.getLogger(__name__)

_MINUTE = timedelta(minutes=1)


def is_time_in_candidate(moment: datetime) -> bool:
    return TIME_IN_WINDOW_START <= minute_of_day(moment) <= TIME_IN_WINDOW_END


def is_time_out_candidate(moment: datetime) -> bool:
    return minute_of_day(moment) >= TIME_OUT_WINDOW_START


def _overlap_minutes(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> int:
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    return max(0, (end - start) // _MINUTE)


def compute_hours_worked(time_in: Optional[datetime], time_out: Optional[datetime], rule: ShiftRule) -> float:
    """Hours inside the shift window, lunch overlap removed, capped at 8.

    Overtime never shows up here; it is paid from approved OT requests.
    """
    if time_in is None or time_out is None:
        return 0.0

    start = max(time_in, at_time(time_in, SHIFT_START))
    end = min(time_out, at_time(time_in, rule.shift_end()))
    if end <= start:
        return 0.0

    minutes = (end - start) // _MINUTE
    minutes -= _overlap_minutes(start, end, at_time(start, LUNCH_START), at_time(start, LUNCH_END))
    minutes = max(0, min(minutes, MAX_DAILY_HOURS * 60))
    return round(minutes / 60, 3)


def snap_days(hours: float) -> float:
    """``hours / 8`` snapped to 0, 0.5, 1, 1.5, ... with quarter-day bands."""
    days = hours / MAX_DAILY_HOURS
    if 0.75 <= days < 1.25:
        return 1.0
    if 0.25 <= days < 0.75:
        return 0.5
    if days < 0.25:
        return 0.0
    return math.floor(days * 2 + 0.5) / 2


def compute_tardiness_minutes(time_in: Optional[datetime]) -> int:
    """Whole minutes after 07:00 sharp; there is no grace period."""
    if time_in is None:
        return 0
    shift_start = at_time(time_in, SHIFT_START)
    if time_in <= shift_start:
        return 0
    return (time_in - shift_start) // _MINUTE


class AttendanceReconciler:
    """Turns punches into per-employee, per-day attendance records for one cutoff."""

    def __init__(self, *, rules: ShiftRuleFactory | None = None):
        self._rules = rules or ShiftRuleFactory()

    @property
    def rules(self) -> ShiftRuleFactory:
        return self._rules

    def build_record(
        self,
        *,
        name: str,
        work_date: date,
        time_in: Optional[datetime],
        time_out: Optional[datetime],
    ) -> AttendanceRecord:
        rule = self._rules.for_employee(name)

        if (time_in is None) != (time_out is None):
            # Half-day policy for a single usable punch
            hours = HALF_DAY_HOURS
        else:
            hours = compute_hours_worked(time_in, time_out, rule)

        days = snap_days(hours)
        if rule.forces_full_day(time_out):
            days = 1.0

        return AttendanceRecord(
            employee_key=f"{normalize_alias(name)}__{work_date.isoformat()}",
            name=name,
            work_date=work_date,
            time_in=time_in,
            time_out=time_out,
            hours_worked=hours,
            days_worked=days,
            tardiness_minutes=compute_tardiness_minutes(time_in),
        )

    def process(self, punches: Iterable[Punch], window: CutoffWindow) -> list[AttendanceRecord]:
        """Group punches in ``window`` by (name, day) and reconcile each group.

        Time-in is the earliest punch from 06:00 to 13:59, time-out the latest
        punch from 16:00 on; anything else is ignored.
        """
        grouped: dict[tuple[str, date], tuple[str, list[datetime]]] = {}
        for p in punches:
            if not window.contains(p.timestamp):
                continue
            key = (normalize_alias(p.name), p.date_only)
            if key not in grouped:
                grouped[key] = (p.name, [])
            grouped[key][1].append(p.timestamp)

        records: list[AttendanceRecord] = []
        for (_, work_date), (name, times) in grouped.items():
            times.sort()
            ins = [t for t in times if is_time_in_candidate(t)]
            outs = [t for t in times if is_time_out_candidate(t)]
            records.append(
                self.build_record(
                    name=name,
                    work_date=work_date,
                    time_in=ins[0] if ins else None,
                    time_out=outs[-1] if outs else None,
                )
            )

        records.sort(key=lambda r: (r.work_date, r.name.casefold()))
        logger.info("Reconciled %d attendance records for cutoff %s", len(records), window.label)
        return records

    def apply_edit(self, record: AttendanceRecord, *, time_in: str, time_out: str) -> AttendanceRecord:
        """Operator override of in/out (``HH:MM``, blank clears).

        Values outside the time-in / time-out windows are discarded the same
        way they are on import.
        """
        try:
            new_in = parse_hhmm(time_in)
            new_out = parse_hhmm(time_out)
        except ValueError:
            raise ValidationError("Invalid time (HH:MM)")

        in_dt = at_time(record.work_date, new_in) if new_in else None
        out_dt = at_time(record.work_date, new_out) if new_out else None

        return self.build_record(
            name=record.name,
            work_date=record.work_date,
            time_in=in_dt if in_dt and is_time_in_candidate(in_dt) else None,
            time_out=out_dt if out_dt and is_time_out_candidate(out_dt) else None,
        )
