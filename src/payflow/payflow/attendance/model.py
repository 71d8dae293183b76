from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import end_of_day, iter_days
from ..core.enums import CutoffHalf


@dataclass(frozen=True)
class Punch:
    """One time-clock swipe read from an export row (never persisted on its own)."""

    name: str
    date_only: date
    timestamp: datetime


@dataclass(frozen=True)
class SkippedRow:
    line_number: int
    raw_line: str
    reason: str


@dataclass(frozen=True)
class ImportResult:
    punches: tuple[Punch, ...]
    skipped_rows: tuple[SkippedRow, ...] = ()


@dataclass(frozen=True)
class CutoffWindow:
    """Semi-monthly pay period: the 11th-25th, or the 26th to the next 10th."""

    label: str
    start: date
    end: date

    @property
    def half(self) -> CutoffHalf:
        return CutoffHalf.SECOND if self.start.day == 11 else CutoffHalf.FIRST

    @property
    def period_key(self) -> str:
        return f"{self.start.isoformat()}_to_{self.end.isoformat()}"

    def contains(self, moment: datetime | date) -> bool:
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, time.min)
        return datetime.combine(self.start, time.min) <= moment <= end_of_day(self.end)

    def working_days(self) -> int:
        """Mon-Fri days inside the window."""
        return sum(1 for d in iter_days(self.start, self.end) if d.weekday() < 5)


@dataclass(frozen=True)
class AttendanceRecord:
    """One employee's reconciled day.

    Built only by ``AttendanceReconciler`` so hours/days/tardiness always
    derive from the current time-in/time-out.
    """

    employee_key: str
    name: str
    work_date: date
    time_in: Optional[datetime]
    time_out: Optional[datetime]
    hours_worked: float
    days_worked: float
    tardiness_minutes: int = 0

    def to_dict(self) -> dict:
        return {
            "employee_key": self.employee_key,
            "name": self.name,
            "date": self.work_date.isoformat(),
            "time_in": self.time_in.strftime("%H:%M") if self.time_in else None,
            "time_out": self.time_out.strftime("%H:%M") if self.time_out else None,
            "hours_worked": self.hours_worked,
            "days_worked": self.days_worked,
            "tardiness_minutes": self.tardiness_minutes,
        }
