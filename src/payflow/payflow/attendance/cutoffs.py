from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.exceptions import ValidationError
from .model import CutoffWindow, Punch

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def window_starting(start: date) -> CutoffWindow:
    """Canonical window that begins on ``start`` (the 11th or the 26th)."""
    y, m = start.year, start.month
    if start.day == 11:
        return CutoffWindow(label=f"{_MONTHS[m - 1]} 11–25, {y}", start=date(y, m, 11), end=date(y, m, 25))
    if start.day == 26:
        ny, nm = _shift_month(y, m, 1)
        return CutoffWindow(
            label=f"{_MONTHS[m - 1]} 26–{_MONTHS[nm - 1]} 10, {ny}",
            start=date(y, m, 26),
            end=date(ny, nm, 10),
        )
    raise ValidationError("A cutoff window starts on the 11th or the 26th")


def build_cutoff_options(punches: Iterable[Punch]) -> list[CutoffWindow]:
    """Both windows of every month in the data, plus the neighbouring months."""
    months: set[tuple[int, int]] = set()
    for p in punches:
        for delta in (-1, 0, 1):
            months.add(_shift_month(p.timestamp.year, p.timestamp.month, delta))

    options: dict[str, CutoffWindow] = {}
    for y, m in months:
        for day in (11, 26):
            w = window_starting(date(y, m, day))
            options[w.label] = w
    return sorted(options.values(), key=lambda w: w.start)


def suggest_cutoff(options: Sequence[CutoffWindow], punches: Sequence[Punch]) -> Optional[CutoffWindow]:
    """Most recent window holding at least one punch.

    Only a default for the operator to confirm; several windows may hold data.
    """
    for w in reversed(options):
        if any(w.contains(p.timestamp) for p in punches):
            return w
    return None
