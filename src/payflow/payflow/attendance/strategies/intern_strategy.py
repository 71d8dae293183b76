from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from ...common.datetime_utils import minute_of_day
from ...core.constants import INTERN_SHIFT_END
from .base import ShiftRule


class InternShiftRule(ShiftRule):
    """Interns end at 16:00 and any checkout from 16:00 on credits a full day."""

    def __init__(self, fixed_out: Optional[time] = None):
        self._fixed_out = fixed_out

    def shift_end(self) -> time:
        return self._fixed_out or INTERN_SHIFT_END

    def forces_full_day(self, time_out: Optional[datetime]) -> bool:
        if time_out is None:
            return False
        return minute_of_day(time_out) >= minute_of_day(INTERN_SHIFT_END)
