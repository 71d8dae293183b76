from __future__ import annotations

from datetime import time

from .base import ShiftRule


class FixedOutShiftRule(ShiftRule):
    """Shift end set by a manager for one employee."""

    def __init__(self, fixed_out: time):
        self._fixed_out = fixed_out

    def shift_end(self) -> time:
        return self._fixed_out
