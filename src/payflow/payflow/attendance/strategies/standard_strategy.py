from __future__ import annotations

from datetime import time

from ...core.constants import SHIFT_END
from .base import ShiftRule


class StandardShiftRule(ShiftRule):
    """Regular staff: 07:00-17:30."""

    def shift_end(self) -> time:
        return SHIFT_END
