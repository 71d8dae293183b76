from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, time
from typing import Optional


class ShiftRule(ABC):
    """Strategy Pattern: encapsulate how one employee's day is clipped and credited."""

    @abstractmethod
    def shift_end(self) -> time:
        raise NotImplementedError

    def forces_full_day(self, time_out: Optional[datetime]) -> bool:
        return False
