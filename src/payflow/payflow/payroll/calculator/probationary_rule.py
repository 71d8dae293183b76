from __future__ import annotations

from decimal import Decimal

from ...core.enums import EmployeeCategory
from .base import SalariedRateRule
from .model import PayrollInput


class ProbationaryRateRule(SalariedRateRule):
    category = EmployeeCategory.CORE_PROBATIONARY

    def daily_rate(self, data: PayrollInput) -> Decimal:
        return Decimal(max(0, data.per_day_rate))
