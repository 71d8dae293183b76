from __future__ import annotations

from decimal import Decimal

from ...core.enums import EmployeeCategory
from .base import SalariedRateRule
from .model import PayrollInput


class CoreRateRule(SalariedRateRule):
    """Half the monthly salary spread over the cutoff's day divisor.

    Divisor: the employee's fixed worked days, else the cutoff's working days,
    else half the configured monthly divisor.
    """

    category = EmployeeCategory.CORE

    @staticmethod
    def divisor(data: PayrollInput) -> int:
        if data.fixed_worked_days and data.fixed_worked_days > 0:
            return data.fixed_worked_days
        if data.cutoff_working_days and data.cutoff_working_days > 0:
            return data.cutoff_working_days
        return max(1, data.monthly_day_divisor // 2)

    def daily_rate(self, data: PayrollInput) -> Decimal:
        if data.monthly_salary <= 0:
            return Decimal(0)
        return Decimal(data.monthly_salary) / 2 / self.divisor(data)
