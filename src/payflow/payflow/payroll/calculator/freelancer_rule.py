from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...core.enums import EmployeeCategory, ObCategory
from .base import RateRule
from .model import PayrollInput


class FreelancerRateRule(RateRule):
    """Paid per item sheet only: no OB, OT, premiums or deductions."""

    category = EmployeeCategory.FREELANCER
    earns_premiums = False
    withholds_deductions = False

    def daily_rate(self, data: PayrollInput) -> Decimal:
        return Decimal(0)

    def basic_pay(self, data: PayrollInput, daily: Decimal) -> Decimal:
        return sum(
            (Decimal(str(item.quantity)) * Decimal(item.rate) for item in data.freelancer_items),
            Decimal(0),
        )

    def ob_rate(self, ob_category: Optional[ObCategory], override: Optional[int]) -> int:
        return 0

    def has_rate_configured(self, data: PayrollInput) -> bool:
        return bool(data.freelancer_items)
