from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ...core.constants import DEFAULT_INTERN_DAILY_ALLOWANCE, INTERN_OB_RATE
from ...core.enums import EmployeeCategory, ObCategory
from .base import RateRule
from .model import PayrollInput


class InternRateRule(RateRule):
    """Daily allowance (default 125 pesos) and a flat OB rate regardless of OB kind."""

    category = EmployeeCategory.INTERN

    def daily_rate(self, data: PayrollInput) -> Decimal:
        return Decimal(data.allowance_per_day if data.allowance_per_day > 0 else DEFAULT_INTERN_DAILY_ALLOWANCE)

    def ob_rate(self, ob_category: Optional[ObCategory], override: Optional[int]) -> int:
        return INTERN_OB_RATE
