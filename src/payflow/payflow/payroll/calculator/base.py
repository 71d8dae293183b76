from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from ...core.constants import ASSISTED_OB_RATE, TALENT_OB_RATE, VIDEOGRAPHER_OB_RATE
from ...core.enums import EmployeeCategory, ObCategory
from .model import PayrollInput


class RateRule(ABC):
    """Strategy Pattern: one rate rule per employee category."""

    category: EmployeeCategory
    earns_premiums: bool = True
    withholds_deductions: bool = True

    @abstractmethod
    def daily_rate(self, data: PayrollInput) -> Decimal:
        """Daily rate in (fractional) centavos; zero when the rate is not configured."""
        raise NotImplementedError

    def basic_pay(self, data: PayrollInput, daily: Decimal) -> Decimal:
        return daily * Decimal(str(data.worked_days))

    @abstractmethod
    def ob_rate(self, ob_category: Optional[ObCategory], override: Optional[int]) -> int:
        raise NotImplementedError

    def has_rate_configured(self, data: PayrollInput) -> bool:
        return self.daily_rate(data) > 0


class SalariedRateRule(RateRule):
    """OB defaults shared by core, probationary and owner employees."""

    def ob_rate(self, ob_category: Optional[ObCategory], override: Optional[int]) -> int:
        if override is not None:
            return override
        if ob_category == ObCategory.VIDEOGRAPHER:
            return VIDEOGRAPHER_OB_RATE
        if ob_category == ObCategory.TALENT:
            return TALENT_OB_RATE
        return ASSISTED_OB_RATE
