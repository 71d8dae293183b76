from __future__ import annotations

from decimal import Decimal

from ...core.enums import EmployeeCategory
from .base import SalariedRateRule
from .model import PayrollInput


class OwnerRateRule(SalariedRateRule):
    """Fixed pay per cutoff; no daily rate, so OT and tardiness come out as zero."""

    category = EmployeeCategory.OWNER

    def daily_rate(self, data: PayrollInput) -> Decimal:
        return Decimal(0)

    def basic_pay(self, data: PayrollInput, daily: Decimal) -> Decimal:
        return Decimal(max(0, data.owner_cutoff_pay))

    def has_rate_configured(self, data: PayrollInput) -> bool:
        return data.owner_cutoff_pay > 0
