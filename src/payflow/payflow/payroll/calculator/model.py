from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ...core.constants import (
    DEFAULT_MONTHLY_DAY_DIVISOR,
    DEFAULT_PAGIBIG_CONTRIBUTION,
    DEFAULT_PHILHEALTH_CONTRIBUTION,
    DEFAULT_SSS_CONTRIBUTION,
    OWNER_CUTOFF_PAY,
)
from ...core.enums import CutoffHalf, EmployeeCategory, ObCategory
from ...employees.model import Benefits, FreelancerItem, ObRate


@dataclass(frozen=True)
class StatutoryAmounts:
    """Per-cutoff government contributions, in centavos."""

    sss: int = DEFAULT_SSS_CONTRIBUTION
    pagibig: int = DEFAULT_PAGIBIG_CONTRIBUTION
    philhealth: int = DEFAULT_PHILHEALTH_CONTRIBUTION


@dataclass(frozen=True)
class ObItem:
    """One official-business occurrence. ``rate`` is the rate stored on the approved request, if any."""

    category: Optional[ObCategory] = None
    rate: Optional[int] = None


@dataclass(frozen=True)
class CashAdvanceInput:
    advance_id: int
    per_cut_off: int
    remaining_balance: int
    start_half: CutoffHalf
    approved: bool = True


@dataclass(frozen=True)
class CashAdvanceAllocation:
    advance_id: int
    amount: int


@dataclass(frozen=True)
class PayrollInput:
    category: EmployeeCategory
    worked_days: float = 0.0
    monthly_salary: int = 0
    per_day_rate: int = 0
    allowance_per_day: int = 0
    fixed_worked_days: Optional[int] = None
    cutoff_working_days: Optional[int] = None
    monthly_day_divisor: int = DEFAULT_MONTHLY_DAY_DIVISOR
    owner_cutoff_pay: int = OWNER_CUTOFF_PAY
    freelancer_items: tuple[FreelancerItem, ...] = ()
    ob_items: tuple[ObItem, ...] = ()
    ob_rates: tuple[ObRate, ...] = ()
    commission_total: int = 0
    ot_hours: float = 0.0
    nd_hours: float = 0.0
    rdot_hours: float = 0.0
    holiday30_hours: float = 0.0
    holiday_double_hours: float = 0.0
    holiday_ot_double_hours: float = 0.0
    tardiness_minutes: int = 0
    benefits: Benefits = field(default_factory=Benefits)
    statutory: StatutoryAmounts = field(default_factory=StatutoryAmounts)
    current_half: CutoffHalf = CutoffHalf.FIRST
    cash_advances: tuple[CashAdvanceInput, ...] = ()
    cash_advance_override: Optional[int] = None

    def ob_override(self, category: ObCategory) -> Optional[int]:
        for r in self.ob_rates:
            if r.category == category:
                return r.rate
        return None


@dataclass(frozen=True)
class PayrollResult:
    """Every amount is integer centavos, rounded once per line item."""

    daily_rate: int
    basic_pay: int
    ob_pay: int
    commission_pay: int
    ot_rate: int
    ot_pay: int
    night_diff_pay: int
    rdot_pay: int
    holiday30_pay: int
    holiday_double_pay: int
    holiday_ot_double_pay: int
    gross_earnings: int
    sss: int
    pagibig: int
    philhealth: int
    cash_advance_deduction: int
    tardiness_deduction: int
    total_deductions: int
    net_pay: int
    cash_advance_allocations: tuple[CashAdvanceAllocation, ...] = ()

    @property
    def holiday_pay(self) -> int:
        return self.holiday30_pay + self.holiday_double_pay + self.holiday_ot_double_pay
