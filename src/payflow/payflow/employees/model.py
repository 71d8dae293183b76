from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Optional

from ..core.enums import EmployeeCategory, ObCategory


@dataclass(frozen=True)
class Benefits:
    sss: bool = False
    pagibig: bool = False
    philhealth: bool = False


@dataclass(frozen=True)
class FreelancerItem:
    """One billable line on a freelancer's sheet; amounts in centavos."""

    description: str
    quantity: float
    rate: int


@dataclass(frozen=True)
class ObRate:
    category: ObCategory
    rate: int


@dataclass(frozen=True)
class Employee:
    """Long-lived employee master record.

    Which rate field is meaningful depends on ``category``: ``monthly_salary``
    for core, ``per_day_rate`` for probationary, ``allowance_per_day`` for
    interns and ``freelancer_items`` for freelancers. Money is in centavos.
    """

    employee_id: str
    name: str
    category: EmployeeCategory
    aliases: tuple[str, ...] = ()
    email: Optional[str] = None
    monthly_salary: Optional[int] = None
    per_day_rate: Optional[int] = None
    allowance_per_day: Optional[int] = None
    fixed_worked_days: Optional[int] = None
    fixed_out: Optional[time] = None
    freelancer_items: tuple[FreelancerItem, ...] = ()
    ob_rates: tuple[ObRate, ...] = ()
    benefits: Benefits = field(default_factory=Benefits)

    def ob_rate_for(self, category: ObCategory) -> Optional[int]:
        for r in self.ob_rates:
            if r.category == category:
                return r.rate
        return None

    def alias_keys(self) -> frozenset[str]:
        """Normalized name plus aliases, as matched against attendance export names."""
        return frozenset((n or "").strip().lower() for n in (self.name, *self.aliases) if (n or "").strip())
