from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from typing import Iterable, Mapping

from ..core.constants import DEFAULT_INTERN_ALIASES
from ..core.enums import EmployeeCategory
from ..employees.model import Employee
from .strategies.base import ShiftRule
from .strategies.fixed_out_strategy import FixedOutShiftRule
from .strategies.intern_strategy import InternShiftRule
from .strategies.standard_strategy import StandardShiftRule


def normalize_alias(name: str) -> str:
    return (name or "").strip().lower()


@dataclass
class ShiftRuleFactory:
    """Factory Pattern: choose the shift rule for a name as it appears in the export.

    ``fixed_outs`` maps a normalized alias to a manager-set shift end.
    """

    intern_aliases: frozenset[str] = DEFAULT_INTERN_ALIASES
    fixed_outs: Mapping[str, time] = field(default_factory=dict)

    @classmethod
    def from_employees(
        cls,
        employees: Iterable[Employee],
        *,
        intern_aliases: Iterable[str] = DEFAULT_INTERN_ALIASES,
    ) -> "ShiftRuleFactory":
        """Configured intern names plus every name and alias of intern-category employees."""
        interns = {normalize_alias(a) for a in intern_aliases}
        fixed: dict[str, time] = {}
        for emp in employees:
            keys = emp.alias_keys()
            if emp.category == EmployeeCategory.INTERN:
                interns.update(keys)
            if emp.fixed_out is not None:
                fixed.update((k, emp.fixed_out) for k in keys)
        return cls(intern_aliases=frozenset(interns), fixed_outs=fixed)

    def is_intern(self, name: str) -> bool:
        return normalize_alias(name) in self.intern_aliases

    def for_employee(self, name: str) -> ShiftRule:
        fixed_out = self.fixed_outs.get(normalize_alias(name))
        if self.is_intern(name):
            return InternShiftRule(fixed_out)
        if fixed_out:
            return FixedOutShiftRule(fixed_out)
        return StandardShiftRule()
