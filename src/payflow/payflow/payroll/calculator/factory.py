from __future__ import annotations

from typing import Mapping

from ...core.enums import EmployeeCategory
from .base import RateRule
from .core_rule import CoreRateRule
from .freelancer_rule import FreelancerRateRule
from .intern_rule import InternRateRule
from .owner_rule import OwnerRateRule
from .probationary_rule import ProbationaryRateRule


def _build_rules() -> Mapping[EmployeeCategory, RateRule]:
    rules: dict[EmployeeCategory, RateRule] = {}
    for rule in (CoreRateRule(), ProbationaryRateRule(), InternRateRule(), OwnerRateRule(), FreelancerRateRule()):
        rules[rule.category] = rule

    missing = set(EmployeeCategory) - set(rules)
    if missing:
        names = ", ".join(sorted(c.value for c in missing))
        raise RuntimeError(f"No rate rule registered for: {names}")
    return rules


_RULES = _build_rules()


def rule_for(category: EmployeeCategory) -> RateRule:
    """Factory Pattern: one rule per category, checked for completeness at import time."""
    return _RULES[category]
