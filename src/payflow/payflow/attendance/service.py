from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.constants import DEFAULT_INTERN_ALIASES
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..core.session import SessionUser
from ..employees.repository import EmployeeRepository
from ..payroll.service import PayrollService
from .cutoffs import build_cutoff_options, suggest_cutoff, window_starting
from .factory import ShiftRuleFactory, normalize_alias
from .importer import parse_export
from .model import AttendanceRecord, CutoffWindow, ImportResult
from .reconciler import AttendanceReconciler

logger = logging.getLogger(__name__)

OPERATORS = (Role.FINANCE, Role.ADMIN)


@dataclass(frozen=True)
class ImportSummary:
    result: ImportResult
    options: list[CutoffWindow]
    suggested: Optional[CutoffWindow]


@dataclass(frozen=True)
class RecordEdit:
    """Operator override for one record, keyed by ``employee_key``."""

    employee_key: str
    time_in: str = ""
    time_out: str = ""


class AttendanceService:
    """Stateless import -> process -> publish flow.

    Every call re-reads the raw export, so nothing is kept between requests;
    the operator's confirmed cutoff start is the only window the reconciler
    ever sees.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        payroll: PayrollService,
        *,
        intern_aliases: Iterable[str] = DEFAULT_INTERN_ALIASES,
    ):
        self._employees = employees
        self._payroll = payroll
        self._intern_aliases = frozenset(normalize_alias(a) for a in intern_aliases)

    def reconciler(self) -> AttendanceReconciler:
        rules = ShiftRuleFactory.from_employees(self._employees.list_all(), intern_aliases=self._intern_aliases)
        return AttendanceReconciler(rules=rules)

    def import_export(self, actor: SessionUser, raw_text: str) -> ImportSummary:
        actor.require(*OPERATORS)
        result = parse_export(raw_text)
        options = build_cutoff_options(result.punches)
        return ImportSummary(result=result, options=options, suggested=suggest_cutoff(options, result.punches))

    def process(
        self,
        actor: SessionUser,
        raw_text: str,
        cutoff_start: date,
        edits: Sequence[RecordEdit] = (),
    ) -> tuple[CutoffWindow, list[AttendanceRecord]]:
        actor.require(*OPERATORS)
        window = window_starting(cutoff_start)
        result = parse_export(raw_text)

        reconciler = self.reconciler()
        records = reconciler.process(result.punches, window)
        if not edits:
            return window, records

        by_key = {e.employee_key: e for e in edits}
        unknown = set(by_key) - {r.employee_key for r in records}
        if unknown:
            raise ValidationError(f"Unknown attendance record: {sorted(unknown)[0]}")

        edited = []
        for r in records:
            e = by_key.get(r.employee_key)
            edited.append(reconciler.apply_edit(r, time_in=e.time_in, time_out=e.time_out) if e else r)
        logger.info("Applied %d manual edits for %s", len(by_key), window.label)
        return window, edited

    def publish(
        self,
        actor: SessionUser,
        raw_text: str,
        cutoff_start: date,
        edits: Sequence[RecordEdit] = (),
    ) -> int:
        window, records = self.process(actor, raw_text, cutoff_start, edits)
        return self._payroll.publish(actor, window, records)
