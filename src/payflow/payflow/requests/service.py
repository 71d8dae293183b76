from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from ..attendance.factory import ShiftRuleFactory
from ..attendance.model import CutoffWindow
from ..attendance.reconciler import compute_hours_worked
from ..attendance.strategies.base import ShiftRule
from ..common.datetime_utils import at_time, now_local, parse_hhmm
from ..common.validators import require_positive
from ..core.constants import DEFAULT_INTERN_ALIASES, MAX_DAILY_HOURS
from ..core.enums import CutoffHalf, ObCategory, RequestStatus, RequestType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.session import SessionUser
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..payroll.calculator.factory import rule_for
from .model import CashAdvance, FiledRequest
from .repository import CashAdvanceRepository, RequestRepository

logger = logging.getLogger(__name__)

PROOF_REQUIRED = frozenset({RequestType.OT, RequestType.REMOTEWORK, RequestType.WFH, RequestType.RDOT})
TIMES_REQUIRED = frozenset({RequestType.REMOTEWORK, RequestType.WFH, RequestType.RDOT})
DECIDERS = (Role.FINANCE, Role.ADMIN)


def suggest_ob_rate(employee: Employee, ob_category: Optional[ObCategory]) -> int:
    """Per-occurrence OB rate the approver sees by default, in centavos."""
    override = employee.ob_rate_for(ob_category) if ob_category else None
    return rule_for(employee.category).ob_rate(ob_category, override)


class RequestService:
    def __init__(
        self,
        requests: RequestRepository,
        cash_advances: CashAdvanceRepository,
        employees: EmployeeRepository,
        *,
        intern_aliases: Iterable[str] = DEFAULT_INTERN_ALIASES,
        clock: Callable = now_local,
    ):
        self._requests = requests
        self._cash_advances = cash_advances
        self._employees = employees
        self._intern_aliases = frozenset(intern_aliases)
        self._clock = clock

    def _shift_rule(self, employee: Employee) -> ShiftRule:
        return ShiftRuleFactory.from_employees([employee], intern_aliases=self._intern_aliases).for_employee(
            employee.name
        )

    def _employee_for(self, actor: SessionUser, employee_id: str) -> Employee:
        if actor.user_id != employee_id and not actor.has_role(*DECIDERS):
            raise AuthorizationError("You can only file requests for yourself")
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    @staticmethod
    def _parse_type(value: str | RequestType) -> RequestType:
        try:
            return RequestType(str(getattr(value, "value", value)).strip().upper())
        except ValueError:
            raise ValidationError(f"Unknown request type: {value}")

    @staticmethod
    def _parse_time(value: str):
        try:
            return parse_hhmm(value)
        except ValueError:
            raise ValidationError("Invalid time (HH:MM)")

    def file_request(
        self,
        actor: SessionUser,
        *,
        employee_id: str,
        type: str | RequestType,
        work_date: date,
        hours: float = 0,
        ob_category: str = "",
        time_in: str = "",
        time_out: str = "",
        leave_kind: str = "",
        proof_url: str = "",
        note: str = "",
    ) -> int:
        employee = self._employee_for(actor, employee_id)
        req_type = self._parse_type(type)
        proof = (proof_url or "").strip() or None

        if req_type in PROOF_REQUIRED and not proof:
            raise ValidationError(f"{req_type.value} requests need a proof attachment")

        in_t = out_t = None
        if req_type in TIMES_REQUIRED:
            in_t = self._parse_time(time_in)
            out_t = self._parse_time(time_out)
            if not in_t or not out_t:
                raise ValidationError(f"{req_type.value} requests need a time-in and a time-out")
            if out_t <= in_t:
                raise ValidationError("Time-out must be after time-in")

        hours = float(hours or 0)
        if hours < 0:
            raise ValidationError("Hours cannot be negative")

        category = None
        suggested_rate = None
        kind = None
        if req_type in (RequestType.REMOTEWORK, RequestType.WFH) and not hours:
            hours = compute_hours_worked(
                at_time(work_date, in_t), at_time(work_date, out_t), self._shift_rule(employee)
            )
        elif req_type in (RequestType.OT, RequestType.RDOT):
            if req_type == RequestType.RDOT and not hours:
                hours = compute_hours_worked(
                    at_time(work_date, in_t), at_time(work_date, out_t), self._shift_rule(employee)
                )
            require_positive(hours, "Hours")
        elif req_type == RequestType.OB:
            category = ObCategory.normalize(ob_category) or ObCategory.ASSISTED
            suggested_rate = suggest_ob_rate(employee, category)
        elif req_type == RequestType.LEAVE:
            kind = (leave_kind or "").strip() or "Leave"
            hours = hours or float(MAX_DAILY_HOURS)

        request_id = self._requests.create(
            employee_id=employee.employee_id,
            employee_name=employee.name,
            type=req_type,
            work_date=work_date,
            hours=round(hours, 3),
            ob_category=category,
            suggested_rate=suggested_rate,
            time_in=in_t,
            time_out=out_t,
            leave_kind=kind,
            proof_url=proof,
            note=(note or "").strip() or None,
        )
        logger.info("Filed %s request %d for %s on %s", req_type.value, request_id, employee.employee_id, work_date)
        return request_id

    def _decide(self, actor: SessionUser, request_id: int, status: RequestStatus) -> None:
        actor.require(*DECIDERS)

        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Request not found")
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Request has already been decided")

        decided = self._requests.decide(
            request_id=int(request_id),
            status=status,
            decided_by=actor.user_id,
            decided_at=self._clock(),
        )
        if not decided:
            raise ValidationError("Request has already been decided")
        logger.info("Request %d %s by %s", request_id, status.value, actor.user_id)

    def approve(self, actor: SessionUser, request_id: int) -> None:
        self._decide(actor, request_id, RequestStatus.APPROVED)

    def reject(self, actor: SessionUser, request_id: int) -> None:
        self._decide(actor, request_id, RequestStatus.REJECTED)

    def list_approved_in_window(self, employee_id: str, window: CutoffWindow) -> Sequence[FiledRequest]:
        return self._requests.list_approved_between(employee_id=employee_id, start=window.start, end=window.end)

    # Cash advances

    def file_cash_advance(
        self,
        actor: SessionUser,
        *,
        employee_id: str,
        total_amount: int,
        per_cut_off: int,
        start_half: str | CutoffHalf = CutoffHalf.FIRST,
    ) -> int:
        employee = self._employee_for(actor, employee_id)

        if total_amount is None or total_amount <= 0:
            raise ValidationError("Amount must be greater than zero")
        if per_cut_off is None or per_cut_off <= 0 or per_cut_off > total_amount:
            raise ValidationError("Per-cutoff deduction must be greater than zero and not exceed the amount")
        try:
            half = CutoffHalf(getattr(start_half, "value", start_half))
        except ValueError:
            raise ValidationError("Start cutoff must be 'first' or 'second'")

        advance_id = self._cash_advances.create(
            employee_id=employee.employee_id,
            employee_name=employee.name,
            total_amount=int(total_amount),
            per_cut_off=int(per_cut_off),
            start_half=half,
        )
        logger.info("Filed cash advance %d for %s", advance_id, employee.employee_id)
        return advance_id

    def approve_cash_advance(self, actor: SessionUser, advance_id: int) -> None:
        actor.require(*DECIDERS)
        advance = self._cash_advances.get(int(advance_id))
        if not advance:
            raise NotFoundError("Cash advance not found")
        if advance.approved or not self._cash_advances.approve(int(advance_id)):
            raise ValidationError("Cash advance is already approved")
        logger.info("Cash advance %d approved by %s", advance_id, actor.user_id)

    def record_deduction(self, actor: SessionUser, advance_id: int, amount: int) -> CashAdvance:
        """Manual repayment outside payroll; the balance never goes below zero."""
        actor.require(*DECIDERS)
        require_positive(amount, "Deduction")
        advance = self._cash_advances.get(int(advance_id))
        if not advance:
            raise NotFoundError("Cash advance not found")
        if not advance.approved:
            raise ValidationError("Cash advance is not approved yet")

        remaining = max(0, advance.remaining_balance - int(amount))
        self._cash_advances.set_remaining(advance.advance_id, remaining)
        logger.info("Cash advance %d reduced by %d to %d by %s", advance.advance_id, amount, remaining, actor.user_id)
        return replace(advance, remaining_balance=remaining)

    def open_cash_advances(self, employee_id: str) -> Sequence[CashAdvance]:
        return self._cash_advances.list_open_for_employee(employee_id)
