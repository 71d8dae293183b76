from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from ..attendance.factory import ShiftRuleFactory, normalize_alias
from ..attendance.model import AttendanceRecord, CutoffWindow
from ..attendance.reconciler import AttendanceReconciler, snap_days
from ..common.datetime_utils import now_local
from ..core.constants import (
    DEFAULT_INTERN_ALIASES,
    DEFAULT_MONTHLY_DAY_DIVISOR,
    DEFAULT_REQUIRED_EXEC_APPROVALS,
    MAX_DAILY_HOURS,
)
from ..core.enums import DraftStatus, EmployeeCategory, PayslipStatus, RequestType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..core.session import SessionUser
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..requests.model import CashAdvance
from ..requests.service import RequestService
from .calculator.factory import rule_for
from .calculator.model import CashAdvanceInput, ObItem, PayrollInput, PayrollResult, StatutoryAmounts
from .calculator.payroll_calculator import calculate_payroll
from .model import (
    Commission,
    DraftTotals,
    LeaveAdjustment,
    LineAdjustments,
    ObAdjustment,
    OtAdjustment,
    PayrollDraftHead,
    PayrollDraftLine,
    Payslip,
    PayslipItem,
    RdotAdjustment,
    RemoteAdjustment,
    TimeInOut,
)
from .repository import PayrollDraftRepository, PayslipRepository

logger = logging.getLogger(__name__)

PUBLISHERS = (Role.FINANCE, Role.ADMIN)
PENDING_STATES = frozenset({DraftStatus.PENDING_EXEC, DraftStatus.PENDING_ADMIN})


def build_payroll_input(
    line: PayrollDraftLine,
    employee: Optional[Employee],
    head: PayrollDraftHead,
    cash_advances: Sequence[CashAdvance] = (),
    *,
    monthly_day_divisor: int = DEFAULT_MONTHLY_DAY_DIVISOR,
    statutory: Optional[StatutoryAmounts] = None,
) -> PayrollInput:
    """Join a draft line with the employee's rate record into calculator input.

    An alias that never resolved to an employee is paid as a core employee
    with no salary, i.e. zero.
    """
    statutory = statutory or StatutoryAmounts()
    adj = line.adjustments
    ob_items = tuple(ObItem(category=a.category, rate=a.rate) for a in adj.ob)
    advances = tuple(
        CashAdvanceInput(
            advance_id=a.advance_id,
            per_cut_off=a.per_cut_off,
            remaining_balance=a.remaining_balance,
            start_half=a.start_half,
            approved=a.approved,
        )
        for a in cash_advances
    )

    if employee is None:
        return PayrollInput(
            category=EmployeeCategory.CORE,
            worked_days=line.days_worked,
            cutoff_working_days=head.worked_days,
            monthly_day_divisor=monthly_day_divisor,
            statutory=statutory,
            current_half=head.window.half,
            commission_total=line.commission_total,
            cash_advances=advances,
            cash_advance_override=line.manual_cash_advance,
        )

    return PayrollInput(
        category=employee.category,
        worked_days=line.days_worked,
        monthly_salary=employee.monthly_salary or 0,
        per_day_rate=employee.per_day_rate or 0,
        allowance_per_day=employee.allowance_per_day or 0,
        fixed_worked_days=employee.fixed_worked_days,
        cutoff_working_days=head.worked_days,
        monthly_day_divisor=monthly_day_divisor,
        freelancer_items=employee.freelancer_items,
        ob_items=ob_items,
        ob_rates=employee.ob_rates,
        commission_total=line.commission_total,
        ot_hours=adj.ot_hours,
        rdot_hours=adj.rdot_hours,
        tardiness_minutes=line.tardiness_minutes,
        benefits=employee.benefits,
        statutory=statutory,
        current_half=head.window.half,
        cash_advances=advances,
        cash_advance_override=line.manual_cash_advance,
    )


def build_payslip(head: PayrollDraftHead, line: PayrollDraftLine, result: PayrollResult) -> Payslip:
    """Payslip rows for ``result``; rows that come out as zero are left off."""
    earnings = [
        PayslipItem("Basic Pay", result.basic_pay),
        PayslipItem("OB", result.ob_pay),
        PayslipItem("Commission", result.commission_pay),
        PayslipItem("OT", result.ot_pay),
        PayslipItem("Holiday", result.holiday_pay),
        PayslipItem("Night Differential", result.night_diff_pay),
        PayslipItem("RDOT", result.rdot_pay),
    ]
    deductions = [
        PayslipItem("Cash Advance", result.cash_advance_deduction),
        PayslipItem("SSS", result.sss),
        PayslipItem("Pag-IBIG", result.pagibig),
        PayslipItem("PhilHealth", result.philhealth),
        PayslipItem("Tardiness", result.tardiness_deduction),
    ]
    return Payslip(
        payslip_id=0,
        draft_id=head.draft_id,
        employee_id=line.employee_id,
        employee_name=line.name,
        cutoff_label=head.cutoff_label,
        period_key=head.period_key,
        earnings=tuple(i for i in earnings if i.amount),
        deductions=tuple(i for i in deductions if i.amount),
        total_earnings=result.gross_earnings,
        total_deductions=result.total_deductions,
        net_pay=result.net_pay,
        status=PayslipStatus.READY,
    )


def merge_remote_work(records: Sequence[AttendanceRecord], remote_hours: dict) -> tuple[float, float]:
    """Total (days, hours) after folding approved remote-work hours into each day.

    Per date: hours = office hours + remote hours, capped at 8, then re-snapped.
    A day never ends up with fewer days than the office record already had.
    """
    per_day: dict = {}
    for r in records:
        hours, days = per_day.get(r.work_date, (0.0, 0.0))
        per_day[r.work_date] = (hours + r.hours_worked, days + r.days_worked)

    for work_date, extra in remote_hours.items():
        hours, days = per_day.get(work_date, (0.0, 0.0))
        merged = min(float(MAX_DAILY_HOURS), hours + extra)
        per_day[work_date] = (round(merged, 3), max(days, snap_days(merged)))

    total_hours = round(sum(h for h, _ in per_day.values()), 3)
    total_days = sum(d for _, d in per_day.values())
    return total_days, total_hours


class PayrollService:
    def __init__(
        self,
        drafts: PayrollDraftRepository,
        payslips: PayslipRepository,
        employees: EmployeeRepository,
        requests: RequestService,
        *,
        required_exec_approvals: int = DEFAULT_REQUIRED_EXEC_APPROVALS,
        monthly_day_divisor: int = DEFAULT_MONTHLY_DAY_DIVISOR,
        statutory: Optional[StatutoryAmounts] = None,
        intern_aliases: Iterable[str] = DEFAULT_INTERN_ALIASES,
        clock: Callable = now_local,
    ):
        self._drafts = drafts
        self._payslips = payslips
        self._employees = employees
        self._requests = requests
        self._required_exec_approvals = int(required_exec_approvals)
        self._monthly_day_divisor = int(monthly_day_divisor)
        self._statutory = statutory or StatutoryAmounts()
        self._intern_aliases = frozenset(normalize_alias(a) for a in intern_aliases)
        self._clock = clock

    def _get_draft(self, draft_id: int) -> PayrollDraftHead:
        head = self._drafts.get_draft(int(draft_id))
        if not head:
            raise NotFoundError("Payroll draft not found")
        return head

    def _get_editable_draft(self, draft_id: int) -> PayrollDraftHead:
        head = self._get_draft(draft_id)
        if head.status != DraftStatus.DRAFT:
            raise ValidationError("Only drafts can be edited")
        return head

    # Publishing

    def _build_line(
        self, name: str, employee: Optional[Employee], records: Sequence[AttendanceRecord], window: CutoffWindow
    ) -> PayrollDraftLine:
        employee_id = employee.employee_id if employee else normalize_alias(name)
        approved = self._requests.list_approved_in_window(employee_id, window) if employee else ()

        ot, ob, leaves, rdot, remote = [], [], [], [], []
        for req in approved:
            if req.type == RequestType.OT:
                if req.has_proof:
                    ot.append(OtAdjustment(req.request_id, req.work_date, req.hours))
            elif req.type == RequestType.OB:
                ob.append(ObAdjustment(req.request_id, req.work_date, req.ob_category, req.suggested_rate, req.note))
            elif req.type == RequestType.LEAVE:
                leaves.append(LeaveAdjustment(req.request_id, req.work_date, req.leave_kind or "Leave", req.hours))
            elif req.type == RequestType.RDOT:
                rdot.append(RdotAdjustment(req.request_id, req.work_date, req.hours))
            elif req.type in (RequestType.REMOTEWORK, RequestType.WFH):
                remote.append(RemoteAdjustment(req.request_id, req.work_date, req.hours))

        adjustments = LineAdjustments(
            ot=tuple(ot), ob=tuple(ob), leaves=tuple(leaves), rdot=tuple(rdot), remote=tuple(remote)
        )
        days, hours = merge_remote_work(records, adjustments.remote_hours_by_date())
        return PayrollDraftLine(
            employee_id=employee_id,
            name=employee.name if employee else name,
            email=employee.email if employee else None,
            days_worked=days,
            hours_worked=hours,
            tardiness_minutes=sum(r.tardiness_minutes for r in records),
            time_in_out=tuple(TimeInOut(r.work_date, r.time_in, r.time_out) for r in records),
            adjustments=adjustments,
        )

    def publish(self, actor: SessionUser, window: CutoffWindow, records: Iterable[AttendanceRecord]) -> int:
        """Create a draft head plus one line per employee for ``window``.

        Several export names may resolve to one employee; their days are merged.
        """
        actor.require(*PUBLISHERS)

        records = [r for r in records if window.contains(r.work_date)]
        if not records:
            raise ValidationError("No records to publish. Process a cutoff first.")

        existing = self._drafts.find_active_by_period(window.period_key)
        if existing:
            raise ValidationError(
                f"Cutoff {window.label} already has draft #{existing.draft_id} ({existing.status.value})"
            )

        grouped: dict[str, tuple[str, Optional[Employee], list[AttendanceRecord]]] = {}
        for r in records:
            employee = self._employees.find_by_alias(r.name)
            key = employee.employee_id if employee else normalize_alias(r.name)
            if key not in grouped:
                grouped[key] = (r.name, employee, [])
            grouped[key][2].append(r)

        lines = [self._build_line(name, emp, recs, window) for name, emp, recs in grouped.values()]
        for name, emp, _ in grouped.values():
            if emp is None:
                logger.warning("No employee matches %r; line kept under its alias", name)

        draft_id = self._drafts.create_draft(
            period_key=window.period_key,
            cutoff_label=window.label,
            cutoff_start=window.start,
            cutoff_end=window.end,
            worked_days=window.working_days(),
            required_exec_approvals=self._required_exec_approvals,
            created_by=actor.user_id,
            lines=lines,
        )
        logger.info("Published draft %d for %s with %d lines", draft_id, window.label, len(lines))
        return draft_id

    def set_manual_cash_advance(
        self, actor: SessionUser, draft_id: int, employee_id: str, amount: Optional[int]
    ) -> None:
        """Replace (or with ``None`` clear) the computed cash-advance deduction on one line."""
        actor.require(*PUBLISHERS)
        head = self._get_editable_draft(draft_id)
        if amount is not None and amount < 0:
            raise ValidationError("Cash advance deduction cannot be negative")
        if not self._drafts.set_manual_cash_advance(head.draft_id, employee_id, amount):
            raise NotFoundError("Draft line not found")

    def set_commissions(
        self, actor: SessionUser, draft_id: int, employee_id: str, entries: Iterable[Commission]
    ) -> tuple[Commission, ...]:
        """Replace the line's commission rows; rows that earn nothing are dropped."""
        actor.require(*PUBLISHERS)
        head = self._get_editable_draft(draft_id)

        kept = []
        for c in entries:
            if c.amount < 0:
                raise ValidationError("Commission amount cannot be negative")
            if not 0 <= c.percent <= 100:
                raise ValidationError("Commission percent must be between 0 and 100")
            if c.commission > 0:
                kept.append(c)

        if not self._drafts.set_commissions(head.draft_id, employee_id, tuple(kept)):
            raise NotFoundError("Draft line not found")
        logger.info("Draft %d: %d commissions set for %s by %s", head.draft_id, len(kept), employee_id, actor.user_id)
        return tuple(kept)

    # Day edits

    def _get_line(self, draft_id: int, employee_id: str) -> PayrollDraftLine:
        for line in self._drafts.list_lines(draft_id):
            if line.employee_id == employee_id:
                return line
        raise NotFoundError("Draft line not found")

    def _line_reconciler(self, line: PayrollDraftLine) -> AttendanceReconciler:
        employee = self._employees.get_by_id(line.employee_id)
        rules = ShiftRuleFactory.from_employees([employee] if employee else [], intern_aliases=self._intern_aliases)
        return AttendanceReconciler(rules=rules)

    def _save_line_days(
        self, head: PayrollDraftHead, line: PayrollDraftLine, records: Sequence[AttendanceRecord]
    ) -> PayrollDraftLine:
        records = sorted(records, key=lambda r: r.work_date)
        days, hours = merge_remote_work(records, line.adjustments.remote_hours_by_date())
        updated = replace(
            line,
            days_worked=days,
            hours_worked=hours,
            tardiness_minutes=sum(r.tardiness_minutes for r in records),
            time_in_out=tuple(TimeInOut(r.work_date, r.time_in, r.time_out) for r in records),
        )
        saved = self._drafts.update_line_attendance(
            head.draft_id,
            line.employee_id,
            days_worked=updated.days_worked,
            hours_worked=updated.hours_worked,
            tardiness_minutes=updated.tardiness_minutes,
            time_in_out=updated.time_in_out,
        )
        if not saved:
            raise NotFoundError("Draft line not found")
        return updated

    def edit_line_day(
        self,
        actor: SessionUser,
        draft_id: int,
        employee_id: str,
        work_date: date,
        *,
        time_in: str,
        time_out: str,
    ) -> PayrollDraftLine:
        """Override one day's in/out (``HH:MM``) on a draft line and recompute its totals.

        A date with no record yet is added, as long as it lies inside the cutoff.
        """
        actor.require(*PUBLISHERS)
        head = self._get_editable_draft(draft_id)
        if not head.window.contains(work_date):
            raise ValidationError(f"{work_date} is outside cutoff {head.cutoff_label}")

        line = self._get_line(head.draft_id, employee_id)
        reconciler = self._line_reconciler(line)
        records = [
            reconciler.build_record(name=line.name, work_date=t.work_date, time_in=t.time_in, time_out=t.time_out)
            for t in line.time_in_out
            if t.work_date != work_date
        ]
        blank = reconciler.build_record(name=line.name, work_date=work_date, time_in=None, time_out=None)
        records.append(reconciler.apply_edit(blank, time_in=time_in, time_out=time_out))

        updated = self._save_line_days(head, line, records)
        logger.info("Draft %d: %s edited %s for %s", head.draft_id, actor.user_id, work_date, employee_id)
        return updated

    def remove_line_day(self, actor: SessionUser, draft_id: int, employee_id: str, work_date: date) -> PayrollDraftLine:
        actor.require(*PUBLISHERS)
        head = self._get_editable_draft(draft_id)
        line = self._get_line(head.draft_id, employee_id)
        if not any(t.work_date == work_date for t in line.time_in_out):
            raise NotFoundError(f"No attendance on {work_date} for this line")

        reconciler = self._line_reconciler(line)
        records = [
            reconciler.build_record(name=line.name, work_date=t.work_date, time_in=t.time_in, time_out=t.time_out)
            for t in line.time_in_out
            if t.work_date != work_date
        ]
        updated = self._save_line_days(head, line, records)
        logger.info("Draft %d: %s removed %s for %s", head.draft_id, actor.user_id, work_date, employee_id)
        return updated

    # Workflow

    def request_exec_approval(self, actor: SessionUser, draft_id: int) -> PayrollDraftHead:
        actor.require(*PUBLISHERS)
        head = self._get_draft(draft_id)
        if head.status != DraftStatus.DRAFT:
            raise ValidationError(f"Draft is {head.status.value}, not draft")

        head = replace(head, status=DraftStatus.PENDING_EXEC)
        self._drafts.save_workflow(head)
        logger.info("Draft %d sent for executive approval by %s", head.draft_id, actor.user_id)
        return head

    def exec_approve(self, actor: SessionUser, draft_id: int) -> PayrollDraftHead:
        actor.require(Role.EXEC)
        head = self._get_draft(draft_id)
        if head.status != DraftStatus.PENDING_EXEC:
            raise ValidationError(f"Draft is {head.status.value}, not pending_exec")
        if actor.user_id in head.exec_approvals:
            raise ValidationError("You already approved this draft")

        approvals = head.exec_approvals + (actor.user_id,)
        status = DraftStatus.PENDING_ADMIN if len(approvals) >= head.required_exec_approvals else head.status
        head = replace(head, exec_approvals=approvals, status=status)
        self._drafts.save_workflow(head)
        logger.info(
            "Draft %d executive approval %d/%d by %s",
            head.draft_id,
            len(approvals),
            head.required_exec_approvals,
            actor.user_id,
        )
        return head

    def admin_final_approve(self, actor: SessionUser, draft_id: int) -> list[int]:
        """Approve the draft and issue one ``ready`` payslip per line."""
        actor.require(Role.ADMIN_FINAL)
        head = self._get_draft(draft_id)
        if head.status != DraftStatus.PENDING_ADMIN:
            raise ValidationError(f"Draft is {head.status.value}, not pending_admin")

        computed = self._compute_lines(head)
        head = replace(
            head,
            status=DraftStatus.APPROVED,
            admin_approval=actor.user_id,
            totals=self._totals(computed),
        )
        deductions = [a for _, result in computed for a in result.cash_advance_allocations if a.amount > 0]
        payslip_ids = self._drafts.finalize_approval(
            head, [build_payslip(head, line, result) for line, result in computed], deductions
        )
        if payslip_ids is None:
            raise ValidationError("Draft was changed by someone else; reload and try again")
        logger.info("Draft %d approved by %s; %d payslips issued", head.draft_id, actor.user_id, len(payslip_ids))
        return payslip_ids

    def reject(self, actor: SessionUser, draft_id: int) -> PayrollDraftHead:
        actor.require(Role.EXEC, Role.ADMIN_FINAL, Role.ADMIN)
        head = self._get_draft(draft_id)
        if head.status not in PENDING_STATES:
            raise ValidationError(f"Draft is {head.status.value}; only pending drafts can be rejected")

        head = replace(head, status=DraftStatus.REJECTED, rejected_by=actor.user_id)
        self._drafts.save_workflow(head)
        logger.info("Draft %d rejected by %s", head.draft_id, actor.user_id)
        return head

    # Calculation

    def _compute_lines(self, head: PayrollDraftHead) -> list[tuple[PayrollDraftLine, PayrollResult]]:
        out = []
        for line in self._drafts.list_lines(head.draft_id):
            employee = self._employees.get_by_id(line.employee_id)
            advances = self._requests.open_cash_advances(line.employee_id) if employee else ()
            data = build_payroll_input(
                line,
                employee,
                head,
                advances,
                monthly_day_divisor=self._monthly_day_divisor,
                statutory=self._statutory,
            )
            if not rule_for(data.category).has_rate_configured(data):
                logger.warning("No usable rate for %s (%s); basic pay is zero", line.name, data.category.value)
            out.append((line, calculate_payroll(data)))
        return out

    @staticmethod
    def _totals(computed: Sequence[tuple[PayrollDraftLine, PayrollResult]]) -> DraftTotals:
        return DraftTotals(
            gross=sum(r.gross_earnings for _, r in computed),
            net=sum(r.net_pay for _, r in computed),
            count=len(computed),
        )

    def preview_line(self, draft_id: int, employee_id: str) -> PayrollResult:
        head = self._get_draft(draft_id)
        for line, result in self._compute_lines(head):
            if line.employee_id == employee_id:
                return result
        raise NotFoundError("Draft line not found")

    def preview_totals(self, draft_id: int) -> DraftTotals:
        head = self._get_draft(draft_id)
        return self._totals(self._compute_lines(head))

    # Payslips

    def publish_payslip(self, actor: SessionUser, payslip_id: int) -> Payslip:
        actor.require(*PUBLISHERS)
        payslip = self._payslips.get(int(payslip_id))
        if not payslip:
            raise NotFoundError("Payslip not found")
        if payslip.status != PayslipStatus.READY:
            raise ValidationError("Payslip is already published")

        published_at = self._clock()
        self._payslips.set_status(payslip.payslip_id, status=PayslipStatus.PUBLISHED, published_at=published_at)
        logger.info("Payslip %d published for %s", payslip.payslip_id, payslip.employee_id)
        return replace(payslip, status=PayslipStatus.PUBLISHED, published_at=published_at)

    def publish_all(self, actor: SessionUser, draft_id: int) -> int:
        """Publish every ready payslip of a draft, one at a time; returns how many flipped."""
        actor.require(*PUBLISHERS)
        head = self._get_draft(draft_id)
        if head.status != DraftStatus.APPROVED:
            raise ValidationError("Payslips exist only for approved drafts")

        count = 0
        for payslip in self._payslips.list_for_draft(head.draft_id):
            if payslip.status == PayslipStatus.READY:
                self.publish_payslip(actor, payslip.payslip_id)
                count += 1
        logger.info("Published %d payslips for draft %d", count, head.draft_id)
        return count
