from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PayslipStatus
from .calculator.model import CashAdvanceAllocation
from .model import Commission, PayrollDraftHead, PayrollDraftLine, Payslip, TimeInOut


class PayrollDraftRepository(Protocol):
    """Storage for draft heads and their per-employee lines."""

    def create_draft(
        self,
        *,
        period_key: str,
        cutoff_label: str,
        cutoff_start: date,
        cutoff_end: date,
        worked_days: int,
        required_exec_approvals: int,
        created_by: str,
        lines: Sequence[PayrollDraftLine],
    ) -> int:
        raise NotImplementedError

    def get_draft(self, draft_id: int) -> Optional[PayrollDraftHead]:
        raise NotImplementedError

    def find_active_by_period(self, period_key: str) -> Optional[PayrollDraftHead]:
        """Any draft for ``period_key`` that is not rejected."""
        raise NotImplementedError

    def list_lines(self, draft_id: int) -> Sequence[PayrollDraftLine]:
        raise NotImplementedError

    def save_workflow(self, head: PayrollDraftHead) -> None:
        """Persist status, approvals, rejection and totals of ``head``."""
        raise NotImplementedError

    def finalize_approval(
        self,
        head: PayrollDraftHead,
        payslips: Sequence[Payslip],
        deductions: Sequence[CashAdvanceAllocation],
    ) -> Optional[list[int]]:
        """In one transaction: save ``head`` if the stored draft is still pending_admin,
        insert ``payslips`` and reduce each cash-advance balance (never below zero).

        Returns the new payslip ids, or ``None`` when the draft had already moved on.
        """
        raise NotImplementedError

    def set_manual_cash_advance(self, draft_id: int, employee_id: str, amount: Optional[int]) -> bool:
        """False only when the line does not exist."""
        raise NotImplementedError

    def set_commissions(self, draft_id: int, employee_id: str, commissions: Sequence[Commission]) -> bool:
        raise NotImplementedError

    def update_line_attendance(
        self,
        draft_id: int,
        employee_id: str,
        *,
        days_worked: float,
        hours_worked: float,
        tardiness_minutes: int,
        time_in_out: Sequence[TimeInOut],
    ) -> bool:
        raise NotImplementedError


class PayslipRepository(Protocol):
    def get(self, payslip_id: int) -> Optional[Payslip]:
        raise NotImplementedError

    def list_for_draft(self, draft_id: int) -> Sequence[Payslip]:
        raise NotImplementedError

    def set_status(self, payslip_id: int, *, status: PayslipStatus, published_at: Optional[datetime]) -> bool:
        raise NotImplementedError
