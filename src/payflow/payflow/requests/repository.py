from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import CutoffHalf, ObCategory, RequestStatus, RequestType
from .model import CashAdvance, FiledRequest


class RequestRepository(Protocol):
    """Repository interface for filed requests; the service depends on this, not on MySQL."""

    def create(
        self,
        *,
        employee_id: str,
        employee_name: str,
        type: RequestType,
        work_date: date,
        hours: float,
        ob_category: Optional[ObCategory],
        suggested_rate: Optional[int],
        time_in: Optional[time],
        time_out: Optional[time],
        leave_kind: Optional[str],
        proof_url: Optional[str],
        note: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[FiledRequest]:
        raise NotImplementedError

    def decide(self, *, request_id: int, status: RequestStatus, decided_by: str, decided_at: datetime) -> bool:
        """Set the outcome of a still-pending request; False when it was already decided."""
        raise NotImplementedError

    def list_approved_between(self, *, employee_id: str, start: date, end: date) -> Sequence[FiledRequest]:
        raise NotImplementedError


class CashAdvanceRepository(Protocol):
    def create(
        self,
        *,
        employee_id: str,
        employee_name: str,
        total_amount: int,
        per_cut_off: int,
        start_half: CutoffHalf,
    ) -> int:
        raise NotImplementedError

    def get(self, advance_id: int) -> Optional[CashAdvance]:
        raise NotImplementedError

    def approve(self, advance_id: int) -> bool:
        raise NotImplementedError

    def list_open_for_employee(self, employee_id: str) -> Sequence[CashAdvance]:
        """Approved advances with a balance left, oldest first."""
        raise NotImplementedError

    def set_remaining(self, advance_id: int, remaining_balance: int) -> bool:
        raise NotImplementedError
