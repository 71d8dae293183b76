from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import CutoffHalf, ObCategory, RequestStatus, RequestType


@dataclass(frozen=True)
class FiledRequest:
    """An OT / OB / LEAVE / REMOTEWORK / WFH / RDOT request filed for one day."""

    request_id: int
    employee_id: str
    employee_name: str
    type: RequestType
    work_date: date
    hours: float
    status: RequestStatus
    ob_category: Optional[ObCategory] = None
    suggested_rate: Optional[int] = None
    time_in: Optional[time] = None
    time_out: Optional[time] = None
    leave_kind: Optional[str] = None
    proof_url: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None

    @property
    def has_proof(self) -> bool:
        return bool((self.proof_url or "").strip())


@dataclass(frozen=True)
class CashAdvance:
    """A cash advance repaid by per-cutoff payroll deductions. Money in centavos."""

    advance_id: int
    employee_id: str
    employee_name: str
    total_amount: int
    per_cut_off: int
    remaining_balance: int
    start_half: CutoffHalf
    approved: bool = False
    created_at: Optional[datetime] = None
