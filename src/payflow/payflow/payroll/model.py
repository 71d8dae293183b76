from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..attendance.model import CutoffWindow
from ..common.money import round_centavos
from ..core.enums import CommissionKind, DraftStatus, ObCategory, PayslipStatus


@dataclass(frozen=True)
class TimeInOut:
    work_date: date
    time_in: Optional[datetime]
    time_out: Optional[datetime]


@dataclass(frozen=True)
class OtAdjustment:
    request_id: int
    work_date: date
    hours: float


@dataclass(frozen=True)
class ObAdjustment:
    request_id: int
    work_date: date
    category: Optional[ObCategory]
    rate: Optional[int]
    note: Optional[str] = None


@dataclass(frozen=True)
class LeaveAdjustment:
    request_id: int
    work_date: date
    leave_kind: str
    hours: float


@dataclass(frozen=True)
class RdotAdjustment:
    request_id: int
    work_date: date
    hours: float


@dataclass(frozen=True)
class RemoteAdjustment:
    """Approved remote-work hours; kept so day edits can fold them back in."""

    request_id: int
    work_date: date
    hours: float


@dataclass(frozen=True)
class LineAdjustments:
    """Approved requests inside the cutoff, snapshotted when the draft is published."""

    ot: tuple[OtAdjustment, ...] = ()
    ob: tuple[ObAdjustment, ...] = ()
    leaves: tuple[LeaveAdjustment, ...] = ()
    rdot: tuple[RdotAdjustment, ...] = ()
    remote: tuple[RemoteAdjustment, ...] = ()

    @property
    def ot_hours(self) -> float:
        return sum(a.hours for a in self.ot)

    @property
    def rdot_hours(self) -> float:
        return sum(a.hours for a in self.rdot)

    def remote_hours_by_date(self) -> dict[date, float]:
        out: dict[date, float] = {}
        for a in self.remote:
            out[a.work_date] = out.get(a.work_date, 0.0) + a.hours
        return out


@dataclass(frozen=True)
class Commission:
    """One commission row on a draft line; ``amount`` and ``commission`` in centavos."""

    client: str
    kind: CommissionKind
    amount: int
    percent: float = 0.0
    commission: int = 0

    @classmethod
    def build(cls, *, client: str, kind: CommissionKind, amount: int, percent: float = 0.0) -> "Commission":
        if kind == CommissionKind.SALES:
            earned = 0
            if amount > 0 and percent > 0:
                earned = round_centavos(Decimal(amount) * Decimal(str(percent)) / 100)
        else:
            earned = max(0, amount)
        return cls(client=client, kind=kind, amount=amount, percent=percent, commission=earned)


@dataclass(frozen=True)
class DraftTotals:
    gross: int
    net: int
    count: int


@dataclass(frozen=True)
class PayrollDraftHead:
    draft_id: int
    status: DraftStatus
    period_key: str
    cutoff_label: str
    cutoff_start: date
    cutoff_end: date
    worked_days: int
    required_exec_approvals: int
    created_by: str
    created_at: Optional[datetime] = None
    exec_approvals: tuple[str, ...] = ()
    admin_approval: Optional[str] = None
    rejected_by: Optional[str] = None
    totals: Optional[DraftTotals] = None

    @property
    def window(self) -> CutoffWindow:
        return CutoffWindow(label=self.cutoff_label, start=self.cutoff_start, end=self.cutoff_end)


@dataclass(frozen=True)
class PayrollDraftLine:
    """One employee's line in a draft. Money in centavos."""

    employee_id: str
    name: str
    days_worked: float
    hours_worked: float
    tardiness_minutes: int
    time_in_out: tuple[TimeInOut, ...] = ()
    adjustments: LineAdjustments = field(default_factory=LineAdjustments)
    email: Optional[str] = None
    manual_cash_advance: Optional[int] = None
    commissions: tuple[Commission, ...] = ()

    @property
    def commission_total(self) -> int:
        return sum(c.commission for c in self.commissions)


@dataclass(frozen=True)
class PayslipItem:
    label: str
    amount: int


@dataclass(frozen=True)
class Payslip:
    payslip_id: int
    draft_id: int
    employee_id: str
    employee_name: str
    cutoff_label: str
    period_key: str
    earnings: tuple[PayslipItem, ...]
    deductions: tuple[PayslipItem, ...]
    total_earnings: int
    total_deductions: int
    net_pay: int
    status: PayslipStatus = PayslipStatus.READY
    published_at: Optional[datetime] = None
