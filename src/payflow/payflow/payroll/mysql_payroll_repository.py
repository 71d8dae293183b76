from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..core.enums import CommissionKind, DraftStatus, ObCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .calculator.model import CashAdvanceAllocation
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
    RdotAdjustment,
    RemoteAdjustment,
    TimeInOut,
)
from .mysql_payslip_repository import insert_payslips
from .repository import PayrollDraftRepository

_HEAD_COLUMNS = """
    draft_id, status, period_key, cutoff_label, cutoff_start, cutoff_end, worked_days,
    required_exec_approvals, created_by, created_at, exec_approvals, admin_approval,
    rejected_by, total_gross, total_net, total_count
"""


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _adjustments_to_json(adj: LineAdjustments) -> dict[str, Any]:
    return {
        "OT": [{"request_id": a.request_id, "date": a.work_date.isoformat(), "hours": a.hours} for a in adj.ot],
        "OB": [
            {
                "request_id": a.request_id,
                "date": a.work_date.isoformat(),
                "category": a.category.value if a.category else None,
                "rate": a.rate,
                "note": a.note,
            }
            for a in adj.ob
        ],
        "LEAVES": [
            {"request_id": a.request_id, "date": a.work_date.isoformat(), "type": a.leave_kind, "hours": a.hours}
            for a in adj.leaves
        ],
        "RDOT": [{"request_id": a.request_id, "date": a.work_date.isoformat(), "hours": a.hours} for a in adj.rdot],
        "REMOTE": [
            {"request_id": a.request_id, "date": a.work_date.isoformat(), "hours": a.hours} for a in adj.remote
        ],
    }


def _adjustments_from_json(data: dict[str, Any]) -> LineAdjustments:
    return LineAdjustments(
        ot=tuple(
            OtAdjustment(int(a["request_id"]), date.fromisoformat(a["date"]), float(a["hours"]))
            for a in data.get("OT", [])
        ),
        ob=tuple(
            ObAdjustment(
                int(a["request_id"]),
                date.fromisoformat(a["date"]),
                ObCategory.normalize(a.get("category")),
                a.get("rate"),
                a.get("note"),
            )
            for a in data.get("OB", [])
        ),
        leaves=tuple(
            LeaveAdjustment(int(a["request_id"]), date.fromisoformat(a["date"]), a.get("type") or "Leave", float(a["hours"]))
            for a in data.get("LEAVES", [])
        ),
        rdot=tuple(
            RdotAdjustment(int(a["request_id"]), date.fromisoformat(a["date"]), float(a["hours"]))
            for a in data.get("RDOT", [])
        ),
        remote=tuple(
            RemoteAdjustment(int(a["request_id"]), date.fromisoformat(a["date"]), float(a["hours"]))
            for a in data.get("REMOTE", [])
        ),
    )


def _row_to_head(row: dict) -> PayrollDraftHead:
    totals = None
    if row.get("total_count") is not None:
        totals = DraftTotals(
            gross=int(row["total_gross"]),
            net=int(row["total_net"]),
            count=int(row["total_count"]),
        )
    return PayrollDraftHead(
        draft_id=int(row["draft_id"]),
        status=DraftStatus(row["status"]),
        period_key=row["period_key"],
        cutoff_label=row["cutoff_label"],
        cutoff_start=row["cutoff_start"],
        cutoff_end=row["cutoff_end"],
        worked_days=int(row["worked_days"]),
        required_exec_approvals=int(row["required_exec_approvals"]),
        created_by=row["created_by"],
        created_at=row.get("created_at"),
        exec_approvals=tuple(load_json(row.get("exec_approvals"), [])),
        admin_approval=row.get("admin_approval"),
        rejected_by=row.get("rejected_by"),
        totals=totals,
    )


def _time_in_out_to_json(rows: Sequence[TimeInOut]) -> list[dict[str, Any]]:
    return [{"date": t.work_date.isoformat(), "in": _iso(t.time_in), "out": _iso(t.time_out)} for t in rows]


def _commissions_to_json(rows: Sequence[Commission]) -> list[dict[str, Any]]:
    return [
        {"client": c.client, "type": c.kind.value, "amount": c.amount, "percent": c.percent, "commission": c.commission}
        for c in rows
    ]


def _commissions_from_json(rows: list[dict[str, Any]]) -> tuple[Commission, ...]:
    return tuple(
        Commission(
            client=c.get("client") or "",
            kind=CommissionKind(c.get("type") or CommissionKind.OTHERS.value),
            amount=int(c.get("amount") or 0),
            percent=float(c.get("percent") or 0),
            commission=int(c.get("commission") or 0),
        )
        for c in rows
    )


def _row_to_line(row: dict) -> PayrollDraftLine:
    manual = row.get("manual_cash_advance")
    return PayrollDraftLine(
        employee_id=row["employee_id"],
        name=row["name"],
        email=row.get("email"),
        days_worked=float(row["days_worked"]),
        hours_worked=float(row["hours_worked"]),
        tardiness_minutes=int(row["tardiness_minutes"]),
        time_in_out=tuple(
            TimeInOut(date.fromisoformat(t["date"]), _from_iso(t.get("in")), _from_iso(t.get("out")))
            for t in load_json(row.get("time_in_out"), [])
        ),
        adjustments=_adjustments_from_json(load_json(row.get("adjustments"), {})),
        manual_cash_advance=int(manual) if manual is not None else None,
        commissions=_commissions_from_json(load_json(row.get("commissions"), [])),
    )


def _line_exists(cur, draft_id: int, employee_id: str) -> bool:
    # MySQL rowcount on UPDATE counts changed rows, not matched ones
    cur.execute(
        "SELECT 1 AS found FROM payroll_draft_lines WHERE draft_id=%s AND employee_id=%s",
        (int(draft_id), employee_id),
    )
    return fetchone(cur) is not None


class MySQLPayrollDraftRepository(PayrollDraftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll_drafts(
                    status, period_key, cutoff_label, cutoff_start, cutoff_end,
                    worked_days, required_exec_approvals, created_by, exec_approvals
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    DraftStatus.DRAFT.value,
                    period_key,
                    cutoff_label,
                    cutoff_start,
                    cutoff_end,
                    int(worked_days),
                    int(required_exec_approvals),
                    created_by,
                    dump_json([]),
                ),
            )
            draft_id = int(cur.lastrowid)

            for line in lines:
                cur.execute(
                    """
                    INSERT INTO payroll_draft_lines(
                        draft_id, employee_id, name, email, days_worked, hours_worked,
                        tardiness_minutes, time_in_out, adjustments, manual_cash_advance, commissions
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        draft_id,
                        line.employee_id,
                        line.name,
                        line.email,
                        line.days_worked,
                        line.hours_worked,
                        line.tardiness_minutes,
                        dump_json(_time_in_out_to_json(line.time_in_out)),
                        dump_json(_adjustments_to_json(line.adjustments)),
                        line.manual_cash_advance,
                        dump_json(_commissions_to_json(line.commissions)),
                    ),
                )
            return draft_id

    def get_draft(self, draft_id: int) -> Optional[PayrollDraftHead]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_HEAD_COLUMNS} FROM payroll_drafts WHERE draft_id=%s", (int(draft_id),))
            row = fetchone(cur)
            return _row_to_head(row) if row else None

    def find_active_by_period(self, period_key: str) -> Optional[PayrollDraftHead]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_HEAD_COLUMNS}
                FROM payroll_drafts
                WHERE period_key=%s AND status<>%s
                ORDER BY draft_id DESC
                LIMIT 1
                """,
                (period_key, DraftStatus.REJECTED.value),
            )
            row = fetchone(cur)
            return _row_to_head(row) if row else None

    def list_lines(self, draft_id: int) -> Sequence[PayrollDraftLine]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, name, email, days_worked, hours_worked, tardiness_minutes,
                       time_in_out, adjustments, manual_cash_advance, commissions
                FROM payroll_draft_lines
                WHERE draft_id=%s
                ORDER BY name
                """,
                (int(draft_id),),
            )
            return [_row_to_line(r) for r in fetchall(cur)]

    def save_workflow(self, head: PayrollDraftHead) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            self._update_workflow(cur, head)

    @staticmethod
    def _update_workflow(cur, head: PayrollDraftHead, *, expected_status: Optional[DraftStatus] = None) -> int:
        totals = head.totals
        sql = """
            UPDATE payroll_drafts
            SET status=%s, exec_approvals=%s, admin_approval=%s, rejected_by=%s,
                total_gross=%s, total_net=%s, total_count=%s
            WHERE draft_id=%s
        """
        params: list[Any] = [
            head.status.value,
            dump_json(list(head.exec_approvals)),
            head.admin_approval,
            head.rejected_by,
            totals.gross if totals else None,
            totals.net if totals else None,
            totals.count if totals else None,
            head.draft_id,
        ]
        if expected_status is not None:
            sql += " AND status=%s"
            params.append(expected_status.value)
        cur.execute(sql, tuple(params))
        return cur.rowcount

    def finalize_approval(
        self,
        head: PayrollDraftHead,
        payslips: Sequence[Payslip],
        deductions: Sequence[CashAdvanceAllocation],
    ) -> Optional[list[int]]:
        with db_cursor(self._conn_factory) as (_, cur):
            if not self._update_workflow(cur, head, expected_status=DraftStatus.PENDING_ADMIN):
                return None
            payslip_ids = insert_payslips(cur, payslips)
            for d in deductions:
                cur.execute(
                    "UPDATE cash_advances SET remaining_balance=GREATEST(0, remaining_balance-%s) WHERE advance_id=%s",
                    (int(d.amount), int(d.advance_id)),
                )
            return payslip_ids

    def set_manual_cash_advance(self, draft_id: int, employee_id: str, amount: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if not _line_exists(cur, draft_id, employee_id):
                return False
            cur.execute(
                "UPDATE payroll_draft_lines SET manual_cash_advance=%s WHERE draft_id=%s AND employee_id=%s",
                (amount, int(draft_id), employee_id),
            )
            return True

    def set_commissions(self, draft_id: int, employee_id: str, commissions: Sequence[Commission]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if not _line_exists(cur, draft_id, employee_id):
                return False
            cur.execute(
                "UPDATE payroll_draft_lines SET commissions=%s WHERE draft_id=%s AND employee_id=%s",
                (dump_json(_commissions_to_json(commissions)), int(draft_id), employee_id),
            )
            return True

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
        with db_cursor(self._conn_factory) as (_, cur):
            if not _line_exists(cur, draft_id, employee_id):
                return False
            cur.execute(
                """
                UPDATE payroll_draft_lines
                SET days_worked=%s, hours_worked=%s, tardiness_minutes=%s, time_in_out=%s
                WHERE draft_id=%s AND employee_id=%s
                """,
                (
                    days_worked,
                    hours_worked,
                    int(tardiness_minutes),
                    dump_json(_time_in_out_to_json(time_in_out)),
                    int(draft_id),
                    employee_id,
                ),
            )
            return True
