from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import PayslipStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import Payslip, PayslipItem
from .repository import PayslipRepository

_COLUMNS = """
    payslip_id, draft_id, employee_id, employee_name, cutoff_label, period_key,
    earnings, deductions, total_earnings, total_deductions, net_pay, status, published_at
"""


def _items(value) -> tuple[PayslipItem, ...]:
    return tuple(PayslipItem(label=i["label"], amount=int(i["amount"])) for i in load_json(value, []))


def _row_to_payslip(row: dict) -> Payslip:
    return Payslip(
        payslip_id=int(row["payslip_id"]),
        draft_id=int(row["draft_id"]),
        employee_id=row["employee_id"],
        employee_name=row["employee_name"],
        cutoff_label=row["cutoff_label"],
        period_key=row["period_key"],
        earnings=_items(row.get("earnings")),
        deductions=_items(row.get("deductions")),
        total_earnings=int(row["total_earnings"]),
        total_deductions=int(row["total_deductions"]),
        net_pay=int(row["net_pay"]),
        status=PayslipStatus(row["status"]),
        published_at=row.get("published_at"),
    )


def insert_payslips(cur, payslips: Sequence[Payslip]) -> list[int]:
    """Insert on an open cursor so callers can share their transaction."""
    ids: list[int] = []
    for p in payslips:
        cur.execute(
            """
            INSERT INTO payslips(
                draft_id, employee_id, employee_name, cutoff_label, period_key,
                earnings, deductions, total_earnings, total_deductions, net_pay, status
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                p.draft_id,
                p.employee_id,
                p.employee_name,
                p.cutoff_label,
                p.period_key,
                dump_json([{"label": i.label, "amount": i.amount} for i in p.earnings]),
                dump_json([{"label": i.label, "amount": i.amount} for i in p.deductions]),
                p.total_earnings,
                p.total_deductions,
                p.net_pay,
                p.status.value,
            ),
        )
        ids.append(int(cur.lastrowid))
    return ids


class MySQLPayslipRepository(PayslipRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, payslip_id: int) -> Optional[Payslip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM payslips WHERE payslip_id=%s", (int(payslip_id),))
            row = fetchone(cur)
            return _row_to_payslip(row) if row else None

    def list_for_draft(self, draft_id: int) -> Sequence[Payslip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM payslips WHERE draft_id=%s ORDER BY employee_name",
                (int(draft_id),),
            )
            return [_row_to_payslip(r) for r in fetchall(cur)]

    def set_status(self, payslip_id: int, *, status: PayslipStatus, published_at: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE payslips SET status=%s, published_at=%s WHERE payslip_id=%s",
                (status.value, published_at, int(payslip_id)),
            )
            return cur.rowcount > 0
