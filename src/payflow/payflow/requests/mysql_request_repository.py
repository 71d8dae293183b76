from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Sequence

from ..core.enums import CutoffHalf, ObCategory, RequestStatus, RequestType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import CashAdvance, FiledRequest
from .repository import CashAdvanceRepository, RequestRepository

_REQUEST_COLUMNS = """
    request_id, employee_id, employee_name, type, work_date, hours, status, ob_category,
    suggested_rate, time_in, time_out, leave_kind, proof_url, note, created_at,
    decided_by, decided_at
"""

_ADVANCE_COLUMNS = """
    advance_id, employee_id, employee_name, total_amount, per_cut_off,
    remaining_balance, start_half, approved, created_at
"""


def _row_to_request(row: dict) -> FiledRequest:
    rate = row.get("suggested_rate")
    return FiledRequest(
        request_id=int(row["request_id"]),
        employee_id=row["employee_id"],
        employee_name=row["employee_name"],
        type=RequestType(row["type"]),
        work_date=row["work_date"],
        hours=float(row.get("hours") or 0),
        status=RequestStatus(row["status"]),
        ob_category=ObCategory.normalize(row.get("ob_category")),
        suggested_rate=int(rate) if rate is not None else None,
        time_in=normalize_mysql_time(row.get("time_in")),
        time_out=normalize_mysql_time(row.get("time_out")),
        leave_kind=row.get("leave_kind"),
        proof_url=row.get("proof_url"),
        note=row.get("note"),
        created_at=row.get("created_at"),
        decided_by=row.get("decided_by"),
        decided_at=row.get("decided_at"),
    )


def _row_to_advance(row: dict) -> CashAdvance:
    return CashAdvance(
        advance_id=int(row["advance_id"]),
        employee_id=row["employee_id"],
        employee_name=row["employee_name"],
        total_amount=int(row["total_amount"]),
        per_cut_off=int(row["per_cut_off"]),
        remaining_balance=int(row["remaining_balance"]),
        start_half=CutoffHalf(row["start_half"]),
        approved=bool(row.get("approved")),
        created_at=row.get("created_at"),
    )


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO requests(
                    employee_id, employee_name, type, work_date, hours, status, ob_category,
                    suggested_rate, time_in, time_out, leave_kind, proof_url, note
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    employee_id,
                    employee_name,
                    type.value,
                    work_date,
                    hours,
                    RequestStatus.PENDING.value,
                    ob_category.value if ob_category else None,
                    suggested_rate,
                    time_in,
                    time_out,
                    leave_kind,
                    proof_url,
                    note,
                ),
            )
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[FiledRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM requests WHERE request_id=%s", (int(request_id),))
            row = fetchone(cur)
            return _row_to_request(row) if row else None

    def decide(self, *, request_id: int, status: RequestStatus, decided_by: str, decided_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE requests
                SET status=%s, decided_by=%s, decided_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, decided_by, decided_at, int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_approved_between(self, *, employee_id: str, start: date, end: date) -> Sequence[FiledRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM requests
                WHERE employee_id=%s AND status=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date ASC, request_id ASC
                """,
                (employee_id, RequestStatus.APPROVED.value, start, end),
            )
            return [_row_to_request(r) for r in fetchall(cur)]


class MySQLCashAdvanceRepository(CashAdvanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: str,
        employee_name: str,
        total_amount: int,
        per_cut_off: int,
        start_half: CutoffHalf,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO cash_advances(
                    employee_id, employee_name, total_amount, per_cut_off, remaining_balance, start_half, approved
                )
                VALUES(%s,%s,%s,%s,%s,%s,0)
                """,
                (employee_id, employee_name, total_amount, per_cut_off, total_amount, start_half.value),
            )
            return int(cur.lastrowid)

    def get(self, advance_id: int) -> Optional[CashAdvance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ADVANCE_COLUMNS} FROM cash_advances WHERE advance_id=%s", (int(advance_id),))
            row = fetchone(cur)
            return _row_to_advance(row) if row else None

    def approve(self, advance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE cash_advances SET approved=1 WHERE advance_id=%s AND approved=0",
                (int(advance_id),),
            )
            return cur.rowcount > 0

    def list_open_for_employee(self, employee_id: str) -> Sequence[CashAdvance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ADVANCE_COLUMNS}
                FROM cash_advances
                WHERE employee_id=%s AND approved=1 AND remaining_balance>0
                ORDER BY created_at ASC, advance_id ASC
                """,
                (employee_id,),
            )
            return [_row_to_advance(r) for r in fetchall(cur)]

    def set_remaining(self, advance_id: int, remaining_balance: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE cash_advances SET remaining_balance=%s WHERE advance_id=%s",
                (int(remaining_balance), int(advance_id)),
            )
            return cur.rowcount > 0
