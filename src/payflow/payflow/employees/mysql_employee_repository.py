from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.enums import EmployeeCategory, ObCategory
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json, normalize_mysql_time
from .model import Benefits, Employee, FreelancerItem, ObRate
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, name, category, aliases, email, monthly_salary, per_day_rate,
    allowance_per_day, fixed_worked_days, fixed_out, freelancer_items, ob_rates,
    sss, pagibig, philhealth
"""


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _row_to_employee(row: dict) -> Employee:
    ob_rates = []
    for r in load_json(row.get("ob_rates"), []):
        category = ObCategory.normalize(r.get("category"))
        if category is not None:
            ob_rates.append(ObRate(category=category, rate=int(r.get("rate") or 0)))

    return Employee(
        employee_id=str(row["employee_id"]),
        name=row["name"],
        category=EmployeeCategory.normalize(row.get("category")),
        aliases=tuple(load_json(row.get("aliases"), [])),
        email=row.get("email"),
        monthly_salary=_optional_int(row.get("monthly_salary")),
        per_day_rate=_optional_int(row.get("per_day_rate")),
        allowance_per_day=_optional_int(row.get("allowance_per_day")),
        fixed_worked_days=_optional_int(row.get("fixed_worked_days")),
        fixed_out=normalize_mysql_time(row.get("fixed_out")),
        freelancer_items=tuple(
            FreelancerItem(
                description=str(i.get("description") or ""),
                quantity=float(i.get("quantity") or 0),
                rate=int(i.get("rate") or 0),
            )
            for i in load_json(row.get("freelancer_items"), [])
        ),
        ob_rates=tuple(ob_rates),
        benefits=Benefits(
            sss=bool(row.get("sss")),
            pagibig=bool(row.get("pagibig")),
            philhealth=bool(row.get("philhealth")),
        ),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (employee_id,))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def find_by_alias(self, alias: str) -> Optional[Employee]:
        key = (alias or "").strip().lower()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE LOWER(name)=%s OR JSON_CONTAINS(aliases, JSON_QUOTE(%s))
                LIMIT 1
                """,
                (key, key),
            )
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def list_all(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees ORDER BY name")
            return [_row_to_employee(r) for r in fetchall(cur)]
