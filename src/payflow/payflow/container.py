from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .attendance.service import AttendanceService
from .core.constants import (
    DEFAULT_INTERN_ALIASES,
    DEFAULT_MONTHLY_DAY_DIVISOR,
    DEFAULT_REQUIRED_EXEC_APPROVALS,
)
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .payroll.calculator.model import StatutoryAmounts
from .payroll.mysql_payroll_repository import MySQLPayrollDraftRepository
from .payroll.mysql_payslip_repository import MySQLPayslipRepository
from .payroll.service import PayrollService
from .requests.mysql_request_repository import MySQLCashAdvanceRepository, MySQLRequestRepository
from .requests.service import RequestService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    employees_repo: MySQLEmployeeRepository
    requests_repo: MySQLRequestRepository
    cash_advances_repo: MySQLCashAdvanceRepository
    drafts_repo: MySQLPayrollDraftRepository
    payslips_repo: MySQLPayslipRepository

    request_service: RequestService
    payroll_service: PayrollService
    attendance_service: AttendanceService


def build_container(
    *,
    db_config: dict,
    intern_aliases: Iterable[str] = DEFAULT_INTERN_ALIASES,
    required_exec_approvals: int = DEFAULT_REQUIRED_EXEC_APPROVALS,
    monthly_day_divisor: int = DEFAULT_MONTHLY_DAY_DIVISOR,
    statutory: StatutoryAmounts | None = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    employees_repo = MySQLEmployeeRepository(conn)
    requests_repo = MySQLRequestRepository(conn)
    cash_advances_repo = MySQLCashAdvanceRepository(conn)
    drafts_repo = MySQLPayrollDraftRepository(conn)
    payslips_repo = MySQLPayslipRepository(conn)

    request_service = RequestService(
        requests_repo,
        cash_advances_repo,
        employees_repo,
        intern_aliases=intern_aliases,
    )
    payroll_service = PayrollService(
        drafts_repo,
        payslips_repo,
        employees_repo,
        request_service,
        required_exec_approvals=required_exec_approvals,
        monthly_day_divisor=monthly_day_divisor,
        statutory=statutory,
        intern_aliases=intern_aliases,
    )
    attendance_service = AttendanceService(employees_repo, payroll_service, intern_aliases=intern_aliases)

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        requests_repo=requests_repo,
        cash_advances_repo=cash_advances_repo,
        drafts_repo=drafts_repo,
        payslips_repo=payslips_repo,
        request_service=request_service,
        payroll_service=payroll_service,
        attendance_service=attendance_service,
    )
