from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from src.payflow.payflow.core.enums import DraftStatus, EmployeeCategory, PayslipStatus, RequestStatus, Role
from src.payflow.payflow.core.session import SessionUser
from src.payflow.payflow.employees.model import Benefits, Employee
from src.payflow.payflow.payroll.model import PayrollDraftHead
from src.payflow.payflow.payroll.service import PayrollService
from src.payflow.payflow.requests.model import CashAdvance, FiledRequest
from src.payflow.payflow.requests.service import RequestService

FIXED_NOW = datetime(2025, 1, 27, 9, 0, 0)


class FakeEmployeeRepo:
    def __init__(self, employees=()):
        self._by_id = {e.employee_id: e for e in employees}

    def add(self, employee: Employee) -> None:
        self._by_id[employee.employee_id] = employee

    def get_by_id(self, employee_id):
        return self._by_id.get(employee_id)

    def find_by_alias(self, alias):
        key = (alias or "").strip().lower()
        for e in self._by_id.values():
            if key in e.alias_keys():
                return e
        return None

    def list_all(self):
        return list(self._by_id.values())


class FakeRequestRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, FiledRequest] = {}

    def create(self, **kwargs):
        rid = self._next_id
        self._next_id += 1
        self.items[rid] = FiledRequest(
            request_id=rid,
            status=RequestStatus.PENDING,
            created_at=FIXED_NOW,
            **kwargs,
        )
        return rid

    def get(self, request_id):
        return self.items.get(int(request_id))

    def decide(self, *, request_id, status, decided_by, decided_at):
        req = self.items.get(int(request_id))
        if not req or req.status != RequestStatus.PENDING:
            return False
        self.items[int(request_id)] = replace(req, status=status, decided_by=decided_by, decided_at=decided_at)
        return True

    def list_approved_between(self, *, employee_id, start, end):
        return sorted(
            (
                r
                for r in self.items.values()
                if r.employee_id == employee_id and r.status == RequestStatus.APPROVED and start <= r.work_date <= end
            ),
            key=lambda r: (r.work_date, r.request_id),
        )


class FakeCashAdvanceRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, CashAdvance] = {}

    def create(self, *, employee_id, employee_name, total_amount, per_cut_off, start_half):
        aid = self._next_id
        self._next_id += 1
        self.items[aid] = CashAdvance(
            advance_id=aid,
            employee_id=employee_id,
            employee_name=employee_name,
            total_amount=total_amount,
            per_cut_off=per_cut_off,
            remaining_balance=total_amount,
            start_half=start_half,
            approved=False,
            created_at=FIXED_NOW,
        )
        return aid

    def get(self, advance_id):
        return self.items.get(int(advance_id))

    def approve(self, advance_id):
        adv = self.items.get(int(advance_id))
        if not adv or adv.approved:
            return False
        self.items[int(advance_id)] = replace(adv, approved=True)
        return True

    def list_open_for_employee(self, employee_id):
        return [
            a for a in self.items.values() if a.employee_id == employee_id and a.approved and a.remaining_balance > 0
        ]

    def set_remaining(self, advance_id, remaining_balance):
        adv = self.items.get(int(advance_id))
        if not adv:
            return False
        self.items[int(advance_id)] = replace(adv, remaining_balance=remaining_balance)
        return True


class FakeDraftRepo:
    """Shares the payslip and cash-advance fakes so ``finalize_approval`` writes all three."""

    def __init__(self, payslips=None, cash_advances=None):
        self._payslips = payslips if payslips is not None else FakePayslipRepo()
        self._cash_advances = cash_advances if cash_advances is not None else FakeCashAdvanceRepo()
        self._next_id = 1
        self.heads: dict[int, PayrollDraftHead] = {}
        self.lines: dict[int, list] = {}

    def create_draft(
        self,
        *,
        period_key,
        cutoff_label,
        cutoff_start,
        cutoff_end,
        worked_days,
        required_exec_approvals,
        created_by,
        lines,
    ):
        did = self._next_id
        self._next_id += 1
        self.heads[did] = PayrollDraftHead(
            draft_id=did,
            status=DraftStatus.DRAFT,
            period_key=period_key,
            cutoff_label=cutoff_label,
            cutoff_start=cutoff_start,
            cutoff_end=cutoff_end,
            worked_days=worked_days,
            required_exec_approvals=required_exec_approvals,
            created_by=created_by,
            created_at=FIXED_NOW,
        )
        self.lines[did] = list(lines)
        return did

    def get_draft(self, draft_id):
        return self.heads.get(int(draft_id))

    def find_active_by_period(self, period_key):
        for h in self.heads.values():
            if h.period_key == period_key and h.status != DraftStatus.REJECTED:
                return h
        return None

    def list_lines(self, draft_id):
        return list(self.lines.get(int(draft_id), []))

    def save_workflow(self, head):
        self.heads[head.draft_id] = head

    def finalize_approval(self, head, payslips, deductions):
        stored = self.heads.get(head.draft_id)
        if not stored or stored.status != DraftStatus.PENDING_ADMIN:
            return None
        self.heads[head.draft_id] = head
        ids = self._payslips.insert(payslips)
        for d in deductions:
            adv = self._cash_advances.get(d.advance_id)
            self._cash_advances.set_remaining(d.advance_id, max(0, adv.remaining_balance - d.amount))
        return ids

    def _update_line(self, draft_id, employee_id, **changes):
        lines = self.lines.get(int(draft_id), [])
        for i, line in enumerate(lines):
            if line.employee_id == employee_id:
                lines[i] = replace(line, **changes)
                return True
        return False

    def set_manual_cash_advance(self, draft_id, employee_id, amount):
        return self._update_line(draft_id, employee_id, manual_cash_advance=amount)

    def set_commissions(self, draft_id, employee_id, commissions):
        return self._update_line(draft_id, employee_id, commissions=tuple(commissions))

    def update_line_attendance(
        self, draft_id, employee_id, *, days_worked, hours_worked, tardiness_minutes, time_in_out
    ):
        return self._update_line(
            draft_id,
            employee_id,
            days_worked=days_worked,
            hours_worked=hours_worked,
            tardiness_minutes=tardiness_minutes,
            time_in_out=tuple(time_in_out),
        )


class FakePayslipRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict = {}

    def insert(self, payslips):
        ids = []
        for p in payslips:
            pid = self._next_id
            self._next_id += 1
            self.items[pid] = replace(p, payslip_id=pid)
            ids.append(pid)
        return ids

    def get(self, payslip_id):
        return self.items.get(int(payslip_id))

    def list_for_draft(self, draft_id):
        return [p for p in self.items.values() if p.draft_id == int(draft_id)]

    def set_status(self, payslip_id, *, status: PayslipStatus, published_at):
        p = self.items.get(int(payslip_id))
        if not p:
            return False
        self.items[int(payslip_id)] = replace(p, status=status, published_at=published_at)
        return True


def make_actor(user_id: str, *roles: Role) -> SessionUser:
    return SessionUser(user_id=user_id, full_name=user_id.title(), roles=frozenset(roles))


@pytest.fixture
def finance():
    return make_actor("fin-1", Role.FINANCE)


@pytest.fixture
def exec_one():
    return make_actor("exec-1", Role.EXEC)


@pytest.fixture
def exec_two():
    return make_actor("exec-2", Role.EXEC)


@pytest.fixture
def admin_final():
    return make_actor("boss-1", Role.ADMIN_FINAL)


@pytest.fixture
def ana_employee():
    return Employee(
        employee_id="emp-ana",
        name="Ana Reyes",
        category=EmployeeCategory.CORE,
        aliases=("ana",),
        monthly_salary=22_000_00,
        fixed_worked_days=11,
        benefits=Benefits(sss=True, pagibig=True, philhealth=True),
    )


@pytest.fixture
def bianca_intern():
    return Employee(
        employee_id="emp-bianca",
        name="Bianca Cruz",
        category=EmployeeCategory.INTERN,
        aliases=("bianca",),
    )


@pytest.fixture
def employees_repo(ana_employee, bianca_intern):
    return FakeEmployeeRepo([ana_employee, bianca_intern])


@pytest.fixture
def requests_repo():
    return FakeRequestRepo()


@pytest.fixture
def cash_advances_repo():
    return FakeCashAdvanceRepo()


@pytest.fixture
def drafts_repo(payslips_repo, cash_advances_repo):
    return FakeDraftRepo(payslips_repo, cash_advances_repo)


@pytest.fixture
def payslips_repo():
    return FakePayslipRepo()


@pytest.fixture
def request_service(requests_repo, cash_advances_repo, employees_repo):
    return RequestService(requests_repo, cash_advances_repo, employees_repo, clock=lambda: FIXED_NOW)


@pytest.fixture
def payroll_service(drafts_repo, payslips_repo, employees_repo, request_service):
    return PayrollService(drafts_repo, payslips_repo, employees_repo, request_service, clock=lambda: FIXED_NOW)
