from datetime import date, datetime

import pytest

from src.payflow.payflow.attendance.cutoffs import window_starting
from src.payflow.payflow.attendance.model import Punch
from src.payflow.payflow.attendance.reconciler import AttendanceReconciler
from src.payflow.payflow.core.enums import CommissionKind, DraftStatus, PayslipStatus, RequestType, Role
from src.payflow.payflow.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.payflow.payflow.core.session import SessionUser
from src.payflow.payflow.payroll.model import Commission
from src.payflow.payflow.payroll.service import merge_remote_work

WINDOW = window_starting(date(2025, 1, 11))


def _records():
    stamps = [
        ("Ana", datetime(2025, 1, 13, 7, 0)),
        ("Ana", datetime(2025, 1, 13, 17, 0)),
        ("Ana", datetime(2025, 1, 14, 7, 0)),
        ("Ana", datetime(2025, 1, 14, 17, 0)),
        ("ana", datetime(2025, 1, 15, 7, 30)),
        ("ana", datetime(2025, 1, 15, 17, 0)),
        ("Bianca", datetime(2025, 1, 13, 7, 10)),
        ("Bianca", datetime(2025, 1, 13, 16, 5)),
        ("Zed", datetime(2025, 1, 13, 7, 0)),
        ("Zed", datetime(2025, 1, 13, 17, 0)),
    ]
    punches = [Punch(name=n, date_only=t.date(), timestamp=t) for n, t in stamps]
    return AttendanceReconciler().process(punches, WINDOW)


def _lines_by_id(drafts_repo, draft_id):
    return {line.employee_id: line for line in drafts_repo.list_lines(draft_id)}


def _approved_draft(payroll_service, finance, exec_one, exec_two):
    draft_id = payroll_service.publish(finance, WINDOW, _records())
    payroll_service.request_exec_approval(finance, draft_id)
    payroll_service.exec_approve(exec_one, draft_id)
    payroll_service.exec_approve(exec_two, draft_id)
    return draft_id


def test_publish_groups_aliases_into_one_line(payroll_service, drafts_repo, finance):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    head = drafts_repo.get_draft(draft_id)
    assert head.status == DraftStatus.DRAFT
    assert head.period_key == "2025-01-11_to_2025-01-25"
    assert head.worked_days == 10

    lines = _lines_by_id(drafts_repo, draft_id)
    assert set(lines) == {"emp-ana", "emp-bianca", "zed"}
    assert lines["emp-ana"].days_worked == 3.0
    assert lines["emp-ana"].hours_worked == 24.0
    assert lines["emp-ana"].tardiness_minutes == 30
    assert len(lines["emp-ana"].time_in_out) == 3
    assert lines["zed"].name == "Zed"


def test_publish_requires_records_and_operator_role(payroll_service, finance):
    with pytest.raises(ValidationError):
        payroll_service.publish(finance, WINDOW, [])

    with pytest.raises(AuthorizationError):
        payroll_service.publish(SessionUser("emp-ana", "Ana Reyes", frozenset({Role.EMPLOYEE})), WINDOW, _records())


def test_one_active_draft_per_period(payroll_service, finance, exec_one):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    with pytest.raises(ValidationError):
        payroll_service.publish(finance, WINDOW, _records())

    payroll_service.request_exec_approval(finance, draft_id)
    payroll_service.reject(exec_one, draft_id)

    assert payroll_service.publish(finance, WINDOW, _records()) != draft_id


def test_approved_requests_are_snapshotted_onto_the_line(
    payroll_service, request_service, requests_repo, drafts_repo, finance
):
    ot_id = request_service.file_request(
        finance, employee_id="emp-ana", type="OT", work_date=date(2025, 1, 13), hours=2, proof_url="proof.jpg"
    )
    ob_id = request_service.file_request(finance, employee_id="emp-ana", type="OB", work_date=date(2025, 1, 14))
    unproven_ot = requests_repo.create(
        employee_id="emp-ana",
        employee_name="Ana Reyes",
        type=RequestType.OT,
        work_date=date(2025, 1, 15),
        hours=3,
    )
    outside = request_service.file_request(
        finance, employee_id="emp-ana", type="OT", work_date=date(2025, 1, 27), hours=1, proof_url="p.jpg"
    )
    for rid in (ot_id, ob_id, unproven_ot, outside):
        request_service.approve(finance, rid)

    draft_id = payroll_service.publish(finance, WINDOW, _records())

    adj = _lines_by_id(drafts_repo, draft_id)["emp-ana"].adjustments
    assert [a.request_id for a in adj.ot] == [ot_id]
    assert adj.ot_hours == 2
    assert [(a.request_id, a.rate) for a in adj.ob] == [(ob_id, 1_500_00)]


def test_remote_work_adds_days_and_hours(payroll_service, request_service, drafts_repo, finance):
    wfh = request_service.file_request(
        finance,
        employee_id="emp-ana",
        type="WFH",
        work_date=date(2025, 1, 16),
        time_in="08:00",
        time_out="17:00",
        proof_url="screenshot.png",
    )
    request_service.approve(finance, wfh)

    draft_id = payroll_service.publish(finance, WINDOW, _records())

    line = _lines_by_id(drafts_repo, draft_id)["emp-ana"]
    assert line.days_worked == 4.0
    assert line.hours_worked == 32.0


def test_merge_remote_work_tops_up_a_half_day():
    reconciler = AttendanceReconciler()
    (half_day,) = reconciler.process(
        [Punch(name="Ana", date_only=date(2025, 1, 13), timestamp=datetime(2025, 1, 13, 7, 0))], WINDOW
    )

    days, hours = merge_remote_work([half_day], {date(2025, 1, 13): 3.0, date(2025, 1, 14): 10.0})

    assert hours == 7.0 + 8.0
    assert days == 1.0 + 1.0


def test_approval_workflow(payroll_service, drafts_repo, payslips_repo, finance, exec_one, exec_two, admin_final):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    with pytest.raises(ValidationError):
        payroll_service.exec_approve(exec_one, draft_id)

    assert payroll_service.request_exec_approval(finance, draft_id).status == DraftStatus.PENDING_EXEC
    assert payroll_service.exec_approve(exec_one, draft_id).status == DraftStatus.PENDING_EXEC

    with pytest.raises(ValidationError):
        payroll_service.exec_approve(exec_one, draft_id)
    with pytest.raises(ValidationError):
        payroll_service.admin_final_approve(admin_final, draft_id)
    with pytest.raises(AuthorizationError):
        payroll_service.exec_approve(finance, draft_id)

    head = payroll_service.exec_approve(exec_two, draft_id)
    assert head.status == DraftStatus.PENDING_ADMIN
    assert head.exec_approvals == ("exec-1", "exec-2")

    payslip_ids = payroll_service.admin_final_approve(admin_final, draft_id)

    head = drafts_repo.get_draft(draft_id)
    assert head.status == DraftStatus.APPROVED
    assert head.admin_approval == "boss-1"
    assert head.totals.count == 3
    assert len(payslip_ids) == 3
    assert all(payslips_repo.get(pid).status == PayslipStatus.READY for pid in payslip_ids)


def test_payslip_rows_and_net_pay(payroll_service, payslips_repo, finance, exec_one, exec_two, admin_final):
    draft_id = _approved_draft(payroll_service, finance, exec_one, exec_two)

    payroll_service.admin_final_approve(admin_final, draft_id)

    (ana,) = [p for p in payslips_repo.list_for_draft(draft_id) if p.employee_id == "emp-ana"]
    assert [i.label for i in ana.earnings] == ["Basic Pay"]
    assert [i.label for i in ana.deductions] == ["SSS", "Pag-IBIG", "PhilHealth", "Tardiness"]
    assert ana.total_earnings == 3_000_00
    assert ana.total_deductions == 737_50 + 62_50
    assert ana.net_pay == 2_200_00

    (zed,) = [p for p in payslips_repo.list_for_draft(draft_id) if p.employee_id == "zed"]
    assert zed.net_pay == 0
    assert zed.earnings == ()


def test_final_approval_records_cash_advance_deductions(
    payroll_service, request_service, cash_advances_repo, payslips_repo, finance, exec_one, exec_two, admin_final
):
    advance_id = request_service.file_cash_advance(
        finance, employee_id="emp-ana", total_amount=5_000_00, per_cut_off=1_000_00
    )
    request_service.approve_cash_advance(finance, advance_id)
    draft_id = _approved_draft(payroll_service, finance, exec_one, exec_two)

    payroll_service.admin_final_approve(admin_final, draft_id)

    assert cash_advances_repo.get(advance_id).remaining_balance == 4_000_00
    (ana,) = [p for p in payslips_repo.list_for_draft(draft_id) if p.employee_id == "emp-ana"]
    assert ana.deductions[0].label == "Cash Advance"
    assert ana.net_pay == 1_200_00


def test_reject_only_from_pending(payroll_service, finance, exec_one, admin_final):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    with pytest.raises(ValidationError):
        payroll_service.reject(exec_one, draft_id)

    payroll_service.request_exec_approval(finance, draft_id)
    head = payroll_service.reject(admin_final, draft_id)

    assert head.status == DraftStatus.REJECTED
    assert head.rejected_by == "boss-1"


def test_manual_cash_advance_override(payroll_service, finance, exec_one):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    payroll_service.set_manual_cash_advance(finance, draft_id, "emp-ana", 500_00)

    assert payroll_service.preview_line(draft_id, "emp-ana").cash_advance_deduction == 500_00

    with pytest.raises(ValidationError):
        payroll_service.set_manual_cash_advance(finance, draft_id, "emp-ana", -1)
    with pytest.raises(NotFoundError):
        payroll_service.set_manual_cash_advance(finance, draft_id, "nobody", 100)

    payroll_service.request_exec_approval(finance, draft_id)
    with pytest.raises(ValidationError):
        payroll_service.set_manual_cash_advance(finance, draft_id, "emp-ana", None)


def test_preview_totals_and_missing_draft(payroll_service, finance):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    totals = payroll_service.preview_totals(draft_id)

    assert totals.count == 3
    assert totals.gross >= totals.net
    with pytest.raises(NotFoundError):
        payroll_service.preview_totals(999)


def test_publishing_payslips(payroll_service, finance, exec_one, exec_two, admin_final):
    draft_id = _approved_draft(payroll_service, finance, exec_one, exec_two)

    with pytest.raises(ValidationError):
        payroll_service.publish_all(finance, draft_id)

    first, *_ = payroll_service.admin_final_approve(admin_final, draft_id)

    published = payroll_service.publish_payslip(finance, first)
    assert published.status == PayslipStatus.PUBLISHED
    assert published.published_at is not None

    with pytest.raises(ValidationError):
        payroll_service.publish_payslip(finance, first)

    assert payroll_service.publish_all(finance, draft_id) == 2
    assert payroll_service.publish_all(finance, draft_id) == 0


def test_failed_final_approval_leaves_nothing_behind_and_can_be_retried(
    payroll_service,
    request_service,
    drafts_repo,
    payslips_repo,
    cash_advances_repo,
    monkeypatch,
    finance,
    exec_one,
    exec_two,
    admin_final,
):
    advance_id = request_service.file_cash_advance(
        finance, employee_id="emp-ana", total_amount=5_000_00, per_cut_off=1_000_00
    )
    request_service.approve_cash_advance(finance, advance_id)
    draft_id = _approved_draft(payroll_service, finance, exec_one, exec_two)

    finalize = drafts_repo.finalize_approval
    calls = []

    def flaky_finalize(head, payslips, deductions):
        calls.append(head.draft_id)
        if len(calls) == 1:
            raise ConnectionError("database went away")
        return finalize(head, payslips, deductions)

    monkeypatch.setattr(drafts_repo, "finalize_approval", flaky_finalize)

    with pytest.raises(ConnectionError):
        payroll_service.admin_final_approve(admin_final, draft_id)

    assert drafts_repo.get_draft(draft_id).status == DraftStatus.PENDING_ADMIN
    assert payslips_repo.list_for_draft(draft_id) == []
    assert cash_advances_repo.get(advance_id).remaining_balance == 5_000_00

    payslip_ids = payroll_service.admin_final_approve(admin_final, draft_id)

    assert len(payslip_ids) == 3
    assert len(payslips_repo.list_for_draft(draft_id)) == 3
    assert cash_advances_repo.get(advance_id).remaining_balance == 4_000_00
    assert drafts_repo.get_draft(draft_id).status == DraftStatus.APPROVED


def test_final_approval_is_refused_when_the_draft_moved_on(
    payroll_service, drafts_repo, payslips_repo, monkeypatch, finance, exec_one, exec_two, admin_final
):
    draft_id = _approved_draft(payroll_service, finance, exec_one, exec_two)
    monkeypatch.setattr(drafts_repo, "finalize_approval", lambda head, payslips, deductions: None)

    with pytest.raises(ValidationError):
        payroll_service.admin_final_approve(admin_final, draft_id)
    assert payslips_repo.list_for_draft(draft_id) == []


def test_commission_build_rules():
    sales = Commission.build(client="Acme", kind=CommissionKind.SALES, amount=20_000_00, percent=10)
    odd = Commission.build(client="Acme", kind=CommissionKind.SALES, amount=333_33, percent=1.5)
    flat = Commission.build(client="Beta", kind=CommissionKind.OTHERS, amount=500_00)
    no_percent = Commission.build(client="Gamma", kind=CommissionKind.SALES, amount=1_000_00)

    assert sales.commission == 2_000_00
    assert odd.commission == 5_00
    assert flat.commission == 500_00
    assert no_percent.commission == 0


def test_commissions_flow_into_preview_and_payslip(
    payroll_service, drafts_repo, payslips_repo, finance, exec_one, exec_two, admin_final
):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    kept = payroll_service.set_commissions(
        finance,
        draft_id,
        "emp-ana",
        [
            Commission.build(client="Acme", kind=CommissionKind.SALES, amount=20_000_00, percent=10),
            Commission.build(client="Beta", kind=CommissionKind.OTHERS, amount=500_00),
            Commission.build(client="Gamma", kind=CommissionKind.SALES, amount=1_000_00),
        ],
    )

    assert [c.client for c in kept] == ["Acme", "Beta"]
    assert _lines_by_id(drafts_repo, draft_id)["emp-ana"].commission_total == 2_500_00
    assert payroll_service.preview_line(draft_id, "emp-ana").commission_pay == 2_500_00

    payroll_service.request_exec_approval(finance, draft_id)
    payroll_service.exec_approve(exec_one, draft_id)
    payroll_service.exec_approve(exec_two, draft_id)
    payroll_service.admin_final_approve(admin_final, draft_id)

    (ana,) = [p for p in payslips_repo.list_for_draft(draft_id) if p.employee_id == "emp-ana"]
    assert [(i.label, i.amount) for i in ana.earnings] == [("Basic Pay", 3_000_00), ("Commission", 2_500_00)]
    assert ana.net_pay == 2_200_00 + 2_500_00


def test_commission_validation(payroll_service, finance):
    draft_id = payroll_service.publish(finance, WINDOW, _records())
    over = Commission(client="Acme", kind=CommissionKind.SALES, amount=1_000_00, percent=150, commission=1_500_00)

    with pytest.raises(ValidationError):
        payroll_service.set_commissions(finance, draft_id, "emp-ana", [over])
    with pytest.raises(NotFoundError):
        payroll_service.set_commissions(finance, draft_id, "nobody", [])

    payroll_service.request_exec_approval(finance, draft_id)
    with pytest.raises(ValidationError):
        payroll_service.set_commissions(finance, draft_id, "emp-ana", [])


def test_edit_line_day_recomputes_the_line(payroll_service, drafts_repo, finance):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    line = payroll_service.edit_line_day(
        finance, draft_id, "emp-ana", date(2025, 1, 15), time_in="07:00", time_out="17:00"
    )
    assert line.tardiness_minutes == 0
    assert line.days_worked == 3.0

    line = payroll_service.edit_line_day(
        finance, draft_id, "emp-ana", date(2025, 1, 16), time_in="07:00", time_out="16:00"
    )
    assert line.days_worked == 4.0
    assert line.hours_worked == 32.0
    assert [t.work_date.day for t in line.time_in_out] == [13, 14, 15, 16]
    assert _lines_by_id(drafts_repo, draft_id)["emp-ana"] == line


def test_edit_line_day_uses_the_intern_shift(payroll_service, finance):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    line = payroll_service.edit_line_day(
        finance, draft_id, "emp-bianca", date(2025, 1, 14), time_in="10:00", time_out="16:30"
    )

    assert line.days_worked == 2.0
    assert line.tardiness_minutes == 10 + 180


def test_remove_line_day_keeps_approved_remote_work(payroll_service, request_service, finance):
    wfh = request_service.file_request(
        finance,
        employee_id="emp-ana",
        type="WFH",
        work_date=date(2025, 1, 16),
        time_in="08:00",
        time_out="17:00",
        proof_url="screenshot.png",
    )
    request_service.approve(finance, wfh)
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    line = payroll_service.remove_line_day(finance, draft_id, "emp-ana", date(2025, 1, 14))

    assert line.days_worked == 3.0
    assert line.hours_worked == 24.0
    assert len(line.time_in_out) == 2


def test_day_edits_are_validated(payroll_service, finance):
    draft_id = payroll_service.publish(finance, WINDOW, _records())

    with pytest.raises(ValidationError):
        payroll_service.edit_line_day(finance, draft_id, "emp-ana", date(2025, 1, 27), time_in="07:00", time_out="")
    with pytest.raises(NotFoundError):
        payroll_service.remove_line_day(finance, draft_id, "emp-ana", date(2025, 1, 20))
    with pytest.raises(NotFoundError):
        payroll_service.edit_line_day(finance, draft_id, "nobody", date(2025, 1, 13), time_in="07:00", time_out="")

    payroll_service.request_exec_approval(finance, draft_id)
    with pytest.raises(ValidationError):
        payroll_service.remove_line_day(finance, draft_id, "emp-ana", date(2025, 1, 13))
