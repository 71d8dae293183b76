from __future__ import annotations

from datetime import date, datetime

from flask import Flask, jsonify, request

from ..common.http import json_api, session_user
from ..common.money import format_peso, to_centavos
from ..core.enums import CommissionKind
from ..core.exceptions import ValidationError
from ..container import Container
from .calculator.model import PayrollResult
from .model import Commission, PayrollDraftHead, PayrollDraftLine, Payslip


def _head_dict(head: PayrollDraftHead) -> dict:
    return {
        "draft_id": head.draft_id,
        "status": head.status.value,
        "period_key": head.period_key,
        "cutoff_label": head.cutoff_label,
        "exec_approvals": list(head.exec_approvals),
        "required_exec_approvals": head.required_exec_approvals,
        "admin_approval": head.admin_approval,
        "rejected_by": head.rejected_by,
    }


def _payslip_dict(p: Payslip) -> dict:
    return {
        "payslip_id": p.payslip_id,
        "employee_id": p.employee_id,
        "employee_name": p.employee_name,
        "cutoff_label": p.cutoff_label,
        "net_pay": p.net_pay,
        "net_pay_display": format_peso(p.net_pay),
        "status": p.status.value,
    }


def _line_dict(line: PayrollDraftLine) -> dict:
    return {
        "employee_id": line.employee_id,
        "name": line.name,
        "days_worked": line.days_worked,
        "hours_worked": line.hours_worked,
        "tardiness_minutes": line.tardiness_minutes,
        "time_in_out": [
            {
                "date": t.work_date.isoformat(),
                "in": t.time_in.strftime("%H:%M") if t.time_in else None,
                "out": t.time_out.strftime("%H:%M") if t.time_out else None,
            }
            for t in line.time_in_out
        ],
    }


def _result_dict(r: PayrollResult) -> dict:
    return {
        "basic_pay": r.basic_pay,
        "ob_pay": r.ob_pay,
        "commission_pay": r.commission_pay,
        "ot_pay": r.ot_pay,
        "rdot_pay": r.rdot_pay,
        "gross_earnings": r.gross_earnings,
        "total_deductions": r.total_deductions,
        "net_pay": r.net_pay,
        "net_pay_display": format_peso(r.net_pay),
    }


def _amount(value) -> int:
    try:
        return to_centavos(value)
    except ArithmeticError:
        raise ValidationError("Invalid amount")


def _parse_commissions(rows) -> list[Commission]:
    out = []
    for row in rows or []:
        if not isinstance(row, dict):
            raise ValidationError("Invalid commission row")
        try:
            kind = CommissionKind(str(row.get("type") or "").strip().lower())
            percent = float(row.get("percent") or 0)
        except (TypeError, ValueError):
            raise ValidationError("Invalid commission row")
        out.append(
            Commission.build(
                client=str(row.get("client") or "").strip(),
                kind=kind,
                amount=_amount(row.get("amount")),
                percent=percent,
            )
        )
    return out


def _parse_date(value) -> date:
    try:
        return datetime.strptime(value or "", "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError("Invalid date (YYYY-MM-DD)")


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    @app.route("/payroll/drafts/<int:draft_id>/<action>", methods=["POST"], endpoint="payroll_draft_action")
    @json_api
    def payroll_draft_action(draft_id: int, action: str):
        actor = session_user()
        if action == "request-approval":
            head = service.request_exec_approval(actor, draft_id)
        elif action == "exec-approve":
            head = service.exec_approve(actor, draft_id)
        elif action == "reject":
            head = service.reject(actor, draft_id)
        elif action == "final-approve":
            payslip_ids = service.admin_final_approve(actor, draft_id)
            return jsonify({"success": True, "payslip_ids": payslip_ids})
        elif action == "cash-advance":
            data = request.get_json(silent=True) or {}
            amount = data.get("amount")
            centavos = _amount(amount) if amount not in (None, "") else None
            service.set_manual_cash_advance(actor, draft_id, str(data.get("employee_id") or ""), centavos)
            return jsonify({"success": True})
        elif action == "commission":
            data = request.get_json(silent=True) or {}
            kept = service.set_commissions(
                actor, draft_id, str(data.get("employee_id") or ""), _parse_commissions(data.get("commissions"))
            )
            return jsonify({"success": True, "commission_total": sum(c.commission for c in kept)})
        elif action == "edit-day":
            data = request.get_json(silent=True) or {}
            line = service.edit_line_day(
                actor,
                draft_id,
                str(data.get("employee_id") or ""),
                _parse_date(data.get("date")),
                time_in=data.get("time_in") or "",
                time_out=data.get("time_out") or "",
            )
            return jsonify({"success": True, "line": _line_dict(line)})
        elif action == "remove-day":
            data = request.get_json(silent=True) or {}
            line = service.remove_line_day(
                actor, draft_id, str(data.get("employee_id") or ""), _parse_date(data.get("date"))
            )
            return jsonify({"success": True, "line": _line_dict(line)})
        else:
            return jsonify({"success": False, "message": f"Unknown action: {action}"}), 404
        return jsonify({"success": True, "draft": _head_dict(head)})

    @app.route("/payroll/drafts/<int:draft_id>/preview", methods=["GET"], endpoint="payroll_draft_preview")
    @json_api
    def payroll_draft_preview(draft_id: int):
        totals = service.preview_totals(draft_id)
        return jsonify({"success": True, "gross": totals.gross, "net": totals.net, "count": totals.count})

    @app.route(
        "/payroll/drafts/<int:draft_id>/lines/<employee_id>/preview",
        methods=["GET"],
        endpoint="payroll_line_preview",
    )
    @json_api
    def payroll_line_preview(draft_id: int, employee_id: str):
        result = service.preview_line(draft_id, employee_id)
        return jsonify({"success": True, "result": _result_dict(result)})

    @app.route("/payroll/payslips/<int:payslip_id>/publish", methods=["POST"], endpoint="payroll_payslip_publish")
    @json_api
    def payroll_payslip_publish(payslip_id: int):
        payslip = service.publish_payslip(session_user(), payslip_id)
        return jsonify({"success": True, "payslip": _payslip_dict(payslip)})

    @app.route(
        "/payroll/drafts/<int:draft_id>/publish-payslips",
        methods=["POST"],
        endpoint="payroll_publish_all",
    )
    @json_api
    def payroll_publish_all(draft_id: int):
        count = service.publish_all(session_user(), draft_id)
        return jsonify({"success": True, "published": count})
