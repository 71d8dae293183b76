from __future__ import annotations

from datetime import date, datetime

from flask import Flask, jsonify, request

from ..common.http import json_api, session_user
from ..common.money import to_centavos
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.request_service

    def _parse_date(v: str) -> date:
        try:
            return datetime.strptime(v or "", "%Y-%m-%d").date()
        except ValueError:
            raise ValidationError("Invalid date (YYYY-MM-DD)")

    def _amount(v) -> int:
        try:
            return to_centavos(v)
        except ArithmeticError:
            raise ValidationError("Invalid amount")

    @app.route("/requests", methods=["POST"], endpoint="file_request")
    @json_api
    def file_request():
        data = request.get_json(silent=True) or {}
        actor = session_user()
        try:
            hours = float(data.get("hours") or 0)
        except (TypeError, ValueError):
            raise ValidationError("Invalid hours")
        request_id = service.file_request(
            actor,
            employee_id=str(data.get("employee_id") or actor.user_id),
            type=data.get("type") or "",
            work_date=_parse_date(data.get("date") or ""),
            hours=hours,
            ob_category=data.get("ob_category") or "",
            time_in=data.get("time_in") or "",
            time_out=data.get("time_out") or "",
            leave_kind=data.get("leave_kind") or "",
            proof_url=data.get("proof_url") or "",
            note=data.get("note") or "",
        )
        return jsonify({"success": True, "request_id": request_id}), 201

    @app.route("/requests/<int:request_id>/approve", methods=["POST"], endpoint="approve_request")
    @json_api
    def approve_request(request_id: int):
        service.approve(session_user(), request_id)
        return jsonify({"success": True})

    @app.route("/requests/<int:request_id>/reject", methods=["POST"], endpoint="reject_request")
    @json_api
    def reject_request(request_id: int):
        service.reject(session_user(), request_id)
        return jsonify({"success": True})

    @app.route("/cash-advances", methods=["POST"], endpoint="file_cash_advance")
    @json_api
    def file_cash_advance():
        data = request.get_json(silent=True) or {}
        actor = session_user()
        advance_id = service.file_cash_advance(
            actor,
            employee_id=str(data.get("employee_id") or actor.user_id),
            total_amount=_amount(data.get("total_amount")),
            per_cut_off=_amount(data.get("per_cut_off")),
            start_half=data.get("start_half") or "first",
        )
        return jsonify({"success": True, "advance_id": advance_id}), 201

    @app.route("/cash-advances/<int:advance_id>/approve", methods=["POST"], endpoint="approve_cash_advance")
    @json_api
    def approve_cash_advance(advance_id: int):
        service.approve_cash_advance(session_user(), advance_id)
        return jsonify({"success": True})

    @app.route("/cash-advances/<int:advance_id>/deduct", methods=["POST"], endpoint="deduct_cash_advance")
    @json_api
    def deduct_cash_advance(advance_id: int):
        data = request.get_json(silent=True) or {}
        advance = service.record_deduction(session_user(), advance_id, _amount(data.get("amount")))
        return jsonify({"success": True, "remaining_balance": advance.remaining_balance})
