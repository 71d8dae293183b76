from __future__ import annotations

from datetime import date, datetime

from flask import Flask, jsonify, request

from ..common.http import json_api, session_user
from ..core.exceptions import ValidationError
from ..container import Container
from .model import CutoffWindow
from .service import RecordEdit


def _window_dict(w: CutoffWindow) -> dict:
    return {
        "label": w.label,
        "start": w.start.isoformat(),
        "end": w.end.isoformat(),
        "period_key": w.period_key,
        "half": w.half.value,
    }


def register(app: Flask, container: Container) -> None:
    def _raw_text() -> str:
        upload = request.files.get("file")
        if upload is not None:
            return upload.read().decode("utf-8-sig", errors="replace")
        data = request.get_json(silent=True) or {}
        return data.get("raw_text") or ""

    def _cutoff_start() -> date:
        data = request.get_json(silent=True) or {}
        value = data.get("cutoff_start") or request.form.get("cutoff_start") or ""
        try:
            return datetime.strptime(value, "%Y-%m-%d").date()
        except ValueError:
            raise ValidationError("Please select a cutoff window first.")

    def _edits() -> list[RecordEdit]:
        data = request.get_json(silent=True) or {}
        return [
            RecordEdit(
                employee_key=str(e.get("employee_key") or ""),
                time_in=e.get("time_in") or "",
                time_out=e.get("time_out") or "",
            )
            for e in data.get("edits") or []
        ]

    @app.route("/attendance/import", methods=["POST"], endpoint="attendance_import")
    @json_api
    def attendance_import():
        summary = container.attendance_service.import_export(session_user(), _raw_text())
        return jsonify(
            {
                "success": True,
                "punches": len(summary.result.punches),
                "skipped_rows": [
                    {"line_number": s.line_number, "raw_line": s.raw_line, "reason": s.reason}
                    for s in summary.result.skipped_rows
                ],
                "cutoff_options": [_window_dict(w) for w in summary.options],
                "suggested_cutoff": _window_dict(summary.suggested) if summary.suggested else None,
            }
        )

    @app.route("/attendance/process", methods=["POST"], endpoint="attendance_process")
    @json_api
    def attendance_process():
        window, records = container.attendance_service.process(
            session_user(), _raw_text(), _cutoff_start(), _edits()
        )
        return jsonify(
            {
                "success": True,
                "cutoff": _window_dict(window),
                "records": [r.to_dict() for r in records],
            }
        )

    @app.route("/attendance/publish", methods=["POST"], endpoint="attendance_publish")
    @json_api
    def attendance_publish():
        draft_id = container.attendance_service.publish(session_user(), _raw_text(), _cutoff_start(), _edits())
        return (
            jsonify(
                {
                    "success": True,
                    "draft_id": draft_id,
                    "message": "Attendance saved and payroll draft created.",
                }
            ),
            201,
        )
