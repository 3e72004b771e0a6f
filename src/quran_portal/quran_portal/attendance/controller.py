from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local, parse_iso_date, parse_month
from ..common.web import json_body, login_required, require_user, roles_required
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import ValidationError
from ..container import Container


def _parse_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        raise ValidationError("Status must be 'present' or 'absent'")


def register(app: Flask, container: Container) -> None:
    svc = container.attendance_service
    classes = container.class_service
    students = container.student_service

    def _day(value):
        return parse_iso_date(value) if value else now_local().date()

    @app.route("/api/classes/<int:class_id>/attendance", methods=["GET"], endpoint="class_roster")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def class_roster(class_id: int):
        classes.require_manage(require_user(), class_id)
        day = _day(request.args.get("date"))
        rows = svc.class_roster(class_id=class_id, today=day)
        return jsonify({"date": day.isoformat(), "students": [r.to_dict() for r in rows]})

    @app.route("/api/classes/<int:class_id>/attendance", methods=["POST"], endpoint="mark_attendance")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def mark_attendance(class_id: int):
        data = json_body()
        result = svc.mark(
            current_user=require_user(),
            student_id=int(data.get("student_id") or 0),
            class_id=class_id,
            status=_parse_status(data.get("status")),
            note=data.get("note"),
            today=_day(data.get("date")),
            notify=bool(data.get("notify", False)),
        )
        return jsonify({"success": True, **result})

    @app.route(
        "/api/classes/<int:class_id>/attendance/mark-remaining-absent",
        methods=["POST"],
        endpoint="mark_remaining_absent",
    )
    @roles_required(Role.ADMIN, Role.TEACHER)
    def mark_remaining_absent(class_id: int):
        result = svc.mark_unmarked_absent(
            current_user=require_user(), class_id=class_id, today=_day(json_body().get("date"))
        )
        return jsonify({"success": True, **result})

    @app.route("/api/classes/<int:class_id>/attendance/history", methods=["GET"], endpoint="attendance_history")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def attendance_history(class_id: int):
        classes.require_manage(require_user(), class_id)
        start = parse_iso_date(request.args.get("start", ""))
        end = parse_iso_date(request.args.get("end", ""))
        return jsonify({"records": svc.history(class_id=class_id, start=start, end=end)})

    @app.route("/api/students/<int:student_id>/absences", methods=["GET"], endpoint="student_absences")
    @login_required
    def student_absences(student_id: int):
        students.require_view(require_user(), student_id)
        raw = request.args.get("month")
        month = parse_month(raw) if raw else now_local().date()
        return jsonify(
            {
                "student_id": student_id,
                "month": month.strftime("%Y-%m"),
                "absences": svc.monthly_absences(student_id=student_id, month=month),
            }
        )
