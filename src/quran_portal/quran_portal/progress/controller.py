from __future__ import annotations

import csv
import io

from flask import Flask, Response, jsonify, request

from ..common.datetime_utils import now_local, parse_month
from ..common.web import json_body, login_required, require_user, roles_required
from ..core.enums import Role
from ..container import Container

_CSV_FIELDS = [
    "name",
    "lessons_passed",
    "lessons_failed",
    "review_near_passed",
    "review_near_failed",
    "review_far_passed",
    "review_far_failed",
    "active_days",
    "pages_passed",
    "pass_rate",
]


def register(app: Flask, container: Container) -> None:
    svc = container.progress_service
    students = container.student_service
    classes = container.class_service

    def _month(value):
        return parse_month(value) if value else now_local().date()

    @app.route("/api/students/<int:student_id>/stats", methods=["GET"], endpoint="student_stats")
    @login_required
    def student_stats(student_id: int):
        students.require_view(require_user(), student_id)
        return jsonify(svc.student_stats(student_id=student_id, month=_month(request.args.get("month"))))

    @app.route("/api/students/<int:student_id>/feedback", methods=["PUT"], endpoint="save_feedback")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def save_feedback(student_id: int):
        user = require_user()
        students.require_view(user, student_id)
        data = json_body()
        svc.save_feedback(
            teacher_id=user.user_id, student_id=student_id, month=_month(data.get("month")), text=data.get("feedback", "")
        )
        return jsonify({"success": True})

    @app.route("/api/classes/<int:class_id>/report", methods=["GET"], endpoint="class_report")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def class_report(class_id: int):
        classes.require_manage(require_user(), class_id)
        report = svc.class_report(class_id=class_id, month=_month(request.args.get("month")))
        return jsonify({"rows": report.rows, "summary": report.summary})

    @app.route("/api/classes/<int:class_id>/report.csv", methods=["GET"], endpoint="export_class_report")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def export_class_report(class_id: int):
        classes.require_manage(require_user(), class_id)
        report = svc.class_report(class_id=class_id, month=_month(request.args.get("month")))

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=_CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(report.rows)

        filename = f"class_{class_id}_{report.summary['month']}.csv"
        return Response(
            output.getvalue(),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
