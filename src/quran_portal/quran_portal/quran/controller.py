from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import now_local, parse_month
from ..common.web import json_body, login_required, require_user, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.quran_service

    @app.route("/api/quran/pages", methods=["POST"], endpoint="calculate_pages")
    @login_required
    def calculate_pages():
        data = json_body()
        return jsonify(svc.calculate_pages(data.get("surah", ""), data.get("verses", "")))

    @app.route("/api/students/<int:student_id>/pages", methods=["POST"], endpoint="record_pages")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def record_pages(student_id: int):
        container.student_service.require_view(require_user(), student_id)
        student = container.student_service.get_student(student_id)
        data = json_body()
        result = svc.calculate_pages(data.get("surah", ""), data.get("verses", ""))
        month = parse_month(data["month"]) if data.get("month") else now_local().date()
        container.progress_service.record_pages(
            student_id=student_id, class_id=student.class_id, month=month, pages=result["pages"]
        )
        return jsonify({"success": True, **result})
