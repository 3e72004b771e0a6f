from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import int_arg, json_body, login_required, require_user, roles_required
from ..core.enums import AssignmentType, LessonType, Role
from ..core.exceptions import ValidationError
from ..container import Container
from .model import Assignment


def assignment_dict(a: Assignment) -> dict:
    return {
        "assignment_id": a.assignment_id,
        "student_id": a.student_id,
        "surah": a.surah,
        "verses": a.verses,
        "type": a.type.value,
        "status": a.status.value,
        "lesson_id": a.lesson_id,
        "created_at": a.created_at.isoformat() if a.created_at else None,
        "updated_at": a.updated_at.isoformat() if a.updated_at else None,
    }


def _enum(cls, value, default):
    if value in (None, ""):
        return default
    try:
        return cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {cls.__name__}: {value!r}")


def register(app: Flask, container: Container) -> None:
    svc = container.lesson_service
    students = container.student_service

    @app.route("/api/students/<int:student_id>/lesson", methods=["GET"], endpoint="current_lesson")
    @login_required
    def current_lesson(student_id: int):
        students.require_view(require_user(), student_id)
        lesson = svc.get_current_lesson(student_id)
        return jsonify(
            {
                "student_id": student_id,
                "label": svc.current_lesson_label(student_id),
                "lesson": None
                if lesson is None
                else {
                    "lesson_id": lesson.lesson_id,
                    "surah": lesson.surah,
                    "verses": lesson.verses,
                    "lesson_type": lesson.lesson_type.value,
                    "sort_order": lesson.sort_order,
                },
                "recently_passed": svc.recently_passed(student_id),
            }
        )

    @app.route("/api/students/<int:student_id>/lesson", methods=["PUT"], endpoint="set_current_lesson")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def set_current_lesson(student_id: int):
        data = json_body()
        lesson_id = svc.set_current_lesson(
            current_user=require_user(),
            student_id=student_id,
            surah=data.get("surah", ""),
            verses=data.get("verses", ""),
            lesson_type=_enum(LessonType, data.get("lesson_type"), LessonType.QURAN),
            sort_order=data.get("sort_order"),
        )
        return jsonify({"success": True, "lesson_id": lesson_id})

    @app.route("/api/students/<int:student_id>/assignments", methods=["GET"], endpoint="list_assignments")
    @login_required
    def list_assignments(student_id: int):
        students.require_view(require_user(), student_id)
        items = svc.list_assignments(student_id, limit=int_arg("limit"))
        return jsonify({"assignments": [assignment_dict(a) for a in items]})

    @app.route("/api/students/<int:student_id>/assignments", methods=["POST"], endpoint="assign_homework")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def assign_homework(student_id: int):
        data = json_body()
        result = svc.assign_homework(
            current_user=require_user(),
            student_id=student_id,
            surah=data.get("surah", ""),
            verses=data.get("verses", ""),
            type=_enum(AssignmentType, data.get("type"), AssignmentType.HOMEWORK),
            notify=bool(data.get("notify", False)),
        )
        return jsonify({"success": True, **result}), 201

    @app.route("/api/assignments/<int:assignment_id>/grade", methods=["POST"], endpoint="grade_assignment")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def grade_assignment(assignment_id: int):
        data = json_body()
        if "passed" not in data:
            raise ValidationError("passed is required")
        result = svc.grade(
            current_user=require_user(),
            assignment_id=assignment_id,
            passed=bool(data["passed"]),
            notify=bool(data.get("notify", False)),
        )
        return jsonify({"success": True, **result})
