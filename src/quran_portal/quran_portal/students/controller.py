from __future__ import annotations

from flask import Flask, jsonify

from ..common.validators import require_positive_int
from ..common.web import json_body, login_required, require_user, roles_required
from ..core.enums import Role
from ..container import Container
from .model import Student


def student_dict(s: Student) -> dict:
    return {
        "student_id": s.student_id,
        "name": s.name,
        "email": s.email,
        "class_id": s.class_id,
        "absence_level": s.absence_level,
        "consecutive_absences": s.consecutive_absences,
        "failure_level": s.failure_level,
        "last_lesson_status": s.last_lesson_status.value if s.last_lesson_status else None,
    }


def register(app: Flask, container: Container) -> None:
    svc = container.student_service
    classes = container.class_service

    @app.route("/api/classes/<int:class_id>/students", methods=["GET"], endpoint="list_class_students")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def list_class_students(class_id: int):
        classes.require_manage(require_user(), class_id)
        return jsonify({"students": [student_dict(s) for s in svc.list_class_students(class_id)]})

    @app.route("/api/classes/<int:class_id>/students", methods=["POST"], endpoint="add_student")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def add_student(class_id: int):
        data = json_body()
        student_id = svc.add_student(
            current_user=require_user(), class_id=class_id, name=data.get("name", ""), email=data.get("email")
        )
        return jsonify({"success": True, "student_id": student_id}), 201

    @app.route("/api/students/<int:student_id>", methods=["GET"], endpoint="get_student")
    @login_required
    def get_student(student_id: int):
        svc.require_view(require_user(), student_id)
        return jsonify(student_dict(svc.get_student(student_id)))

    @app.route("/api/students/<int:student_id>/transfer", methods=["POST"], endpoint="transfer_student")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def transfer_student(student_id: int):
        svc.transfer_student(
            current_user=require_user(),
            student_id=student_id,
            class_id=require_positive_int(json_body().get("class_id"), "class_id"),
        )
        return jsonify({"success": True})

    @app.route("/api/students/<int:student_id>", methods=["DELETE"], endpoint="remove_student")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def remove_student(student_id: int):
        svc.remove_student(current_user=require_user(), student_id=student_id)
        return jsonify({"success": True})

    @app.route("/api/students/<int:student_id>/parents", methods=["POST"], endpoint="link_parent")
    @roles_required(Role.ADMIN)
    def link_parent(student_id: int):
        data = json_body()
        link_id = svc.link_parent(
            current_role=require_user().role,
            parent_user_id=require_positive_int(data.get("parent_user_id"), "parent_user_id"),
            student_id=student_id,
            phone_number=data.get("phone_number"),
            secondary_phone_number=data.get("secondary_phone_number"),
        )
        return jsonify({"success": True, "link_id": link_id}), 201

    @app.route(
        "/api/students/<int:student_id>/parents/<int:parent_user_id>", methods=["DELETE"], endpoint="unlink_parent"
    )
    @roles_required(Role.ADMIN)
    def unlink_parent(student_id: int, parent_user_id: int):
        svc.unlink_parent(current_role=require_user().role, parent_user_id=parent_user_id, student_id=student_id)
        return jsonify({"success": True})

    @app.route("/api/me/children", methods=["GET"], endpoint="my_children")
    @roles_required(Role.PARENT)
    def my_children():
        return jsonify({"students": [student_dict(s) for s in svc.children_of(require_user().user_id)]})
