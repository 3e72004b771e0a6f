from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import json_body, login_required, require_user, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.class_service

    @app.route("/api/classes", methods=["GET"], endpoint="list_classes")
    @login_required
    def list_classes():
        classes = svc.list_for_user(require_user())
        return jsonify({"classes": [{"class_id": c.class_id, "name": c.name} for c in classes]})

    @app.route("/api/classes", methods=["POST"], endpoint="create_class")
    @roles_required(Role.ADMIN)
    def create_class():
        class_id = svc.create_class(current_role=require_user().role, name=json_body().get("name", ""))
        return jsonify({"success": True, "class_id": class_id}), 201

    @app.route("/api/classes/<int:class_id>", methods=["GET"], endpoint="get_class")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def get_class(class_id: int):
        svc.require_manage(require_user(), class_id)
        klass = svc.get_class(class_id)
        link = svc.get_link(class_id)
        return jsonify(
            {
                "class_id": klass.class_id,
                "name": klass.name,
                "teachers": svc.list_teachers(class_id),
                "linked_class_id": link.partner_of(class_id) if link else None,
            }
        )

    @app.route("/api/classes/<int:class_id>", methods=["PATCH"], endpoint="rename_class")
    @roles_required(Role.ADMIN)
    def rename_class(class_id: int):
        svc.rename_class(current_role=require_user().role, class_id=class_id, name=json_body().get("name", ""))
        return jsonify({"success": True})

    @app.route("/api/classes/<int:class_id>", methods=["DELETE"], endpoint="delete_class")
    @roles_required(Role.ADMIN)
    def delete_class(class_id: int):
        svc.delete_class(current_role=require_user().role, class_id=class_id)
        return jsonify({"success": True})

    @app.route("/api/classes/<int:class_id>/teachers", methods=["POST"], endpoint="assign_teacher")
    @roles_required(Role.ADMIN)
    def assign_teacher(class_id: int):
        svc.assign_teacher(
            current_role=require_user().role, class_id=class_id, teacher_id=int(json_body().get("teacher_id") or 0)
        )
        return jsonify({"success": True})

    @app.route("/api/classes/<int:class_id>/teachers/<int:teacher_id>", methods=["DELETE"], endpoint="remove_teacher")
    @roles_required(Role.ADMIN)
    def remove_teacher(class_id: int, teacher_id: int):
        svc.remove_teacher(current_role=require_user().role, class_id=class_id, teacher_id=teacher_id)
        return jsonify({"success": True})

    @app.route("/api/classes/<int:class_id>/link", methods=["POST"], endpoint="link_class")
    @roles_required(Role.ADMIN)
    def link_class(class_id: int):
        link_id = svc.link_classes(
            current_role=require_user().role,
            weekday_class_id=class_id,
            weekend_class_id=int(json_body().get("weekend_class_id") or 0),
        )
        return jsonify({"success": True, "link_id": link_id}), 201

    @app.route("/api/classes/<int:class_id>/link", methods=["DELETE"], endpoint="unlink_class")
    @roles_required(Role.ADMIN)
    def unlink_class(class_id: int):
        svc.unlink(current_role=require_user().role, class_id=class_id)
        return jsonify({"success": True})
