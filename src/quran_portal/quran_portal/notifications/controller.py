from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import int_arg, json_body, require_user, roles_required
from ..core.enums import Role, TemplateType
from ..core.exceptions import ValidationError
from ..container import Container


def _template_type(value) -> TemplateType:
    try:
        return TemplateType(value)
    except ValueError:
        raise ValidationError(f"Invalid template type: {value!r}")


def register(app: Flask, container: Container) -> None:
    svc = container.notification_service
    students = container.student_service
    classes = container.class_service

    @app.route("/api/students/<int:student_id>/notify", methods=["POST"], endpoint="notify_student")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def notify_student(student_id: int):
        students.require_view(require_user(), student_id)
        data = json_body()
        result = svc.notify_student(
            student_id=student_id,
            template_type=_template_type(data["template_type"]) if data.get("template_type") else None,
            custom_message=data.get("custom_message"),
            assignment_id=data.get("assignment_id"),
        )
        return jsonify(result)

    @app.route("/api/classes/<int:class_id>/sms", methods=["POST"], endpoint="send_class_sms")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def send_class_sms(class_id: int):
        classes.require_manage(require_user(), class_id)
        return jsonify(svc.broadcast_class(class_id=class_id, message=json_body().get("message", "")))

    @app.route("/api/sms/global", methods=["POST"], endpoint="send_global_sms")
    @roles_required(Role.ADMIN)
    def send_global_sms():
        return jsonify(svc.broadcast_global(current_role=require_user().role, message=json_body().get("message", "")))

    @app.route("/api/sms/direct", methods=["POST"], endpoint="send_direct_sms")
    @roles_required(Role.ADMIN)
    def send_direct_sms():
        data = json_body()
        result = svc.send_direct(
            current_role=require_user().role,
            phone_number=data.get("phone_number", ""),
            message=data.get("message", ""),
        )
        return jsonify(result)

    @app.route("/api/templates", methods=["GET"], endpoint="list_templates")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def list_templates():
        class_id = int_arg("class_id")
        if class_id is not None:
            classes.require_manage(require_user(), class_id)
        return jsonify({"templates": svc.list_templates(class_id=class_id)})

    @app.route("/api/templates/<type>", methods=["PUT"], endpoint="upsert_global_template")
    @roles_required(Role.ADMIN)
    def upsert_global_template(type: str):
        svc.upsert_global_template(
            current_role=require_user().role, type=_template_type(type), content=json_body().get("content", "")
        )
        return jsonify({"success": True})

    @app.route("/api/classes/<int:class_id>/templates/<type>", methods=["PUT"], endpoint="upsert_class_template")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def upsert_class_template(class_id: int, type: str):
        classes.require_manage(require_user(), class_id)
        svc.upsert_class_template(class_id=class_id, type=_template_type(type), content=json_body().get("content", ""))
        return jsonify({"success": True})

    @app.route("/api/classes/<int:class_id>/templates/<type>", methods=["DELETE"], endpoint="delete_class_template")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def delete_class_template(class_id: int, type: str):
        classes.require_manage(require_user(), class_id)
        deleted = svc.delete_class_template(class_id=class_id, type=_template_type(type))
        return jsonify({"success": True, "deleted": deleted})

    @app.route("/api/presets", methods=["GET"], endpoint="list_presets")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def list_presets():
        is_adult = request.args.get("is_adult")
        presets = svc.list_presets(
            _template_type(request.args.get("type", "")),
            level=int_arg("level"),
            is_adult=None if is_adult is None else is_adult.lower() in ("1", "true", "yes"),
        )
        return jsonify(
            {
                "presets": [
                    {
                        "preset_id": p.preset_id,
                        "type": p.type.value,
                        "content": p.content,
                        "level": p.level,
                        "is_adult": p.is_adult,
                        "is_default": p.is_default,
                    }
                    for p in presets
                ]
            }
        )

    @app.route("/api/classes/<int:class_id>/weekday-presets", methods=["GET"], endpoint="weekday_presets")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def weekday_presets(class_id: int):
        classes.require_manage(require_user(), class_id)
        presets = svc.weekday_presets(class_id=class_id, type=_template_type(request.args.get("type", "")))
        return jsonify(
            {"presets": [{"preset_id": p.preset_id, "content": p.content, "class_id": p.class_id} for p in presets]}
        )
