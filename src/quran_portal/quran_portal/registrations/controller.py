from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import json_body, require_user, roles_required
from ..core.enums import RegistrationStatus, Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.registration_service

    @app.route("/api/registrations", methods=["POST"], endpoint="submit_registration")
    def submit_registration():
        data = json_body()
        registration_id = svc.submit_registration(
            email=data.get("email", ""),
            parent_name=data.get("parent_name"),
            phone=data.get("phone", ""),
            registration_type=data.get("registration_type", ""),
            students=data.get("students") or [],
        )
        return jsonify({"success": True, "registration_id": registration_id}), 201

    @app.route("/api/registrations", methods=["GET"], endpoint="list_registrations")
    @roles_required(Role.ADMIN)
    def list_registrations():
        raw = request.args.get("status")
        try:
            status = RegistrationStatus(raw) if raw else None
        except ValueError:
            raise ValidationError(f"Invalid status: {raw!r}")
        items = svc.list_registrations(current_role=require_user().role, status=status)
        return jsonify({"registrations": [r.to_dict() for r in items]})

    @app.route("/api/registrations/<int:registration_id>/process", methods=["POST"], endpoint="process_registration")
    @roles_required(Role.ADMIN)
    def process_registration(registration_id: int):
        data = json_body()
        result = svc.process_registration(
            current_role=require_user().role,
            registration_id=registration_id,
            class_assignments=data.get("classAssignments") or {},
        )
        return jsonify(result)

    @app.route("/api/registrations/<int:registration_id>/reject", methods=["POST"], endpoint="reject_registration")
    @roles_required(Role.ADMIN)
    def reject_registration(registration_id: int):
        svc.reject_registration(current_role=require_user().role, registration_id=registration_id)
        return jsonify({"success": True})
