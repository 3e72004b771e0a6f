from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import require_user, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.reset_service

    @app.route("/api/resets/monthly", methods=["POST"], endpoint="monthly_reset")
    @roles_required(Role.ADMIN)
    def monthly_reset():
        return jsonify(svc.run_monthly_reset())

    @app.route("/api/resets/status", methods=["GET"], endpoint="reset_status")
    @roles_required(Role.ADMIN)
    def reset_status():
        log = svc.reset_status()
        return jsonify({"last_reset": log.to_dict() if log else None})

    @app.route("/api/classes/<int:class_id>/reset-levels", methods=["POST"], endpoint="reset_class_levels")
    @roles_required(Role.ADMIN)
    def reset_class_levels(class_id: int):
        count = svc.reset_levels(current_role=require_user().role, class_id=class_id)
        return jsonify({"success": True, "students_reset": count})
