from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.web import (
    current_user,
    json_body,
    json_error,
    login_required,
    require_user,
    roles_required,
    store_session_user,
)
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def _parse_role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value!r}")


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember", True))
        store_session_user(s_user)
        return jsonify(
            {
                "success": True,
                "user": {
                    "user_id": s_user.user_id,
                    "email": s_user.email,
                    "full_name": s_user.full_name,
                    "role": s_user.role.value,
                },
                "subscribed": container.billing_service.check_subscription(s_user),
            }
        )

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/me", methods=["GET"], endpoint="me")
    def me():
        user = current_user()
        if user is None:
            return json_error("Login required", 401)
        return jsonify(
            {
                "user_id": user.user_id,
                "email": user.email,
                "full_name": user.full_name,
                "role": user.role.value,
                "subscribed": container.billing_service.check_subscription(user),
            }
        )

    @app.route("/api/me/password", methods=["POST"], endpoint="change_password")
    @login_required
    def change_password():
        data = json_body()
        container.auth_service.change_password(
            user_id=require_user().user_id,
            current_password=data.get("current_password", ""),
            new_password=data.get("new_password", ""),
        )
        return jsonify({"success": True})

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    @roles_required(Role.ADMIN, Role.TEACHER)
    def list_users():
        role = _parse_role(request.args.get("role", Role.PARENT.value))
        return jsonify({"users": container.user_service.list_by_role(role)})

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @roles_required(Role.ADMIN)
    def create_user():
        data = json_body()
        user_id = container.user_service.create_user_with_role(
            current_role=require_user().role,
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=_parse_role(data.get("role")),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            phone_number=data.get("phone_number"),
            parent_id=data.get("parent_id"),
            class_id=data.get("class_id"),
            is_adult_student=bool(data.get("is_adult_student", False)),
        )
        return jsonify({"success": True, "user_id": user_id}), 201

    @app.route("/api/users/<int:user_id>", methods=["PATCH"], endpoint="update_user")
    @roles_required(Role.ADMIN)
    def update_user(user_id: int):
        data = json_body()
        role = require_user().role
        if "email" in data:
            container.user_service.update_email(current_role=role, user_id=user_id, email=data["email"])
        if "phone_number" in data:
            container.user_service.update_phone(current_role=role, user_id=user_id, phone_number=data["phone_number"])
        if "password" in data:
            container.user_service.reset_password(current_role=role, user_id=user_id, password=data["password"])
        return jsonify({"success": True})

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    @roles_required(Role.ADMIN)
    def delete_user(user_id: int):
        container.user_service.delete_user(current_role=require_user().role, user_id=user_id)
        return jsonify({"success": True})
