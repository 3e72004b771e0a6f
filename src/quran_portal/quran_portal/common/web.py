from __future__ import annotations

import logging
from functools import wraps
from typing import Callable, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from ..users.service import SessionUser

logger = logging.getLogger(__name__)


def store_session_user(user: SessionUser) -> None:
    session["user_id"] = user.user_id
    session["email"] = user.email
    session["name"] = user.full_name
    session["role"] = user.role.value


def current_user() -> Optional[SessionUser]:
    if "user_id" not in session:
        return None
    return SessionUser(
        user_id=int(session["user_id"]),
        email=session.get("email", ""),
        full_name=session.get("name", ""),
        role=Role(session.get("role")),
    )


def require_user() -> SessionUser:
    user = current_user()
    if user is None:
        raise AuthenticationError("Login required")
    return user


def json_error(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def int_arg(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return json_error("Login required", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return json_error("Login required", 401)
            if session.get("role") not in allowed:
                return json_error("You do not have permission to perform this action", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def install_subscription_guard(
    app: Flask,
    is_subscribed: Callable[[SessionUser], bool],
    *,
    exempt_prefixes: tuple[str, ...],
    exempt_routes: frozenset = frozenset(),
) -> None:
    """Admins without an active subscription get 402 and are sent to billing by the client.

    `exempt_routes` holds exact `(method, path)` pairs, for public endpoints that
    share a prefix with admin-only ones.
    """

    @app.before_request
    def _require_subscription():
        path = request.path.rstrip("/") or "/"
        if not path.startswith("/api/") or path.startswith(exempt_prefixes):
            return None
        if (request.method, path) in exempt_routes:
            return None
        user = current_user()
        if user is not None and user.is_admin and not is_subscribed(user):
            return jsonify({"success": False, "error": "Subscription required", "billing_required": True}), 402
        return None


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e):
        return json_error(str(e), 400)

    @app.errorhandler(AuthenticationError)
    def _authentication(e):
        return json_error(str(e), 401)

    @app.errorhandler(AuthorizationError)
    def _authorization(e):
        return json_error(str(e), 403)

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return json_error(str(e), 404)

    @app.errorhandler(ExternalServiceError)
    def _external(e):
        status = e.status_code if e.status_code and 400 <= e.status_code < 600 else 502
        return json_error(str(e), status)

    @app.errorhandler(HTTPException)
    def _http(e):
        return json_error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(e):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if app.config.get("DEBUG"):
            return json_error(f"Internal error: {e}", 500)
        return json_error("Internal server error", 500)
