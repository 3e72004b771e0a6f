from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.web import json_body, login_required, require_user, roles_required
from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    svc = container.billing_service

    @app.route("/api/billing/checkout", methods=["POST"], endpoint="create_checkout_session")
    def create_checkout_session():
        data = json_body()
        result = svc.create_checkout_session(
            student_count=data.get("studentCount"),
            email=data.get("email", ""),
            success_url=data.get("successUrl", ""),
            cancel_url=data.get("cancelUrl", ""),
            registration_id=data.get("registrationId"),
        )
        return jsonify(result)

    @app.route("/api/billing/webhook", methods=["POST"], endpoint="stripe_webhook")
    def stripe_webhook():
        try:
            result = svc.handle_webhook(request.get_data(), request.headers.get("Stripe-Signature"))
        except DomainError as e:
            logger.warning("Stripe webhook rejected: %s", e)
            return jsonify({"error": str(e)}), 400
        return jsonify(result)

    @app.route("/api/billing/subscription", methods=["GET"], endpoint="check_subscription")
    @login_required
    def check_subscription():
        return jsonify({"subscribed": svc.check_subscription(require_user())})

    @app.route("/api/billing/sync", methods=["POST"], endpoint="sync_subscriptions")
    @roles_required(Role.ADMIN)
    def sync_subscriptions():
        return jsonify(svc.sync_subscriptions())

    @app.route("/api/billing/customers", methods=["GET"], endpoint="list_customers")
    @roles_required(Role.ADMIN)
    def list_customers():
        return jsonify(svc.list_customers(current_role=require_user().role))

    @app.route("/api/billing/reminders", methods=["POST"], endpoint="send_payment_reminders")
    @roles_required(Role.ADMIN)
    def send_payment_reminders():
        data = json_body()
        result = svc.send_payment_reminders(
            current_role=require_user().role,
            action=data.get("action", ""),
            customer_id=data.get("customerId"),
        )
        return jsonify(result)
