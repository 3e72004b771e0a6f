from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from ..common.datetime_utils import first_of_next_month, now_local
from ..common.formatting import render_template
from ..common.phone import format_sms_phone
from ..common.validators import require_positive_int
from ..core.constants import (
    DEFAULT_TEMPLATES,
    NOTIFICATION_RETENTION_DAYS,
    PAYMENT_REMINDER_COOLDOWN_DAYS,
)
from ..core.enums import Role, TemplateType
from ..core.exceptions import AuthorizationError, ExternalServiceError, NotFoundError, ValidationError
from ..notifications.repository import TemplateRepository
from ..notifications.sms_client import SmsClient
from ..students.repository import ParentLinkRepository
from ..users.model import User
from ..users.repository import UserRepository
from ..users.service import SessionUser
from .model import ACTIVE_STATUSES, Subscription
from .repository import PaymentNotificationRepository, SubscriptionRepository
from .stripe_client import StripeClient, verify_webhook_signature

logger = logging.getLogger(__name__)

SYNC_STATUSES = ("active", "past_due", "unpaid")
CUSTOMER_LIST_STATUSES = ("active", "past_due", "unpaid", "canceled")
REMINDER_ACTIONS = ("send_to_all_past_due", "send_to_one", "clear_old_notifications")


def _price_of(subscription: dict) -> dict:
    items = (subscription.get("items") or {}).get("data") or []
    return (items[0].get("price") or {}) if items else {}


def _customer_id(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("id")
    return value


def _iso_from_unix(value: Optional[int]) -> Optional[str]:
    return datetime.fromtimestamp(value, tz=timezone.utc).isoformat() if value else None


class BillingService:
    """Stripe checkout, webhook bookkeeping and payment-failure reminders."""

    def __init__(
        self,
        subscriptions: SubscriptionRepository,
        payment_notifications: PaymentNotificationRepository,
        users: UserRepository,
        links: ParentLinkRepository,
        templates: TemplateRepository,
        stripe: StripeClient,
        sms: SmsClient,
        *,
        price_id: str,
        webhook_secret: str,
        school_name: str,
        billing_portal_url: str = "",
    ):
        self._subscriptions = subscriptions
        self._notifications = payment_notifications
        self._users = users
        self._links = links
        self._templates = templates
        self._stripe = stripe
        self._sms = sms
        self._price_id = price_id
        self._webhook_secret = webhook_secret
        self._school_name = school_name
        self._billing_portal_url = billing_portal_url

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

    # -- checkout ------------------------------------------------------------------

    def create_checkout_session(
        self,
        *,
        student_count,
        email: str,
        success_url: str,
        cancel_url: str,
        registration_id,
        now: Optional[datetime] = None,
    ) -> dict:
        if not student_count or not email or not success_url or not cancel_url or not registration_id:
            raise ValidationError("Missing required parameters")
        quantity = require_positive_int(student_count, "studentCount")
        if not self._price_id:
            raise ExternalServiceError("STRIPE_PRICE_ID is not set", status_code=500)

        now = now or now_local()
        if now.day == 1:
            anchor = now
        else:
            next_month = first_of_next_month(now.date())
            anchor = datetime(next_month.year, next_month.month, next_month.day)

        metadata = {"registration_id": str(registration_id)}
        session = self._stripe.create_checkout_session(
            {
                "mode": "subscription",
                "customer_email": email,
                "line_items": [{"price": self._price_id, "quantity": quantity}],
                "success_url": success_url,
                "cancel_url": cancel_url,
                "metadata": metadata,
                "subscription_data": {
                    "billing_cycle_anchor": int(anchor.timestamp()),
                    "proration_behavior": "none",
                    "metadata": metadata,
                },
            }
        )
        logger.info("Checkout session %s created for %s (%s students)", session.get("id"), email, quantity)
        return {"url": session.get("url")}

    # -- webhook -------------------------------------------------------------------

    def handle_webhook(self, payload: bytes, signature: Optional[str], *, now: Optional[datetime] = None) -> dict:
        """Apply one Stripe event; events we do not track are acknowledged."""
        if self._webhook_secret:
            if not signature:
                raise ValidationError("Webhook Error: missing Stripe-Signature header")
            verify_webhook_signature(payload, signature, self._webhook_secret)
        try:
            event = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            raise ValidationError("Webhook Error: invalid JSON payload") from None

        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}
        logger.info("Stripe event %s received", event_type)

        if event_type == "checkout.session.completed":
            self._on_checkout_completed(obj)
        elif event_type == "invoice.payment_failed":
            out = self._on_payment_failed(obj, now=now or now_local())
            if out:
                return {"received": True, **out}
        elif event_type == "customer.subscription.updated":
            self._on_subscription_updated(obj)
        elif event_type == "customer.subscription.deleted":
            self._on_subscription_deleted(obj)

        return {"received": True}

    def _on_checkout_completed(self, session: dict) -> None:
        email = (session.get("customer_details") or {}).get("email")
        if not email:
            raise ValidationError("No customer email found in session")
        user = self._users.get_by_email(email.strip().lower())
        if not user:
            raise ValidationError("User not found")

        self._subscriptions.upsert(
            Subscription(
                user_id=user.user_id,
                stripe_customer_id=_customer_id(session.get("customer")),
                stripe_subscription_id=session.get("subscription"),
                is_active=True,
                subscription_status="active",
            )
        )
        logger.info("Subscription activated for user %s", user.user_id)

    def _user_for_customer(self, customer_id: Optional[str]) -> tuple[Optional[dict], Optional[User]]:
        if not customer_id:
            return None, None
        customer = self._stripe.retrieve_customer(customer_id)
        if not customer or customer.get("deleted") or not customer.get("email"):
            return customer, None
        return customer, self._users.get_by_email(customer["email"].lower())

    def phone_for_user(self, user_id: int) -> Optional[str]:
        """First parent-link phone (primary, then secondary), else the preferences phone."""
        links = list(self._links.list_for_parent(user_id))
        if links:
            phone = links[0].phone_number or links[0].secondary_phone_number
            if phone:
                return phone
        prefs = self._links.get_preferences(user_id)
        return prefs.phone_number if prefs and prefs.phone_number else None

    def payment_failed_message(self) -> str:
        template = self._templates.get_global_template(TemplateType.PAYMENT_FAILED) or DEFAULT_TEMPLATES[
            TemplateType.PAYMENT_FAILED
        ]
        return render_template(
            template, {"school_name": self._school_name, "billing_url": self._billing_portal_url}
        )

    def _on_payment_failed(self, invoice: dict, *, now: datetime) -> Optional[dict]:
        customer_id = _customer_id(invoice.get("customer"))
        customer, user = self._user_for_customer(customer_id)
        if not user:
            logger.info("Payment failure for unknown customer %s ignored", customer_id)
            return None

        since = now - timedelta(days=PAYMENT_REMINDER_COOLDOWN_DAYS)
        if self._notifications.last_sent_since(customer_id, since):
            logger.info("Payment failure SMS for %s already sent within %s days", customer_id, PAYMENT_REMINDER_COOLDOWN_DAYS)
            return {"message": f"SMS skipped - already sent within {PAYMENT_REMINDER_COOLDOWN_DAYS} days"}

        phone = (customer or {}).get("phone") or self.phone_for_user(user.user_id)
        if not phone:
            logger.info("No phone number for customer %s, payment failure SMS not sent", customer_id)
            return None

        try:
            self._sms.send(phone, self.payment_failed_message())
        except ExternalServiceError as e:
            logger.error("Payment failure SMS to %s failed: %s", phone, e)
            return None

        self._notifications.add(
            user_id=user.user_id,
            stripe_customer_id=customer_id,
            payment_intent_id=invoice.get("payment_intent"),
            invoice_id=invoice.get("id"),
            phone_number=phone,
            sent_at=now,
        )
        logger.info("Payment failure SMS sent to %s for customer %s", phone, customer_id)
        return None

    def _on_subscription_updated(self, subscription: dict) -> None:
        customer_id = _customer_id(subscription.get("customer"))
        _, user = self._user_for_customer(customer_id)
        if not user:
            return
        self._upsert_from_stripe(user.user_id, customer_id, subscription)

    def _on_subscription_deleted(self, subscription: dict) -> None:
        _, user = self._user_for_customer(_customer_id(subscription.get("customer")))
        if not user:
            return
        self._subscriptions.mark_canceled(user.user_id)
        logger.info("Subscription canceled for user %s", user.user_id)

    def _upsert_from_stripe(self, user_id: int, customer_id: Optional[str], subscription: dict) -> None:
        status = subscription.get("status")
        price = _price_of(subscription)
        self._subscriptions.upsert(
            Subscription(
                user_id=user_id,
                stripe_customer_id=customer_id,
                stripe_subscription_id=subscription.get("id"),
                is_active=status in ACTIVE_STATUSES,
                subscription_status=status,
                amount=price.get("unit_amount") or None,
                currency=price.get("currency") or "usd",
            )
        )
        logger.info("Subscription for user %s is now %s", user_id, status)

    # -- admin ---------------------------------------------------------------------

    def check_subscription(self, user: SessionUser) -> bool:
        """Only admins pay; everyone else counts as subscribed."""
        if not user.is_admin:
            return True
        sub = self._subscriptions.get_by_user(user.user_id)
        return bool(sub and sub.is_active)

    def sync_subscriptions(self) -> dict:
        subscriptions = [s for status in SYNC_STATUSES for s in self._stripe.list_subscriptions(status)]
        synced = skipped = errors = 0

        for subscription in subscriptions:
            customer_id = _customer_id(subscription.get("customer"))
            try:
                customer, user = self._user_for_customer(customer_id)
            except ExternalServiceError as e:
                logger.error("Could not load customer %s: %s", customer_id, e)
                errors += 1
                continue
            if not user:
                logger.info("Skipping subscription %s: no matching user", subscription.get("id"))
                skipped += 1
                continue
            self._upsert_from_stripe(user.user_id, customer_id, subscription)
            synced += 1

        summary = {
            "total_stripe_subscriptions": len(subscriptions),
            "synced_successfully": synced,
            "skipped": skipped,
            "errors": errors,
        }
        logger.info("Stripe subscription sync completed: %s", summary)
        return {"success": True, "message": "Stripe subscription sync completed", **summary}

    def _customer_phone(self, customer: dict) -> Optional[str]:
        phone = customer.get("phone")
        if phone:
            return phone
        email = (customer.get("email") or "").lower()
        user = self._users.get_by_email(email) if email else None
        return self.phone_for_user(user.user_id) if user else None

    def list_customers(self, *, current_role: Role) -> dict:
        self._require_admin(current_role)
        subscriptions = [
            s for status in CUSTOMER_LIST_STATUSES for s in self._stripe.list_subscriptions(status, expand_customer=True)
        ]

        customers = []
        for sub in subscriptions:
            customer = sub.get("customer") if isinstance(sub.get("customer"), dict) else {}
            price = _price_of(sub)
            phone = self._customer_phone(customer)
            customers.append(
                {
                    "stripe_customer_id": customer.get("id"),
                    "email": customer.get("email") or "No email",
                    "name": customer.get("name") or customer.get("email") or "Unknown",
                    "phone": phone,
                    "phone_source": "stripe" if customer.get("phone") else ("database" if phone else None),
                    "subscription_id": sub.get("id"),
                    "subscription_status": sub.get("status"),
                    "amount": price.get("unit_amount") or None,
                    "currency": price.get("currency") or "usd",
                    "created": _iso_from_unix(sub.get("created")),
                    "current_period_end": _iso_from_unix(sub.get("current_period_end")),
                }
            )

        def by_status(*names: str) -> int:
            return sum(1 for c in customers if c["subscription_status"] in names)

        return {
            "success": True,
            "total": len(customers),
            "with_phone": sum(1 for c in customers if c["phone"]),
            "customers": customers,
            "summary": {
                "active": by_status("active"),
                "past_due": by_status("past_due"),
                "failed": by_status("unpaid", "canceled"),
                "other": len(customers) - by_status("active", "past_due", "unpaid", "canceled"),
            },
        }

    def send_payment_reminders(
        self,
        *,
        current_role: Role,
        action: str,
        customer_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> dict:
        self._require_admin(current_role)
        if action == "send_to_all_past_due":
            return self._remind_all_past_due()
        if action == "send_to_one" and customer_id:
            return self._remind_one(customer_id)
        if action == "clear_old_notifications":
            cutoff = (now or now_local()) - timedelta(days=NOTIFICATION_RETENTION_DAYS)
            count = self._notifications.delete_older_than(cutoff)
            logger.info("Cleared %s payment notifications older than %s", count, cutoff.isoformat())
            return {
                "success": True,
                "message": f"Cleared {count} old notifications (older than {NOTIFICATION_RETENTION_DAYS} days)",
            }
        raise ValidationError("Invalid action. Use: " + ", ".join(REMINDER_ACTIONS))

    def _remind_all_past_due(self) -> dict:
        past_due = self._stripe.list_subscriptions("past_due", expand_customer=True)
        message = self.payment_failed_message()
        sent = errors = 0
        results = []

        for sub in past_due:
            customer = sub.get("customer") if isinstance(sub.get("customer"), dict) else {}
            email = customer.get("email")
            raw = self._customer_phone(customer)
            if not raw:
                results.append({"email": email, "status": "no_phone"})
                continue
            phone = format_sms_phone(raw)
            if not phone:
                results.append({"email": email, "phone": raw, "status": "invalid_phone"})
                continue
            try:
                sid = self._sms.send(phone, message)
            except ExternalServiceError as e:
                logger.error("Payment reminder to %s failed: %s", phone, e)
                errors += 1
                results.append({"email": email, "phone": phone, "status": "failed", "error": str(e)})
                continue
            sent += 1
            results.append({"email": email, "phone": phone, "status": "sent", "sid": sid})

        logger.info("Payment reminders: %s sent, %s failed of %s past due", sent, errors, len(past_due))
        return {"success": True, "total_past_due": len(past_due), "sent": sent, "errors": errors, "results": results}

    def _remind_one(self, customer_id: str) -> dict:
        customer = self._stripe.retrieve_customer(customer_id)
        if not customer or customer.get("deleted"):
            raise NotFoundError("Customer not found")
        phone = format_sms_phone(customer.get("phone"))
        if not phone:
            raise ValidationError("No phone number for this customer")
        self._sms.send(phone, self.payment_failed_message())
        logger.info("Payment reminder sent to customer %s", customer_id)
        return {"success": True, "sent_to": customer.get("email"), "phone": phone}
