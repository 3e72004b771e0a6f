from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import PaymentFailureNotification, Subscription
from .repository import PaymentNotificationRepository, SubscriptionRepository

_SUB_COLUMNS = (
    "user_id, stripe_customer_id, stripe_subscription_id, is_active, subscription_status, amount, currency, updated_at"
)


def _to_subscription(row) -> Subscription:
    return Subscription(
        user_id=int(row["user_id"]),
        stripe_customer_id=row.get("stripe_customer_id"),
        stripe_subscription_id=row.get("stripe_subscription_id"),
        is_active=as_bool(row.get("is_active")),
        subscription_status=row.get("subscription_status"),
        amount=int(row["amount"]) if row.get("amount") is not None else None,
        currency=row.get("currency"),
        updated_at=row.get("updated_at"),
    )


class MySQLSubscriptionRepository(SubscriptionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_user(self, user_id: int) -> Optional[Subscription]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SUB_COLUMNS} FROM user_subscriptions WHERE user_id=%s", (user_id,))
            row = fetchone(cur)
            return _to_subscription(row) if row else None

    def get_by_customer(self, stripe_customer_id: str) -> Optional[Subscription]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SUB_COLUMNS} FROM user_subscriptions WHERE stripe_customer_id=%s LIMIT 1",
                (stripe_customer_id,),
            )
            row = fetchone(cur)
            return _to_subscription(row) if row else None

    def upsert(self, subscription: Subscription) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_subscriptions(
                    user_id, stripe_customer_id, stripe_subscription_id,
                    is_active, subscription_status, amount, currency
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    stripe_customer_id=VALUES(stripe_customer_id),
                    stripe_subscription_id=VALUES(stripe_subscription_id),
                    is_active=VALUES(is_active),
                    subscription_status=VALUES(subscription_status),
                    amount=COALESCE(VALUES(amount), amount),
                    currency=COALESCE(VALUES(currency), currency)
                """,
                (
                    subscription.user_id,
                    subscription.stripe_customer_id,
                    subscription.stripe_subscription_id,
                    1 if subscription.is_active else 0,
                    subscription.subscription_status,
                    subscription.amount,
                    subscription.currency,
                ),
            )

    def mark_canceled(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE user_subscriptions
                SET is_active=0, subscription_status='canceled'
                WHERE user_id=%s
                """,
                (user_id,),
            )
            return int(cur.rowcount)

    def list_active(self) -> Sequence[Subscription]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SUB_COLUMNS} FROM user_subscriptions WHERE is_active=1 ORDER BY user_id")
            return [_to_subscription(r) for r in fetchall(cur)]


class MySQLPaymentNotificationRepository(PaymentNotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def last_sent_since(self, stripe_customer_id: str, since: datetime) -> Optional[PaymentFailureNotification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT notification_id, user_id, stripe_customer_id, payment_intent_id,
                       invoice_id, phone_number, notification_sent_at
                FROM payment_failure_notifications
                WHERE stripe_customer_id=%s AND created_at >= %s
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (stripe_customer_id, since),
            )
            row = fetchone(cur)
            if not row:
                return None
            return PaymentFailureNotification(
                notification_id=int(row["notification_id"]),
                user_id=int(row["user_id"]),
                stripe_customer_id=row["stripe_customer_id"],
                payment_intent_id=row.get("payment_intent_id"),
                invoice_id=row.get("invoice_id"),
                phone_number=row.get("phone_number"),
                notification_sent_at=row["notification_sent_at"],
            )

    def add(
        self,
        *,
        user_id: int,
        stripe_customer_id: str,
        payment_intent_id: Optional[str],
        invoice_id: Optional[str],
        phone_number: Optional[str],
        sent_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payment_failure_notifications(
                    user_id, stripe_customer_id, payment_intent_id, invoice_id,
                    phone_number, notification_sent_at, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (user_id, stripe_customer_id, payment_intent_id, invoice_id, phone_number, sent_at, sent_at),
            )
            return int(cur.lastrowid)

    def delete_older_than(self, cutoff: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM payment_failure_notifications WHERE created_at < %s", (cutoff,))
            return int(cur.rowcount)
