from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import PaymentFailureNotification, Subscription


class SubscriptionRepository(Protocol):
    def get_by_user(self, user_id: int) -> Optional[Subscription]:
        raise NotImplementedError

    def get_by_customer(self, stripe_customer_id: str) -> Optional[Subscription]:
        raise NotImplementedError

    def upsert(self, subscription: Subscription) -> None:
        """Insert or replace the single subscription row of a user."""
        raise NotImplementedError

    def mark_canceled(self, user_id: int) -> int:
        raise NotImplementedError

    def list_active(self) -> Sequence[Subscription]:
        raise NotImplementedError


class PaymentNotificationRepository(Protocol):
    def last_sent_since(self, stripe_customer_id: str, since: datetime) -> Optional[PaymentFailureNotification]:
        raise NotImplementedError

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
        raise NotImplementedError

    def delete_older_than(self, cutoff: datetime) -> int:
        raise NotImplementedError
