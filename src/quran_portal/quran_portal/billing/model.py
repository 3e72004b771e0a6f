from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

ACTIVE_STATUSES = frozenset({"active", "past_due"})


@dataclass(frozen=True)
class Subscription:
    user_id: int
    stripe_customer_id: Optional[str]
    stripe_subscription_id: Optional[str]
    is_active: bool
    subscription_status: Optional[str]
    amount: Optional[int] = None
    currency: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "stripe_customer_id": self.stripe_customer_id,
            "stripe_subscription_id": self.stripe_subscription_id,
            "is_active": self.is_active,
            "subscription_status": self.subscription_status,
            "amount": self.amount,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class PaymentFailureNotification:
    notification_id: int
    user_id: int
    stripe_customer_id: str
    payment_intent_id: Optional[str]
    invoice_id: Optional[str]
    phone_number: Optional[str]
    notification_sent_at: datetime
