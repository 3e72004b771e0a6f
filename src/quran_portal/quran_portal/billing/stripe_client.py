from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Any, Mapping, Optional, Protocol

import requests

from ..core.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

STRIPE_API_URL = "https://api.stripe.com/v1"
SIGNATURE_TOLERANCE_SECONDS = 300


class StripeClient(Protocol):
    def create_checkout_session(self, params: Mapping[str, Any]) -> dict:
        raise NotImplementedError

    def retrieve_customer(self, customer_id: str) -> dict:
        raise NotImplementedError

    def retrieve_subscription(self, subscription_id: str) -> dict:
        raise NotImplementedError

    def list_subscriptions(self, status: str, *, expand_customer: bool = False) -> list[dict]:
        raise NotImplementedError


def encode_params(params: Mapping[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested dicts/lists into Stripe's bracketed form keys."""
    out: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            out.extend(encode_params(value, name))
        elif isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                if isinstance(item, Mapping):
                    out.extend(encode_params(item, f"{name}[{i}]"))
                else:
                    out.append((f"{name}[]", str(item)))
        elif isinstance(value, bool):
            out.append((name, "true" if value else "false"))
        else:
            out.append((name, str(value)))
    return out


class StripeHttpClient(StripeClient):
    """Minimal Stripe REST client: bearer auth, form-encoded requests, JSON responses."""

    def __init__(self, *, secret_key: str, timeout: float = 15):
        self._secret_key = secret_key
        self._timeout = timeout

    def _request(self, method: str, path: str, params: Optional[Mapping[str, Any]] = None) -> dict:
        if not self._secret_key:
            raise ExternalServiceError("STRIPE_SECRET_KEY is not set", status_code=500)

        url = f"{STRIPE_API_URL}{path}"
        encoded = encode_params(params or {})
        try:
            res = requests.request(
                method,
                url,
                params=encoded if method == "GET" else None,
                data=encoded if method != "GET" else None,
                headers={"Authorization": f"Bearer {self._secret_key}"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ExternalServiceError(f"Stripe request failed: {e}") from e

        try:
            data = res.json()
        except ValueError:
            data = {}
        if res.status_code >= 300:
            error = data.get("error") or {}
            message = error.get("message") or res.text
            logger.warning("Stripe %s %s failed: %s %s", method, path, res.status_code, message)
            raise ExternalServiceError(f"Stripe error: {message}", status_code=res.status_code, code=error.get("code"))
        return data

    def create_checkout_session(self, params: Mapping[str, Any]) -> dict:
        return self._request("POST", "/checkout/sessions", params)

    def retrieve_customer(self, customer_id: str) -> dict:
        return self._request("GET", f"/customers/{customer_id}")

    def retrieve_subscription(self, subscription_id: str) -> dict:
        return self._request("GET", f"/subscriptions/{subscription_id}")

    def list_subscriptions(self, status: str, *, expand_customer: bool = False) -> list[dict]:
        params: dict[str, Any] = {"status": status, "limit": 100}
        if expand_customer:
            params["expand"] = ["data.customer"]
        return list(self._request("GET", "/subscriptions", params).get("data") or [])


def verify_webhook_signature(
    payload: bytes,
    header: str,
    secret: str,
    *,
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> None:
    """Check a `Stripe-Signature` header (t=...,v1=...) against the raw body.

    Raises ValidationError when no v1 signature matches or the timestamp is
    outside the tolerance window.
    """
    timestamp: Optional[int] = None
    signatures: list[str] = []
    for part in (header or "").split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                raise ValidationError("Webhook Error: invalid signature timestamp") from None
        elif key == "v1":
            signatures.append(value)

    if timestamp is None or not signatures:
        raise ValidationError("Webhook Error: unable to extract timestamp and signatures from header")

    signed = f"{timestamp}.".encode() + payload
    expected = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    if not any(hmac.compare_digest(expected, s) for s in signatures):
        raise ValidationError("Webhook Error: no signatures found matching the expected signature for payload")

    current = time.time() if now is None else now
    if tolerance and abs(current - timestamp) > tolerance:
        raise ValidationError("Webhook Error: timestamp outside the tolerance zone")
