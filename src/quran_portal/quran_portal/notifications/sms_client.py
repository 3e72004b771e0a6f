from __future__ import annotations

import logging
from typing import Protocol

import requests

from ..core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"


class SmsClient(Protocol):
    def send(self, to: str, body: str) -> str:
        """Send one text message and return the provider message id."""
        raise NotImplementedError


class TwilioSmsClient(SmsClient):
    """Twilio Messages REST API over form-encoded POST with basic auth."""

    def __init__(self, *, account_sid: str, auth_token: str, from_number: str, timeout: float = 15):
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    def send(self, to: str, body: str) -> str:
        if not self.configured:
            raise ExternalServiceError("Twilio credentials are not configured", status_code=500)

        url = f"{TWILIO_API_URL}/Accounts/{self._account_sid}/Messages.json"
        try:
            res = requests.post(
                url,
                data={"To": to, "From": self._from_number, "Body": body},
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise ExternalServiceError(f"Twilio request failed: {e}") from e

        if res.status_code >= 300:
            try:
                data = res.json()
            except ValueError:
                data = {}
            message = data.get("message") or res.text
            logger.warning("Twilio rejected message to %s: %s %s", to, res.status_code, message)
            raise ExternalServiceError(
                f"Twilio error: {message}",
                status_code=res.status_code,
                code=str(data.get("code")) if data.get("code") is not None else None,
            )

        sid = res.json().get("sid", "")
        logger.info("SMS sent to %s (sid=%s)", to, sid)
        return sid
