from __future__ import annotations

import logging
from typing import Protocol

import requests

from ..core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class QuranClient(Protocol):
    def list_chapters(self) -> list[dict]:
        raise NotImplementedError

    def page_number(self, verse_key: str) -> int:
        raise NotImplementedError


class QuranApiClient(QuranClient):
    """Read-only client for the public quran.com v4 API."""

    def __init__(self, *, base_url: str, timeout: float = 15):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _get(self, path: str, params: dict) -> dict:
        url = f"{self._base_url}{path}"
        try:
            res = requests.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise ExternalServiceError(f"Quran API request failed: {e}") from e
        if res.status_code != 200:
            logger.warning("Quran API %s returned %s", path, res.status_code)
            raise ExternalServiceError(f"Quran API error ({res.status_code})", status_code=res.status_code)
        return res.json()

    def list_chapters(self) -> list[dict]:
        return list(self._get("/chapters", {"language": "en"}).get("chapters") or [])

    def page_number(self, verse_key: str) -> int:
        data = self._get(f"/verses/by_key/{verse_key}", {"fields": "page_number"})
        return int(data["verse"]["page_number"])
