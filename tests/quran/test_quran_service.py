from __future__ import annotations

import pytest
import requests

from src.quran_portal.quran_portal.core.exceptions import ExternalServiceError, NotFoundError, ValidationError
from src.quran_portal.quran_portal.quran.client import QuranApiClient


def test_calculate_pages_spans_first_to_last_page(world):
    out = world.container.quran_service.calculate_pages("al-baqarah", "1-20")

    assert out == {
        "pages": 3,
        "details": {
            "surah": {"name": "Al-Baqarah", "number": 2},
            "verses": {"start": 1, "end": 20},
            "pages": {"start": 2, "end": 4, "total": 3},
        },
    }


def test_single_page_range(world):
    assert world.container.quran_service.calculate_pages("Al-Ikhlas", "1-4")["pages"] == 1


def test_unknown_surah(world):
    with pytest.raises(NotFoundError) as exc:
        world.container.quran_service.find_surah("Al-Unknown")

    assert str(exc.value) == "Surah Al-Unknown not found"


def test_invalid_verses(world):
    with pytest.raises(ValidationError):
        world.container.quran_service.calculate_pages("Al-Baqarah", "20-1")


class _Response:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


def test_api_client_reads_page_number(monkeypatch):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return _Response(200, {"verse": {"page_number": 42}})

    monkeypatch.setattr(requests, "get", fake_get)
    client = QuranApiClient(base_url="https://api.quran.test/v4/", timeout=1)

    assert client.page_number("2:255") == 42
    assert calls == [("https://api.quran.test/v4/verses/by_key/2:255", {"fields": "page_number"})]


def test_api_client_raises_on_error_status(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda url, params=None, timeout=None: _Response(503, {}))
    client = QuranApiClient(base_url="https://api.quran.test/v4", timeout=1)

    with pytest.raises(ExternalServiceError) as exc:
        client.list_chapters()

    assert exc.value.status_code == 503


def test_api_client_wraps_connection_errors(monkeypatch):
    def boom(url, params=None, timeout=None):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(requests, "get", boom)

    with pytest.raises(ExternalServiceError):
        QuranApiClient(base_url="https://api.quran.test/v4").list_chapters()
