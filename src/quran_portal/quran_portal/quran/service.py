from __future__ import annotations

import logging

from ..common.formatting import parse_verse_range
from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError
from .client import QuranClient

logger = logging.getLogger(__name__)


class QuranService:
    def __init__(self, client: QuranClient):
        self._client = client

    def find_surah(self, surah_name: str) -> dict:
        name = require_non_empty(surah_name, "Surah").lower()
        for chapter in self._client.list_chapters():
            if (chapter.get("name_simple") or "").lower() == name:
                return chapter
        raise NotFoundError(f"Surah {surah_name} not found")

    def calculate_pages(self, surah_name: str, verses: str) -> dict:
        """Mushaf pages spanned by a verse range, first and last page inclusive."""
        chapter = self.find_surah(surah_name)
        start, end = parse_verse_range(verses)
        number = int(chapter["id"])

        start_page = self._client.page_number(f"{number}:{start}")
        end_page = self._client.page_number(f"{number}:{end}")
        total = end_page - start_page + 1
        logger.debug("%s %s-%s spans pages %s-%s", chapter.get("name_simple"), start, end, start_page, end_page)

        return {
            "pages": total,
            "details": {
                "surah": {"name": chapter.get("name_simple"), "number": number},
                "verses": {"start": start, "end": end},
                "pages": {"start": start_page, "end": end_page, "total": total},
            },
        }
