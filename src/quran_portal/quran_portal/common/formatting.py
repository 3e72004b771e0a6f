"""Display helpers for lesson labels, verse references and SMS templates."""

from __future__ import annotations

import re
from typing import Mapping, Optional

from ..core.exceptions import ValidationError

_ARABIC_DIGITS = "٠١٢٣٤٥٦٧٨٩"
_PLACEHOLDER_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")
_SURAH_NUMBER_RE = re.compile(r"\(\d+\)")
_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")


def to_arabic_numerals(num: Optional[int]) -> str:
    if num is None:
        return ""
    return "".join(_ARABIC_DIGITS[int(d)] if d.isdigit() else d for d in str(num))


def clean_verse_reference(text: Optional[str]) -> str:
    """Normalize "Surah : v1 - v7" into "Surah: 1-7"."""
    if not text:
        return ""

    cleaned = re.sub(r"\s*:\s*", ":", text)
    cleaned = re.sub(r"\s*-\s*", "-", cleaned)

    parts = cleaned.split(":")
    if len(parts) < 2:
        return cleaned

    surah = parts[0].strip()
    verses = "-".join(re.sub(r"[^0-9]", "", v) for v in parts[1].strip().split("-"))
    return f"{surah}: {verses}"


def format_lesson_display(surah: Optional[str], verses: Optional[str]) -> str:
    if not surah or not verses:
        return "Not set"

    # Ahsanul Qawaid ("Lesson 1-4") and Noor Al Bayan ("Page 3") labels are stored pre-formatted
    if surah.startswith("Lesson") or surah.startswith("Page"):
        return surah

    # Full Quran ranges are stored as "Al-Baqarah (2) - Al-Imran (3)"
    if _SURAH_NUMBER_RE.search(surah):
        return surah

    if "-" in verses:
        return f"{surah}: {verses}"

    if ":" in surah:
        return clean_verse_reference(surah)

    return f"{surah}:{verses}"


def parse_verse_range(verses: str) -> tuple[int, int]:
    parts = [re.sub(r"[^0-9]", "", p) for p in (verses or "").split("-")]
    parts = [p for p in parts if p]
    if not parts or len(parts) > 2:
        raise ValidationError(f"Invalid verse range: {verses!r}")

    start = int(parts[0])
    end = int(parts[-1])
    if start <= 0 or end < start:
        raise ValidationError(f"Invalid verse range: {verses!r}")
    return start, end


def clean_sms_verses(verses: Optional[str]) -> str:
    """Strip surah prefixes from verse numbers ("Aal 1-Aal 40" -> "1-40")."""
    if not verses:
        return ""
    cleaned = re.sub(r"(\w+(?:-\w+)*):(\d+)", r"\2", verses)
    cleaned = re.sub(r"\b([A-Za-z]+-?)\s+(\d+)", r"\2", cleaned)
    return re.sub(r"\s*-\s*", "-", cleaned).strip()


def class_context_label(class_name: Optional[str]) -> str:
    """Wording used for {{class_name}} in parent-facing messages."""
    name = (class_name or "").lower()
    if "saturday" in name or "sunday" in name:
        return "Quran"
    for day in _WEEKDAYS:
        if day in name:
            return f"{day.capitalize()} class"
    return "class"


def render_template(template: str, values: Mapping[str, object]) -> str:
    """Replace {{key}} placeholders; unknown keys are left untouched."""

    def _sub(match: re.Match) -> str:
        key = match.group(1)
        value = values.get(key)
        return match.group(0) if value is None else str(value)

    return _PLACEHOLDER_RE.sub(_sub, template or "")
