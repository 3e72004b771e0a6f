from __future__ import annotations

import re
from typing import Iterable, Optional


def format_sms_phone(raw: Optional[str]) -> Optional[str]:
    """E.164-ish number for bulk SMS: keep a leading '+', default to +1."""
    if not raw:
        return None
    cleaned = re.sub(r"(?!^\+)[^\d]", "", raw.strip())
    if not cleaned.startswith("+"):
        cleaned = "+1" + cleaned
    return cleaned if len(cleaned) >= 11 else None


def format_direct_phone(raw: Optional[str]) -> Optional[str]:
    """Strict North American number for one-off messages."""
    if not raw:
        return None
    digits = re.sub(r"\D", "", raw)
    if len(digits) == 10:
        digits = "1" + digits
    if len(digits) == 11 and digits.startswith("1"):
        return "+" + digits
    return None


def with_plus(raw: str) -> str:
    phone = raw.strip()
    return phone if phone.startswith("+") else "+" + phone


def unique_phones(values: Iterable[Optional[str]]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in values:
        phone = (v or "").strip()
        if phone and phone not in seen:
            seen.add(phone)
            out.append(phone)
    return out
