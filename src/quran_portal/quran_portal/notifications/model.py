from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.enums import TemplateType


@dataclass(frozen=True)
class NotificationPreset:
    """Ready-made message for a template type, optionally tied to an absence/failure level."""

    preset_id: int
    type: TemplateType
    content: str
    level: Optional[int] = None
    is_adult: bool = False
    is_default: bool = False


@dataclass(frozen=True)
class WeekdayPreset:
    """Message preset for weekday classes; `class_id` None means available to every class."""

    preset_id: int
    type: TemplateType
    content: str
    class_id: Optional[int] = None


@dataclass
class SendResult:
    sent: int = 0
    errors: list[str] = field(default_factory=list)
    total_recipients: int = 0

    def to_dict(self, *, include_total: bool = False) -> dict:
        out: dict = {
            "message": f"Notifications sent to {self.sent} recipient{'' if self.sent == 1 else 's'}",
            "sent": self.sent,
        }
        if include_total:
            out["total_recipients"] = self.total_recipients
        if self.errors:
            out["errors"] = list(self.errors)
        return out
