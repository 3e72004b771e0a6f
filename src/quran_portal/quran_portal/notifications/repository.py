from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import TemplateType
from .model import NotificationPreset, WeekdayPreset


class TemplateRepository(Protocol):
    """SMS templates (global and per class) and message presets."""

    def get_class_template(self, class_id: int, type: TemplateType) -> Optional[str]:
        raise NotImplementedError

    def get_global_template(self, type: TemplateType) -> Optional[str]:
        raise NotImplementedError

    def list_class_templates(self, class_id: int) -> dict[str, str]:
        raise NotImplementedError

    def list_global_templates(self) -> dict[str, str]:
        raise NotImplementedError

    def upsert_class_template(self, class_id: int, type: TemplateType, content: str) -> None:
        raise NotImplementedError

    def upsert_global_template(self, type: TemplateType, content: str) -> None:
        raise NotImplementedError

    def delete_class_template(self, class_id: int, type: TemplateType) -> bool:
        raise NotImplementedError

    def list_presets(
        self, type: TemplateType, *, level: Optional[int] = None, is_adult: Optional[bool] = None
    ) -> Sequence[NotificationPreset]:
        raise NotImplementedError

    def list_weekday_presets(self, class_id: Optional[int], type: TemplateType) -> Sequence[WeekdayPreset]:
        raise NotImplementedError
