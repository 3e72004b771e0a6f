from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SchoolClass:
    class_id: int
    name: str


@dataclass(frozen=True)
class ClassLink:
    """Pairs a weekday class with the weekend class of the same students."""

    link_id: int
    weekday_class_id: int
    weekend_class_id: int

    def partner_of(self, class_id: int) -> int:
        return self.weekend_class_id if class_id == self.weekday_class_id else self.weekday_class_id
