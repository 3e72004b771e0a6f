from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AttendanceStatus
from .strategies.absent_strategy import AbsentStrategy
from .strategies.base import AttendanceStrategy
from .strategies.present_strategy import PresentStrategy
from .strategies.unchanged_strategy import UnchangedStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose the counter update for a status change on one day."""

    def for_mark(self, *, status: AttendanceStatus, previous: Optional[AttendanceStatus]) -> AttendanceStrategy:
        if previous == status:
            return UnchangedStrategy()
        if status == AttendanceStatus.ABSENT:
            return AbsentStrategy()
        return PresentStrategy()
