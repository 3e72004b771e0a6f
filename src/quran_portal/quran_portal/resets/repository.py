from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import ResetStatus
from .model import ResetLog


class ResetLogRepository(Protocol):
    def add(self, *, reset_date: datetime, status: ResetStatus, details: Optional[str]) -> int:
        raise NotImplementedError

    def latest(self) -> Optional[ResetLog]:
        raise NotImplementedError
