from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ResetStatus


@dataclass(frozen=True)
class ResetLog:
    log_id: int
    reset_date: datetime
    status: ResetStatus
    details: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "log_id": self.log_id,
            "reset_date": self.reset_date.isoformat(),
            "status": self.status.value,
            "details": self.details,
        }
