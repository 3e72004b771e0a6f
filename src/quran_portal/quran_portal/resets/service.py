from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.enums import ResetStatus, Role
from ..core.exceptions import AuthorizationError
from ..students.repository import StudentRepository
from .model import ResetLog
from .repository import ResetLogRepository

logger = logging.getLogger(__name__)


class ResetService:
    """Start-of-month reset of absence and failure levels."""

    def __init__(self, students: StudentRepository, logs: ResetLogRepository):
        self._students = students
        self._logs = logs

    def run_monthly_reset(self, *, now: Optional[datetime] = None) -> dict:
        now = now or now_local()
        logger.info("Starting monthly student reset")
        try:
            count = self._students.reset_levels()
        except Exception as e:
            logger.exception("Monthly student reset failed")
            self._logs.add(reset_date=now, status=ResetStatus.FAILED, details=str(e) or "Unknown error occurred")
            raise

        self._logs.add(reset_date=now, status=ResetStatus.SUCCESS, details="All student levels reset successfully")
        logger.info("Monthly student reset completed (%s students)", count)
        return {
            "success": True,
            "message": "Student levels reset successfully",
            "timestamp": now.isoformat(),
            "students_reset": count,
        }

    def reset_status(self) -> Optional[ResetLog]:
        return self._logs.latest()

    def reset_levels(self, *, current_role: Role, class_id: int) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        count = self._students.reset_levels(class_id=class_id)
        logger.info("Manual level reset for class %s (%s students)", class_id, count)
        return count
