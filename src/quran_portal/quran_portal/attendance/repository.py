from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_student_and_date(self, student_id: int, class_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_class_and_date(self, class_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        student_id: int,
        class_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        created_by: int,
        note: Optional[str] = None,
    ) -> None:
        raise NotImplementedError

    def list_history(self, class_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_absences(self, student_id: int, start_date: date, end_date: date) -> int:
        raise NotImplementedError
