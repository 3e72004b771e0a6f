from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's attendance in one class on one day."""

    attendance_id: int
    student_id: int
    class_id: int
    attendance_date: date
    status: AttendanceStatus
    created_by: int
    note: Optional[str] = None


@dataclass(frozen=True)
class RosterRow:
    """Read-model for the attendance screen."""

    student_id: int
    name: str
    absence_level: int
    consecutive_absences: int
    attendance_status: Optional[AttendanceStatus]

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "name": self.name,
            "absence_level": self.absence_level,
            "consecutive_absences": self.consecutive_absences,
            "attendance_status": self.attendance_status.value if self.attendance_status else None,
        }
