from __future__ import annotations

from ...students.model import Student
from .base import AttendanceStrategy, LevelDecision


class PresentStrategy(AttendanceStrategy):
    """Attendance breaks the streak; the level itself waits for the monthly reset."""

    def decide(self, *, student: Student) -> LevelDecision:
        return LevelDecision(absence_level=student.absence_level, consecutive_absences=0)
