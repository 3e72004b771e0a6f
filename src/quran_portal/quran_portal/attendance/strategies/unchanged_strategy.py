from __future__ import annotations

from ...students.model import Student
from .base import AttendanceStrategy, LevelDecision


class UnchangedStrategy(AttendanceStrategy):
    """Same status re-submitted for the day."""

    def decide(self, *, student: Student) -> LevelDecision:
        return LevelDecision(
            absence_level=student.absence_level,
            consecutive_absences=student.consecutive_absences,
        )
