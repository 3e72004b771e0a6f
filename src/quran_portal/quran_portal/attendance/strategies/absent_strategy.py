from __future__ import annotations

from ...core.constants import MAX_ABSENCE_LEVEL
from ...students.model import Student
from .base import AttendanceStrategy, LevelDecision


class AbsentStrategy(AttendanceStrategy):
    """New absence: escalate the level, message with the level reached before escalating."""

    def decide(self, *, student: Student) -> LevelDecision:
        return LevelDecision(
            absence_level=min(student.absence_level + 1, MAX_ABSENCE_LEVEL),
            consecutive_absences=student.consecutive_absences + 1,
            notify_level=student.absence_level,
        )
