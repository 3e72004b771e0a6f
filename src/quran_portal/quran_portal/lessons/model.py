from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AssignmentStatus, AssignmentType, LessonType


@dataclass(frozen=True)
class Lesson:
    """The lesson a student is currently memorizing (one active row per student)."""

    lesson_id: int
    student_id: int
    surah: str
    verses: str
    lesson_type: LessonType = LessonType.QURAN
    sort_order: Optional[int] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Assignment:
    """Homework, lesson or review row that a teacher grades pass/fail."""

    assignment_id: int
    student_id: int
    surah: str
    verses: str
    type: AssignmentType
    status: AssignmentStatus
    assigned_by: int
    lesson_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
