from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AssignmentStatus, AssignmentType, LessonType
from .model import Assignment, Lesson


class LessonRepository(Protocol):
    def get_active(self, student_id: int) -> Optional[Lesson]:
        raise NotImplementedError

    def replace_active(
        self,
        *,
        student_id: int,
        surah: str,
        verses: str,
        lesson_type: LessonType,
        sort_order: Optional[int] = None,
    ) -> int:
        """Deactivate the student's current lesson and insert the new active one."""
        raise NotImplementedError


class AssignmentRepository(Protocol):
    def get_by_id(self, assignment_id: int) -> Optional[Assignment]:
        raise NotImplementedError

    def create_assignment(
        self,
        *,
        student_id: int,
        surah: str,
        verses: str,
        type: AssignmentType,
        assigned_by: int,
        lesson_id: Optional[int] = None,
        created_at: Optional[datetime] = None,
    ) -> int:
        raise NotImplementedError

    def update_status(self, assignment_id: int, status: AssignmentStatus, *, updated_at: datetime) -> bool:
        raise NotImplementedError

    def list_for_student(self, student_id: int, *, limit: Optional[int] = None) -> Sequence[Assignment]:
        """Newest first."""
        raise NotImplementedError
