from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import MonthlyProgress, TeacherFeedback

COUNTER_FIELDS = frozenset(
    {
        "lessons_passed",
        "lessons_failed",
        "review_near_passed",
        "review_near_failed",
        "review_far_passed",
        "review_far_failed",
        "active_days",
        "pages_passed_current",
    }
)


class ProgressRepository(Protocol):
    def get(self, student_id: int, month: date) -> Optional[MonthlyProgress]:
        raise NotImplementedError

    def list_for_students(self, student_ids: Sequence[int], month: date) -> Sequence[MonthlyProgress]:
        raise NotImplementedError

    def increment(
        self, *, student_id: int, month: date, class_id: Optional[int], field: str, amount: int = 1
    ) -> None:
        """Create the (student, month) row if missing, then add `amount` to one of COUNTER_FIELDS."""
        raise NotImplementedError

    def get_feedback(self, student_id: int, month: date) -> Optional[TeacherFeedback]:
        raise NotImplementedError

    def upsert_feedback(self, feedback: TeacherFeedback) -> None:
        raise NotImplementedError
