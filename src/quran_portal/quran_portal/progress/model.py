from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class MonthlyProgress:
    student_id: int
    month: date
    class_id: Optional[int] = None
    lessons_passed: int = 0
    lessons_failed: int = 0
    review_near_passed: int = 0
    review_near_failed: int = 0
    review_far_passed: int = 0
    review_far_failed: int = 0
    active_days: int = 0
    pages_passed_current: int = 0

    @property
    def total_passed(self) -> int:
        return self.lessons_passed + self.review_near_passed + self.review_far_passed

    @property
    def total_failed(self) -> int:
        return self.lessons_failed + self.review_near_failed + self.review_far_failed


@dataclass(frozen=True)
class TeacherFeedback:
    student_id: int
    teacher_id: int
    month: date
    feedback_text: str
