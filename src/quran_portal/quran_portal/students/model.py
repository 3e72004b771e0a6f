from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import AssignmentStatus


@dataclass(frozen=True)
class Student:
    """Student enrolled in (at most) one class, with the level counters used for parent messages."""

    student_id: int
    name: str
    email: Optional[str]
    class_id: Optional[int]
    absence_level: int = 1
    consecutive_absences: int = 0
    failure_level: int = 1
    last_lesson_status: Optional[AssignmentStatus] = None


@dataclass(frozen=True)
class AdultStudent:
    adult_id: int
    student_id: Optional[int]
    email: str
    phone_number: Optional[str]
    class_id: Optional[int] = None


@dataclass(frozen=True)
class ParentLink:
    """Parent-to-student link. `student_id` is None for a phone-only row."""

    link_id: int
    parent_user_id: int
    student_id: Optional[int]
    phone_number: Optional[str] = None
    secondary_phone_number: Optional[str] = None


@dataclass(frozen=True)
class NotificationPreferences:
    parent_user_id: int
    phone_number: Optional[str] = None
    homework_assigned: bool = True
    lesson_pass: bool = True
    lesson_fail: bool = True
