from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Application roles used for route guards."""

    ADMIN = "admin"
    TEACHER = "teacher"
    PARENT = "parent"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class AssignmentType(str, Enum):
    LESSON = "lesson"
    HOMEWORK = "homework"
    REVIEW_NEAR = "review_near"
    REVIEW_FAR = "review_far"


class AssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    PASSED = "passed"
    FAILED = "failed"


class LessonType(str, Enum):
    """Curriculum a lesson label belongs to."""

    QURAN = "quran"
    AHSANUL_QAWAID = "ahsanul_qawaid"
    NOOR_AL_BAYAN = "noor_al_bayan"


class TemplateType(str, Enum):
    """SMS template / preset kinds."""

    LESSON_PASS = "lesson_pass"
    LESSON_FAIL = "lesson_fail"
    LESSON_ABSENT = "lesson_absent"
    HOMEWORK_ASSIGNED = "homework_assigned"
    PAYMENT_FAILED = "payment_failed"


class RegistrationType(str, Enum):
    PARENT = "parent"
    ADULT = "adult"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    REJECTED = "rejected"


class ResetStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
