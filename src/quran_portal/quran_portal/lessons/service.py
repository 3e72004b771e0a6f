from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.formatting import format_lesson_display
from ..common.validators import require_non_empty
from ..core.constants import MAX_FAILURE_LEVEL, RECENT_PASS_MINUTES
from ..core.enums import AssignmentStatus, AssignmentType, LessonType, TemplateType
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..progress.service import ProgressService
from ..students.repository import StudentRepository
from ..students.service import StudentService
from ..users.service import SessionUser
from .model import Assignment, Lesson
from .repository import AssignmentRepository, LessonRepository

logger = logging.getLogger(__name__)


class LessonService:
    def __init__(
        self,
        lessons: LessonRepository,
        assignments: AssignmentRepository,
        student_repo: StudentRepository,
        students: StudentService,
        progress: ProgressService,
        notifications: NotificationService,
    ):
        self._lessons = lessons
        self._assignments = assignments
        self._student_repo = student_repo
        self._students = students
        self._progress = progress
        self._notifications = notifications

    def _require_student_access(self, current_user: SessionUser, student_id: int):
        self._students.require_view(current_user, student_id)
        return self._students.get_student(student_id)

    def get_current_lesson(self, student_id: int) -> Optional[Lesson]:
        return self._lessons.get_active(student_id)

    def current_lesson_label(self, student_id: int) -> str:
        lesson = self._lessons.get_active(student_id)
        if not lesson:
            return "Not set"
        return format_lesson_display(lesson.surah, lesson.verses)

    def set_current_lesson(
        self,
        *,
        current_user: SessionUser,
        student_id: int,
        surah: str,
        verses: str,
        lesson_type: LessonType = LessonType.QURAN,
        sort_order: Optional[int] = None,
    ) -> int:
        self._require_student_access(current_user, student_id)
        surah = require_non_empty(surah, "Surah")
        verses = require_non_empty(verses, "Verses")

        lesson_id = self._lessons.replace_active(
            student_id=student_id, surah=surah, verses=verses, lesson_type=lesson_type, sort_order=sort_order
        )
        logger.info("Student %s new lesson %s: %s", student_id, lesson_id, format_lesson_display(surah, verses))
        return lesson_id

    def assign_homework(
        self,
        *,
        current_user: SessionUser,
        student_id: int,
        surah: str,
        verses: str,
        type: AssignmentType = AssignmentType.HOMEWORK,
        notify: bool = False,
        now: Optional[datetime] = None,
    ) -> dict:
        self._require_student_access(current_user, student_id)
        surah = require_non_empty(surah, "Surah")
        verses = require_non_empty(verses, "Verses")
        now = now or now_local()

        lesson = self._lessons.get_active(student_id)
        assignment_id = self._assignments.create_assignment(
            student_id=student_id,
            surah=surah,
            verses=verses,
            type=type,
            assigned_by=current_user.user_id,
            lesson_id=lesson.lesson_id if lesson else None,
            created_at=now,
        )

        out: dict = {"assignment_id": assignment_id}
        if notify:
            out["notification"] = self._notifications.notify_student(
                student_id=student_id,
                template_type=TemplateType.HOMEWORK_ASSIGNED,
                assignment_id=assignment_id,
            )
        return out

    def grade(
        self,
        *,
        current_user: SessionUser,
        assignment_id: int,
        passed: bool,
        notify: bool = False,
        now: Optional[datetime] = None,
    ) -> dict:
        assignment = self._assignments.get_by_id(assignment_id)
        if not assignment:
            raise NotFoundError("Assignment not found")
        student = self._require_student_access(current_user, assignment.student_id)
        if assignment.status != AssignmentStatus.ASSIGNED:
            raise ValidationError("Assignment has already been graded")

        now = now or now_local()
        status = AssignmentStatus.PASSED if passed else AssignmentStatus.FAILED
        self._assignments.update_status(assignment_id, status, updated_at=now)

        if passed:
            failure_level = 1
            self._student_repo.update_levels(
                student.student_id, failure_level=failure_level, last_lesson_status=AssignmentStatus.PASSED
            )
        else:
            failure_level = min(student.failure_level + 1, MAX_FAILURE_LEVEL)
            self._student_repo.update_levels(
                student.student_id, failure_level=failure_level, last_lesson_status=AssignmentStatus.FAILED
            )

        self._progress.record_result(
            student_id=student.student_id,
            class_id=student.class_id,
            month=now.date(),
            type=assignment.type,
            passed=passed,
        )
        logger.info(
            "Assignment %s for student %s graded %s (failure_level=%s)",
            assignment_id,
            student.student_id,
            status.value,
            failure_level,
        )

        out: dict = {"status": status.value, "failure_level": failure_level}
        if notify:
            out["notification"] = self._notifications.notify_student(
                student_id=student.student_id,
                template_type=TemplateType.LESSON_PASS if passed else TemplateType.LESSON_FAIL,
                assignment_id=assignment_id,
            )
        return out

    def list_assignments(self, student_id: int, *, limit: Optional[int] = None) -> list[Assignment]:
        return list(self._assignments.list_for_student(student_id, limit=limit))

    def latest_assignments(self, student_id: int) -> dict[AssignmentType, Assignment]:
        """Newest assignment per type."""
        latest: dict[AssignmentType, Assignment] = {}
        for a in self._assignments.list_for_student(student_id):
            latest.setdefault(a.type, a)
        return latest

    def recently_passed(self, student_id: int, *, now: Optional[datetime] = None) -> bool:
        now = now or now_local()
        last_pass = next(
            (
                a
                for a in self._assignments.list_for_student(student_id)
                if a.type == AssignmentType.LESSON and a.status == AssignmentStatus.PASSED
            ),
            None,
        )
        stamp = last_pass and (last_pass.updated_at or last_pass.created_at)
        if not stamp:
            return False
        return now - stamp < timedelta(minutes=RECENT_PASS_MINUTES)
