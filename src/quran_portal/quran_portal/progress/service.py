from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import first_of_month, month_bounds
from ..common.formatting import format_lesson_display
from ..common.validators import require_non_empty
from ..core.enums import AssignmentType
from ..core.exceptions import NotFoundError
from ..lessons.repository import AssignmentRepository, LessonRepository
from ..students.repository import StudentRepository
from .model import MonthlyProgress, TeacherFeedback
from .repository import ProgressRepository

logger = logging.getLogger(__name__)

_COUNTER_PREFIX = {
    AssignmentType.LESSON: "lessons",
    AssignmentType.HOMEWORK: "lessons",
    AssignmentType.REVIEW_NEAR: "review_near",
    AssignmentType.REVIEW_FAR: "review_far",
}


def counter_field(type: AssignmentType, passed: bool) -> str:
    return f"{_COUNTER_PREFIX[type]}_{'passed' if passed else 'failed'}"


def pass_rate(passed: int, failed: int) -> str:
    total = passed + failed
    if total == 0:
        return "0%"
    return f"{round(passed * 100 / total)}%"


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


class ProgressService:
    def __init__(
        self,
        progress: ProgressRepository,
        students: StudentRepository,
        lessons: LessonRepository,
        assignments: AssignmentRepository,
        attendance: AttendanceRepository,
    ):
        self._progress = progress
        self._students = students
        self._lessons = lessons
        self._assignments = assignments
        self._attendance = attendance

    def record_result(self, *, student_id: int, class_id: Optional[int], month: date, type: AssignmentType, passed: bool) -> None:
        self._progress.increment(
            student_id=student_id,
            month=first_of_month(month),
            class_id=class_id,
            field=counter_field(type, passed),
        )

    def record_active_day(self, *, student_id: int, class_id: Optional[int], day: date) -> None:
        self._progress.increment(
            student_id=student_id, month=first_of_month(day), class_id=class_id, field="active_days"
        )

    def record_pages(self, *, student_id: int, class_id: Optional[int], month: date, pages: int) -> None:
        if pages > 0:
            self._progress.increment(
                student_id=student_id,
                month=first_of_month(month),
                class_id=class_id,
                field="pages_passed_current",
                amount=pages,
            )

    def get_progress(self, student_id: int, month: date) -> MonthlyProgress:
        month = first_of_month(month)
        return self._progress.get(student_id, month) or MonthlyProgress(student_id=student_id, month=month)

    def student_stats(self, *, student_id: int, month: date) -> dict:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")

        progress = self.get_progress(student_id, month)
        lesson = self._lessons.get_active(student_id)
        assignments = list(self._assignments.list_for_student(student_id))

        current = None
        if assignments:
            if lesson:
                current = next(
                    (a for a in assignments if a.surah == lesson.surah and a.verses == lesson.verses),
                    assignments[0],
                )
            else:
                current = assignments[0]
        past = [a for a in assignments if current is None or a.assignment_id != current.assignment_id]

        start, end = month_bounds(month)
        feedback = self._progress.get_feedback(student_id, first_of_month(month))

        return {
            "student_id": student.student_id,
            "name": student.name,
            "class_id": student.class_id,
            "absence_level": student.absence_level,
            "failure_level": student.failure_level,
            "month": progress.month.strftime("%Y-%m"),
            "progress": {k: v for k, v in asdict(progress).items() if k not in ("student_id", "month")},
            "pass_rate": pass_rate(progress.total_passed, progress.total_failed),
            "absences": self._attendance.count_absences(student_id, start, end),
            "current_lesson": format_lesson_display(lesson.surah, lesson.verses) if lesson else "Not set",
            "current_homework": _assignment_dict(current) if current else None,
            "past_homework": [_assignment_dict(a) for a in past],
            "feedback": feedback.feedback_text if feedback else None,
        }

    def class_report(self, *, class_id: int, month: date) -> ReportData:
        month = first_of_month(month)
        students = list(self._students.list_by_classes([class_id]))
        by_student = {p.student_id: p for p in self._progress.list_for_students([s.student_id for s in students], month)}

        rows: list[dict] = []
        passed_sum = failed_sum = days_sum = 0
        for s in students:
            p = by_student.get(s.student_id) or MonthlyProgress(student_id=s.student_id, month=month)
            rows.append(
                {
                    "student_id": s.student_id,
                    "name": s.name,
                    "lessons_passed": p.lessons_passed,
                    "lessons_failed": p.lessons_failed,
                    "review_near_passed": p.review_near_passed,
                    "review_near_failed": p.review_near_failed,
                    "review_far_passed": p.review_far_passed,
                    "review_far_failed": p.review_far_failed,
                    "active_days": p.active_days,
                    "pages_passed": p.pages_passed_current,
                    "pass_rate": pass_rate(p.total_passed, p.total_failed),
                }
            )
            passed_sum += p.total_passed
            failed_sum += p.total_failed
            days_sum += p.active_days

        rows.sort(key=lambda r: r["name"].lower())
        summary = {
            "class_id": class_id,
            "month": month.strftime("%Y-%m"),
            "students": len(rows),
            "total_passed": passed_sum,
            "total_failed": failed_sum,
            "active_days": days_sum,
            "pass_rate": pass_rate(passed_sum, failed_sum),
        }
        return ReportData(rows=rows, summary=summary)

    def save_feedback(self, *, teacher_id: int, student_id: int, month: date, text: str) -> None:
        text = require_non_empty(text, "Feedback")
        if not self._students.get_by_id(student_id):
            raise NotFoundError("Student not found")
        self._progress.upsert_feedback(
            TeacherFeedback(student_id=student_id, teacher_id=teacher_id, month=first_of_month(month), feedback_text=text)
        )
        logger.info("Feedback saved for student %s (%s)", student_id, month.strftime("%Y-%m"))


def _assignment_dict(a) -> dict:
    return {
        "assignment_id": a.assignment_id,
        "surah": a.surah,
        "verses": a.verses,
        "type": a.type.value,
        "status": a.status.value,
        "created_at": a.created_at.isoformat() if a.created_at else None,
    }
