from __future__ import annotations

from datetime import date, datetime

import pytest

from src.quran_portal.quran_portal.core.enums import AssignmentType, AttendanceStatus, LessonType
from src.quran_portal.quran_portal.core.exceptions import NotFoundError, ValidationError
from src.quran_portal.quran_portal.progress.service import counter_field, pass_rate

MARCH = date(2025, 3, 1)


def test_pass_rate_rounds_and_handles_zero():
    assert pass_rate(0, 0) == "0%"
    assert pass_rate(2, 1) == "67%"
    assert pass_rate(5, 0) == "100%"


def test_counter_field_groups_homework_with_lessons():
    assert counter_field(AssignmentType.HOMEWORK, True) == "lessons_passed"
    assert counter_field(AssignmentType.REVIEW_FAR, False) == "review_far_failed"


def test_student_stats_combines_progress_lesson_and_absences(world):
    class_id = world.classes.create_class("Saturday Hifz")
    student = world.add_student("Ibrahim Musa", class_id, absence_level=2)
    svc = world.container.progress_service
    svc.record_result(student_id=student.student_id, class_id=class_id, month=date(2025, 3, 8), type=AssignmentType.LESSON, passed=True)
    svc.record_result(student_id=student.student_id, class_id=class_id, month=date(2025, 3, 9), type=AssignmentType.REVIEW_NEAR, passed=False)
    world.lessons.replace_active(student_id=student.student_id, surah="Yasin", verses="1-12", lesson_type=LessonType.QURAN)
    old = world.assignments.create_assignment(
        student_id=student.student_id, surah="Al-Mulk", verses="1-5", type=AssignmentType.HOMEWORK, assigned_by=1,
        created_at=datetime(2025, 3, 1),
    )
    current = world.assignments.create_assignment(
        student_id=student.student_id, surah="Yasin", verses="1-12", type=AssignmentType.HOMEWORK, assigned_by=1,
        created_at=datetime(2025, 3, 2),
    )
    world.attendance.upsert(
        student_id=student.student_id, class_id=class_id, attendance_date=date(2025, 3, 15),
        status=AttendanceStatus.ABSENT, created_by=1,
    )

    stats = svc.student_stats(student_id=student.student_id, month=date(2025, 3, 20))

    assert stats["month"] == "2025-03"
    assert stats["absence_level"] == 2
    assert stats["progress"]["lessons_passed"] == 1
    assert stats["progress"]["review_near_failed"] == 1
    assert stats["pass_rate"] == "50%"
    assert stats["absences"] == 1
    assert stats["current_lesson"] == "Yasin: 1-12"
    assert stats["current_homework"]["assignment_id"] == current
    assert [a["assignment_id"] for a in stats["past_homework"]] == [old]
    assert stats["feedback"] is None


def test_student_stats_unknown_student(world):
    with pytest.raises(NotFoundError):
        world.container.progress_service.student_stats(student_id=42, month=MARCH)


def test_class_report_sorts_by_name_and_sums(world):
    class_id = world.classes.create_class("Sunday Juniors")
    zaid = world.add_student("zaid", class_id)
    amina = world.add_student("Amina", class_id)
    svc = world.container.progress_service
    svc.record_result(student_id=zaid.student_id, class_id=class_id, month=MARCH, type=AssignmentType.LESSON, passed=True)
    svc.record_result(student_id=amina.student_id, class_id=class_id, month=MARCH, type=AssignmentType.LESSON, passed=False)
    svc.record_active_day(student_id=amina.student_id, class_id=class_id, day=date(2025, 3, 2))
    svc.record_pages(student_id=amina.student_id, class_id=class_id, month=MARCH, pages=3)
    svc.record_pages(student_id=amina.student_id, class_id=class_id, month=MARCH, pages=0)

    report = svc.class_report(class_id=class_id, month=date(2025, 3, 31))

    assert [r["name"] for r in report.rows] == ["Amina", "zaid"]
    assert report.rows[0]["pages_passed"] == 3
    assert report.rows[0]["active_days"] == 1
    assert report.summary == {
        "class_id": class_id,
        "month": "2025-03",
        "students": 2,
        "total_passed": 1,
        "total_failed": 1,
        "active_days": 1,
        "pass_rate": "50%",
    }


def test_feedback_is_saved_per_month(world):
    student = world.add_student("Sara Idris", None)
    svc = world.container.progress_service

    svc.save_feedback(teacher_id=7, student_id=student.student_id, month=date(2025, 3, 14), text=" Excellent tajweed ")

    assert svc.student_stats(student_id=student.student_id, month=MARCH)["feedback"] == "Excellent tajweed"
    with pytest.raises(ValidationError):
        svc.save_feedback(teacher_id=7, student_id=student.student_id, month=MARCH, text="")
    with pytest.raises(NotFoundError):
        svc.save_feedback(teacher_id=7, student_id=999, month=MARCH, text="ok")
