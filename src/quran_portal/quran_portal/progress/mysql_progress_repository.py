from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone, in_clause
from .model import MonthlyProgress, TeacherFeedback
from .repository import COUNTER_FIELDS, ProgressRepository

_COLUMNS = (
    "student_id, month, class_id, lessons_passed, lessons_failed, review_near_passed, review_near_failed, "
    "review_far_passed, review_far_failed, active_days, pages_passed_current"
)


def _to_progress(row: dict) -> MonthlyProgress:
    return MonthlyProgress(
        student_id=int(row["student_id"]),
        month=as_date(row["month"]),
        class_id=row.get("class_id"),
        lessons_passed=int(row.get("lessons_passed") or 0),
        lessons_failed=int(row.get("lessons_failed") or 0),
        review_near_passed=int(row.get("review_near_passed") or 0),
        review_near_failed=int(row.get("review_near_failed") or 0),
        review_far_passed=int(row.get("review_far_passed") or 0),
        review_far_failed=int(row.get("review_far_failed") or 0),
        active_days=int(row.get("active_days") or 0),
        pages_passed_current=int(row.get("pages_passed_current") or 0),
    )


class MySQLProgressRepository(ProgressRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, student_id: int, month: date) -> Optional[MonthlyProgress]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM monthly_progress WHERE student_id=%s AND month=%s",
                (student_id, month),
            )
            row = fetchone(cur)
            return _to_progress(row) if row else None

    def list_for_students(self, student_ids: Sequence[int], month: date) -> Sequence[MonthlyProgress]:
        if not student_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM monthly_progress
                WHERE month=%s AND student_id IN ({in_clause(student_ids)})
                """,
                (month, *student_ids),
            )
            return [_to_progress(r) for r in fetchall(cur)]

    def increment(
        self, *, student_id: int, month: date, class_id: Optional[int], field: str, amount: int = 1
    ) -> None:
        if field not in COUNTER_FIELDS:
            raise ValueError(f"Unknown progress counter: {field}")
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO monthly_progress(student_id, month, class_id, {field})
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE {field}={field}+VALUES({field}), class_id=COALESCE(VALUES(class_id), class_id)
                """,
                (student_id, month, class_id, int(amount)),
            )

    def get_feedback(self, student_id: int, month: date) -> Optional[TeacherFeedback]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, teacher_id, month, feedback_text
                FROM teacher_feedback
                WHERE student_id=%s AND month=%s
                """,
                (student_id, month),
            )
            row = fetchone(cur)
            if not row:
                return None
            return TeacherFeedback(
                student_id=int(row["student_id"]),
                teacher_id=int(row["teacher_id"]),
                month=as_date(row["month"]),
                feedback_text=row["feedback_text"],
            )

    def upsert_feedback(self, feedback: TeacherFeedback) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO teacher_feedback(student_id, teacher_id, month, feedback_text)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE teacher_id=VALUES(teacher_id), feedback_text=VALUES(feedback_text)
                """,
                (feedback.student_id, feedback.teacher_id, feedback.month, feedback.feedback_text),
            )
