from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AssignmentStatus, AssignmentType, LessonType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import Assignment, Lesson
from .repository import AssignmentRepository, LessonRepository

_ASSIGNMENT_COLUMNS = (
    "assignment_id, student_id, lesson_id, surah, verses, type, status, assigned_by, created_at, updated_at"
)


def _to_assignment(row: dict) -> Assignment:
    return Assignment(
        assignment_id=int(row["assignment_id"]),
        student_id=int(row["student_id"]),
        surah=row["surah"],
        verses=row["verses"],
        type=AssignmentType(row["type"]),
        status=AssignmentStatus(row["status"]),
        assigned_by=int(row["assigned_by"]),
        lesson_id=row.get("lesson_id"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MySQLLessonRepository(LessonRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_active(self, student_id: int) -> Optional[Lesson]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT lesson_id, student_id, surah, verses, lesson_type, sort_order, is_active, created_at
                FROM lessons
                WHERE student_id=%s AND is_active=1
                ORDER BY lesson_id DESC
                LIMIT 1
                """,
                (student_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Lesson(
                lesson_id=int(row["lesson_id"]),
                student_id=int(row["student_id"]),
                surah=row["surah"],
                verses=row["verses"],
                lesson_type=LessonType(row.get("lesson_type") or LessonType.QURAN.value),
                sort_order=row.get("sort_order"),
                is_active=as_bool(row.get("is_active"), default=True),
                created_at=row.get("created_at"),
            )

    def replace_active(
        self,
        *,
        student_id: int,
        surah: str,
        verses: str,
        lesson_type: LessonType,
        sort_order: Optional[int] = None,
    ) -> int:
        # one transaction so a student never has two active lessons
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE lessons SET is_active=0 WHERE student_id=%s AND is_active=1", (student_id,))
            cur.execute(
                """
                INSERT INTO lessons(student_id, surah, verses, lesson_type, sort_order, is_active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (student_id, surah, verses, lesson_type.value, sort_order),
            )
            return int(cur.lastrowid)


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, assignment_id: int) -> Optional[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ASSIGNMENT_COLUMNS} FROM homework_assignments WHERE assignment_id=%s",
                (assignment_id,),
            )
            row = fetchone(cur)
            return _to_assignment(row) if row else None

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
        created_at = created_at or datetime.now()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO homework_assignments(student_id, lesson_id, surah, verses, type, status, assigned_by, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    student_id,
                    lesson_id,
                    surah,
                    verses,
                    type.value,
                    AssignmentStatus.ASSIGNED.value,
                    assigned_by,
                    created_at,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def update_status(self, assignment_id: int, status: AssignmentStatus, *, updated_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE homework_assignments SET status=%s, updated_at=%s WHERE assignment_id=%s",
                (status.value, updated_at, assignment_id),
            )
            return cur.rowcount > 0

    def list_for_student(self, student_id: int, *, limit: Optional[int] = None) -> Sequence[Assignment]:
        sql = (
            f"SELECT {_ASSIGNMENT_COLUMNS} FROM homework_assignments "
            "WHERE student_id=%s ORDER BY created_at DESC, assignment_id DESC"
        )
        params: tuple = (student_id,)
        if limit is not None:
            sql += " LIMIT %s"
            params = (student_id, int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_to_assignment(r) for r in fetchall(cur)]
