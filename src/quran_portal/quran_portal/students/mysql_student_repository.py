from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import AssignmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AdultStudent, Student
from .repository import AdultStudentRepository, StudentRepository

_STUDENT_COLUMNS = (
    "student_id, name, email, class_id, absence_level, consecutive_absences, failure_level, last_lesson_status"
)


def _to_student(row: dict) -> Student:
    last = row.get("last_lesson_status")
    return Student(
        student_id=int(row["student_id"]),
        name=row["name"],
        email=row.get("email"),
        class_id=row.get("class_id"),
        absence_level=int(row.get("absence_level") or 1),
        consecutive_absences=int(row.get("consecutive_absences") or 0),
        failure_level=int(row.get("failure_level") or 1),
        last_lesson_status=AssignmentStatus(last) if last else None,
    )


def _to_adult(row: dict) -> AdultStudent:
    return AdultStudent(
        adult_id=int(row["adult_id"]),
        student_id=row.get("student_id"),
        email=row["email"],
        phone_number=row.get("phone_number"),
        class_id=row.get("class_id"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_STUDENT_COLUMNS} FROM students WHERE student_id=%s", (student_id,))
            row = fetchone(cur)
            return _to_student(row) if row else None

    def list_by_classes(self, class_ids: Sequence[int]) -> Sequence[Student]:
        if not class_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_STUDENT_COLUMNS} FROM students WHERE class_id IN ({in_clause(class_ids)}) ORDER BY name",
                tuple(class_ids),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def find_by_name_and_class(self, name: str, class_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_STUDENT_COLUMNS} FROM students WHERE name=%s AND class_id=%s LIMIT 1",
                (name, class_id),
            )
            row = fetchone(cur)
            return _to_student(row) if row else None

    def list_by_emails(self, emails: Sequence[str]) -> Sequence[Student]:
        if not emails:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_STUDENT_COLUMNS} FROM students WHERE email IN ({in_clause(emails)})",
                tuple(emails),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def create_student(self, *, name: str, email: Optional[str], class_id: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO students(name, email, class_id) VALUES(%s,%s,%s)",
                (name, email, class_id),
            )
            return int(cur.lastrowid)

    def update_class(self, student_id: int, class_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE students SET class_id=%s WHERE student_id=%s", (class_id, student_id))
            return cur.rowcount > 0

    def delete_by_id(self, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM students WHERE student_id=%s", (student_id,))
            return cur.rowcount > 0

    def update_levels(
        self,
        student_id: int,
        *,
        absence_level: Optional[int] = None,
        consecutive_absences: Optional[int] = None,
        failure_level: Optional[int] = None,
        last_lesson_status: Optional[AssignmentStatus] = None,
    ) -> bool:
        sets: list[str] = []
        params: list[object] = []
        if absence_level is not None:
            sets.append("absence_level=%s")
            params.append(int(absence_level))
        if consecutive_absences is not None:
            sets.append("consecutive_absences=%s")
            params.append(int(consecutive_absences))
        if failure_level is not None:
            sets.append("failure_level=%s")
            params.append(int(failure_level))
        if last_lesson_status is not None:
            sets.append("last_lesson_status=%s")
            params.append(last_lesson_status.value)
        if not sets:
            return False

        params.append(student_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE students SET {', '.join(sets)} WHERE student_id=%s", tuple(params))
            return cur.rowcount > 0

    def reset_levels(self, *, class_id: Optional[int] = None) -> int:
        sql = "UPDATE students SET absence_level=1, consecutive_absences=0, failure_level=1"
        params: tuple = ()
        if class_id is not None:
            sql += " WHERE class_id=%s"
            params = (class_id,)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return int(cur.rowcount)


class MySQLAdultStudentRepository(AdultStudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_student_id(self, student_id: int) -> Optional[AdultStudent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT adult_id, student_id, email, phone_number, class_id
                FROM adult_students
                WHERE student_id=%s
                LIMIT 1
                """,
                (student_id,),
            )
            row = fetchone(cur)
            return _to_adult(row) if row else None

    def list_by_emails(self, emails: Sequence[str]) -> Sequence[AdultStudent]:
        if not emails:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT adult_id, student_id, email, phone_number, class_id
                FROM adult_students
                WHERE email IN ({in_clause(emails)})
                """,
                tuple(emails),
            )
            return [_to_adult(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[AdultStudent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT adult_id, student_id, email, phone_number, class_id FROM adult_students ORDER BY email")
            return [_to_adult(r) for r in fetchall(cur)]

    def create_adult(
        self, *, student_id: Optional[int], email: str, phone_number: Optional[str], class_id: Optional[int]
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO adult_students(student_id, email, phone_number, class_id)
                VALUES(%s,%s,%s,%s)
                """,
                (student_id, email, phone_number, class_id),
            )
            return int(cur.lastrowid)

    def update_email(self, *, old_email: str, new_email: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE adult_students SET email=%s WHERE email=%s", (new_email, old_email))
            return int(cur.rowcount)
