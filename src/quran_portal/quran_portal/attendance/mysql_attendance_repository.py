from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, student_id, class_id, attendance_date, status, note, created_by"


def _to_record(row: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        student_id=int(row["student_id"]),
        class_id=int(row["class_id"]),
        attendance_date=as_date(row["attendance_date"]),
        status=AttendanceStatus(row["status"]),
        created_by=int(row["created_by"]),
        note=row.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_student_and_date(self, student_id: int, class_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM weekday_attendance
                WHERE student_id=%s AND class_id=%s AND attendance_date=%s
                """,
                (student_id, class_id, attendance_date),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def list_for_class_and_date(self, class_id: int, attendance_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM weekday_attendance WHERE class_id=%s AND attendance_date=%s",
                (class_id, attendance_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def upsert(
        self,
        *,
        student_id: int,
        class_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        created_by: int,
        note: Optional[str] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO weekday_attendance(student_id, class_id, attendance_date, status, note, created_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status), note=VALUES(note), created_by=VALUES(created_by)
                """,
                (student_id, class_id, attendance_date, status.value, note, created_by),
            )

    def list_history(self, class_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM weekday_attendance
                WHERE class_id=%s AND attendance_date BETWEEN %s AND %s
                ORDER BY attendance_date DESC, student_id
                """,
                (class_id, start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_absences(self, student_id: int, start_date: date, end_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS cnt FROM weekday_attendance
                WHERE student_id=%s AND status=%s AND attendance_date BETWEEN %s AND %s
                """,
                (student_id, AttendanceStatus.ABSENT.value, start_date, end_date),
            )
            row = fetchone(cur)
            return int(row["cnt"]) if row else 0
