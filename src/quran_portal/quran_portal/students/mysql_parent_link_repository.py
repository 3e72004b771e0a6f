from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause
from .model import NotificationPreferences, ParentLink
from .repository import ParentLinkRepository

_LINK_COLUMNS = "link_id, parent_user_id, student_id, phone_number, secondary_phone_number"


def _to_link(row: dict) -> ParentLink:
    return ParentLink(
        link_id=int(row["link_id"]),
        parent_user_id=int(row["parent_user_id"]),
        student_id=row.get("student_id"),
        phone_number=row.get("phone_number"),
        secondary_phone_number=row.get("secondary_phone_number"),
    )


class MySQLParentLinkRepository(ParentLinkRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_students(self, student_ids: Sequence[int]) -> Sequence[ParentLink]:
        if not student_ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LINK_COLUMNS}
                FROM parent_student_links
                WHERE student_id IN ({in_clause(student_ids)})
                ORDER BY link_id
                """,
                tuple(student_ids),
            )
            return [_to_link(r) for r in fetchall(cur)]

    def list_for_parent(self, parent_user_id: int) -> Sequence[ParentLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LINK_COLUMNS} FROM parent_student_links WHERE parent_user_id=%s ORDER BY link_id",
                (parent_user_id,),
            )
            return [_to_link(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[ParentLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_LINK_COLUMNS} FROM parent_student_links ORDER BY link_id")
            return [_to_link(r) for r in fetchall(cur)]

    def create_link(
        self,
        *,
        parent_user_id: int,
        student_id: Optional[int],
        phone_number: Optional[str] = None,
        secondary_phone_number: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO parent_student_links(parent_user_id, student_id, phone_number, secondary_phone_number)
                VALUES(%s,%s,%s,%s)
                """,
                (parent_user_id, student_id, phone_number, secondary_phone_number),
            )
            return int(cur.lastrowid)

    def delete_link(self, *, parent_user_id: int, student_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM parent_student_links WHERE parent_user_id=%s AND student_id=%s",
                (parent_user_id, student_id),
            )
            return cur.rowcount > 0

    def delete_for_parent(self, parent_user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM parent_student_links WHERE parent_user_id=%s", (parent_user_id,))
            return int(cur.rowcount)

    def get_preferences(self, parent_user_id: int) -> Optional[NotificationPreferences]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT parent_user_id, phone_number, homework_assigned, lesson_pass, lesson_fail
                FROM notification_preferences
                WHERE parent_user_id=%s
                """,
                (parent_user_id,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return NotificationPreferences(
                parent_user_id=int(row["parent_user_id"]),
                phone_number=row.get("phone_number"),
                homework_assigned=as_bool(row.get("homework_assigned"), default=True),
                lesson_pass=as_bool(row.get("lesson_pass"), default=True),
                lesson_fail=as_bool(row.get("lesson_fail"), default=True),
            )

    def upsert_preferences(self, prefs: NotificationPreferences) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notification_preferences(parent_user_id, phone_number, homework_assigned, lesson_pass, lesson_fail)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    phone_number=VALUES(phone_number),
                    homework_assigned=VALUES(homework_assigned),
                    lesson_pass=VALUES(lesson_pass),
                    lesson_fail=VALUES(lesson_fail)
                """,
                (
                    prefs.parent_user_id,
                    prefs.phone_number,
                    int(prefs.homework_assigned),
                    int(prefs.lesson_pass),
                    int(prefs.lesson_fail),
                ),
            )
