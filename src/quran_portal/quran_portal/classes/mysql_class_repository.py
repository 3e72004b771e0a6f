from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassLink, SchoolClass
from .repository import ClassRepository


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT class_id, name FROM classes WHERE class_id=%s", (class_id,))
            row = fetchone(cur)
            return SchoolClass(class_id=int(row["class_id"]), name=row["name"]) if row else None

    def list_all(self) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT class_id, name FROM classes ORDER BY name")
            return [SchoolClass(class_id=int(r["class_id"]), name=r["name"]) for r in fetchall(cur)]

    def list_for_teacher(self, user_id: int) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.class_id, c.name
                FROM classes c
                JOIN class_teachers ct ON ct.class_id = c.class_id
                WHERE ct.user_id=%s
                ORDER BY c.name
                """,
                (user_id,),
            )
            return [SchoolClass(class_id=int(r["class_id"]), name=r["name"]) for r in fetchall(cur)]

    def create_class(self, name: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("INSERT INTO classes(name) VALUES(%s)", (name,))
            return int(cur.lastrowid)

    def rename(self, class_id: int, name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE classes SET name=%s WHERE class_id=%s", (name, class_id))
            return cur.rowcount > 0

    def delete_by_id(self, class_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM classes WHERE class_id=%s", (class_id,))
            return cur.rowcount > 0

    def assign_teacher(self, class_id: int, user_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO class_teachers(class_id, user_id) VALUES(%s,%s)",
                (class_id, user_id),
            )

    def remove_teacher(self, class_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM class_teachers WHERE class_id=%s AND user_id=%s", (class_id, user_id))
            return cur.rowcount > 0

    def list_teacher_ids(self, class_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id FROM class_teachers WHERE class_id=%s", (class_id,))
            return [int(r["user_id"]) for r in fetchall(cur)]

    def get_link_for(self, class_id: int) -> Optional[ClassLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT link_id, weekday_class_id, weekend_class_id
                FROM class_links
                WHERE weekday_class_id=%s OR weekend_class_id=%s
                LIMIT 1
                """,
                (class_id, class_id),
            )
            row = fetchone(cur)
            if not row:
                return None
            return ClassLink(
                link_id=int(row["link_id"]),
                weekday_class_id=int(row["weekday_class_id"]),
                weekend_class_id=int(row["weekend_class_id"]),
            )

    def create_link(self, *, weekday_class_id: int, weekend_class_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO class_links(weekday_class_id, weekend_class_id) VALUES(%s,%s)",
                (weekday_class_id, weekend_class_id),
            )
            return int(cur.lastrowid)

    def delete_link(self, link_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM class_links WHERE link_id=%s", (link_id,))
            return cur.rowcount > 0
