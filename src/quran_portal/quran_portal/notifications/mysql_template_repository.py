from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import TemplateType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import NotificationPreset, WeekdayPreset
from .repository import TemplateRepository


class MySQLTemplateRepository(TemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_class_template(self, class_id: int, type: TemplateType) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT content FROM class_notification_templates WHERE class_id=%s AND type=%s",
                (class_id, type.value),
            )
            row = fetchone(cur)
            return row["content"] if row else None

    def get_global_template(self, type: TemplateType) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT content FROM notification_templates WHERE type=%s", (type.value,))
            row = fetchone(cur)
            return row["content"] if row else None

    def list_class_templates(self, class_id: int) -> dict[str, str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT type, content FROM class_notification_templates WHERE class_id=%s", (class_id,))
            return {r["type"]: r["content"] for r in fetchall(cur)}

    def list_global_templates(self) -> dict[str, str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT type, content FROM notification_templates")
            return {r["type"]: r["content"] for r in fetchall(cur)}

    def upsert_class_template(self, class_id: int, type: TemplateType, content: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO class_notification_templates(class_id, type, content)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE content=VALUES(content)
                """,
                (class_id, type.value, content),
            )

    def upsert_global_template(self, type: TemplateType, content: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notification_templates(type, content)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE content=VALUES(content)
                """,
                (type.value, content),
            )

    def delete_class_template(self, class_id: int, type: TemplateType) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM class_notification_templates WHERE class_id=%s AND type=%s",
                (class_id, type.value),
            )
            return cur.rowcount > 0

    def list_presets(
        self, type: TemplateType, *, level: Optional[int] = None, is_adult: Optional[bool] = None
    ) -> Sequence[NotificationPreset]:
        sql = "SELECT preset_id, type, level, is_adult, is_default, content FROM notification_presets WHERE type=%s"
        params: list[object] = [type.value]
        if level is not None:
            sql += " AND level=%s"
            params.append(int(level))
        if is_adult is not None:
            sql += " AND is_adult=%s"
            params.append(int(is_adult))
        sql += " ORDER BY is_default DESC, preset_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                NotificationPreset(
                    preset_id=int(r["preset_id"]),
                    type=TemplateType(r["type"]),
                    content=r["content"],
                    level=r.get("level"),
                    is_adult=as_bool(r.get("is_adult")),
                    is_default=as_bool(r.get("is_default")),
                )
                for r in fetchall(cur)
            ]

    def list_weekday_presets(self, class_id: Optional[int], type: TemplateType) -> Sequence[WeekdayPreset]:
        with db_cursor(self._conn_factory) as (_, cur):
            if class_id is None:
                cur.execute(
                    """
                    SELECT preset_id, class_id, type, content FROM weekday_notification_presets
                    WHERE class_id IS NULL AND type=%s ORDER BY preset_id
                    """,
                    (type.value,),
                )
            else:
                cur.execute(
                    """
                    SELECT preset_id, class_id, type, content FROM weekday_notification_presets
                    WHERE class_id=%s AND type=%s ORDER BY preset_id
                    """,
                    (class_id, type.value),
                )
            return [
                WeekdayPreset(
                    preset_id=int(r["preset_id"]),
                    type=TemplateType(r["type"]),
                    content=r["content"],
                    class_id=r.get("class_id"),
                )
                for r in fetchall(cur)
            ]
