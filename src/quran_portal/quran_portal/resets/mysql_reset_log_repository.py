from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.enums import ResetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import ResetLog
from .repository import ResetLogRepository


class MySQLResetLogRepository(ResetLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, *, reset_date: datetime, status: ResetStatus, details: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO monthly_reset_logs(reset_date, status, details) VALUES(%s,%s,%s)",
                (reset_date, status.value, details),
            )
            return int(cur.lastrowid)

    def latest(self) -> Optional[ResetLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT log_id, reset_date, status, details
                FROM monthly_reset_logs
                ORDER BY reset_date DESC, log_id DESC
                LIMIT 1
                """
            )
            row = fetchone(cur)
            if not row:
                return None
            return ResetLog(
                log_id=int(row["log_id"]),
                reset_date=row["reset_date"],
                status=ResetStatus(row["status"]),
                details=row.get("details"),
            )
