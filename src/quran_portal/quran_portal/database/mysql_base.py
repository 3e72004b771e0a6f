from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Sequence[object]) -> str:
    """Placeholder list for `col IN (...)`; callers must not pass an empty sequence."""
    if not values:
        raise ValueError("in_clause() needs at least one value")
    return ", ".join(["%s"] * len(values))


def as_date(value: Any) -> Optional[date]:
    """MySQL DATE columns come back as date; DATETIME as datetime; some drivers give str."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    raise TypeError(f"Unsupported MySQL DATE value type: {type(value)!r}")


def as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    return bool(int(value)) if not isinstance(value, bool) else value
