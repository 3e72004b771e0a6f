from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from werkzeug.security import generate_password_hash

from .connection import CHARSET, COLLATION, DBConfig, DatabaseConnection

logger = logging.getLogger(__name__)

DEMO_USERS = (
    # (full_name, email, password, role)
    ("Admin Demo", "admin@example.com", "admin123", "admin"),
    ("Ustadh Demo", "teacher@example.com", "teacher123", "teacher"),
    ("Parent Demo", "parent@example.com", "parent123", "parent"),
)


def _connect(target: DBConfig, *, with_database: bool = True):
    return DatabaseConnection(target).connect(with_database=with_database)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql names a database; the configured one wins.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Splits on ';' outside quoted strings.
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_sql_file(db_config: dict, path: str | Path) -> int:
    target = DBConfig.from_dict(db_config)
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))

    conn = _connect(target)
    count = 0
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET {CHARSET} COLLATE {COLLATION};"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _run_sql_file(db_config, schema_path)
    logger.info("Applied schema %s (%d statements)", schema_path, count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _run_sql_file(db_config, seed_path)
    logger.info("Applied seed %s (%d statements)", seed_path, count)


def ensure_demo_users(db_config: dict) -> None:
    """Create or refresh one login per role, and put the demo teacher on the first class."""
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor(dictionary=True)

        for full_name, email, password, role in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE users
                    SET full_name=%s, password_hash=%s, role=%s, is_active=1
                    WHERE email=%s
                    """,
                    (full_name, password_hash, role, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (full_name, email, password_hash, role)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (full_name, email, password_hash, role),
                )

        cur.execute("SELECT user_id FROM users WHERE email=%s", ("teacher@example.com",))
        teacher = cur.fetchone()
        cur.execute("SELECT class_id FROM classes ORDER BY class_id LIMIT 1")
        first_class = cur.fetchone()
        if teacher and first_class:
            cur.execute(
                "INSERT IGNORE INTO class_teachers (class_id, user_id) VALUES (%s, %s)",
                (first_class["class_id"], teacher["user_id"]),
            )

        conn.commit()
    finally:
        conn.close()
    logger.info("Demo users ready (%s)", ", ".join(u[1] for u in DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    target = DBConfig.from_dict(db_config)
    conn = _connect(target)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
