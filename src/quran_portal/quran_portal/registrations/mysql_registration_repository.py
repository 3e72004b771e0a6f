from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import RegistrationStatus, RegistrationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Registration, RegistrationStudent
from .repository import RegistrationRepository

_COLUMNS = "registration_id, email, parent_name, phone, registration_type, status, payment_status, created_at"


def _to_registration(row: dict, students: Sequence[RegistrationStudent] = ()) -> Registration:
    return Registration(
        registration_id=int(row["registration_id"]),
        email=row["email"],
        parent_name=row.get("parent_name"),
        phone=row["phone"],
        registration_type=RegistrationType(row["registration_type"]),
        status=RegistrationStatus(row["status"]),
        payment_status=row.get("payment_status") or "unpaid",
        created_at=row.get("created_at"),
        students=tuple(students),
    )


class MySQLRegistrationRepository(RegistrationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _students_for(self, cur, registration_ids: Sequence[int]) -> dict[int, list[RegistrationStudent]]:
        out: dict[int, list[RegistrationStudent]] = {rid: [] for rid in registration_ids}
        if not registration_ids:
            return out
        cur.execute(
            f"""
            SELECT id, registration_id, name, age
            FROM registration_students
            WHERE registration_id IN ({in_clause(registration_ids)})
            ORDER BY id
            """,
            tuple(registration_ids),
        )
        for r in fetchall(cur):
            out[int(r["registration_id"])].append(
                RegistrationStudent(id=int(r["id"]), name=r["name"], age=int(r["age"]))
            )
        return out

    def get_by_id(self, registration_id: int) -> Optional[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM registrations WHERE registration_id=%s", (registration_id,))
            row = fetchone(cur)
            if not row:
                return None
            students = self._students_for(cur, [registration_id])
            return _to_registration(row, students[registration_id])

    def list_all(self, *, status: Optional[RegistrationStatus] = None) -> Sequence[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            if status is None:
                cur.execute(f"SELECT {_COLUMNS} FROM registrations ORDER BY created_at DESC, registration_id DESC")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM registrations WHERE status=%s ORDER BY created_at DESC, registration_id DESC",
                    (status.value,),
                )
            rows = fetchall(cur)
            students = self._students_for(cur, [int(r["registration_id"]) for r in rows])
            return [_to_registration(r, students[int(r["registration_id"])]) for r in rows]

    def create(
        self,
        *,
        email: str,
        parent_name: Optional[str],
        phone: str,
        registration_type: RegistrationType,
        students: Sequence[tuple[str, int]],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO registrations(email, parent_name, phone, registration_type)
                VALUES(%s,%s,%s,%s)
                """,
                (email, parent_name, phone, registration_type.value),
            )
            registration_id = int(cur.lastrowid)
            for name, age in students:
                cur.execute(
                    "INSERT INTO registration_students(registration_id, name, age) VALUES(%s,%s,%s)",
                    (registration_id, name, age),
                )
            return registration_id

    def update_status(self, registration_id: int, status: RegistrationStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE registrations SET status=%s WHERE registration_id=%s", (status.value, registration_id))
            return cur.rowcount > 0
