from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Account that can sign in (admin, teacher, parent or adult student)."""

    user_id: int
    email: str
    full_name: str
    password_hash: str
    role: Role
    phone_number: Optional[str] = None
    is_active: bool = True
