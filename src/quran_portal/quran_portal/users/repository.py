from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Storage interface for users; services depend on this, not on MySQL."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        full_name: str,
        password_hash: str,
        role: Role,
        phone_number: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def update_email(self, user_id: int, email: str) -> bool:
        raise NotImplementedError

    def update_phone(self, user_id: int, phone_number: Optional[str]) -> bool:
        raise NotImplementedError

    def update_password_hash(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError
