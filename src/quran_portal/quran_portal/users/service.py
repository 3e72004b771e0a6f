from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.phone import with_plus
from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..students.model import NotificationPreferences
from ..students.repository import AdultStudentRepository, ParentLinkRepository, StudentRepository
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    email: str
    full_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AuthService:
    """Use case: authenticate user (login) and self-service password change."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hash
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(user_id=user.user_id, email=user.email, full_name=user.full_name, role=user.role)

    def change_password(self, *, user_id: int, current_password: str, new_password: str) -> None:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        try:
            ok = check_password_hash(user.password_hash, current_password or "")
        except ValueError:
            ok = False
        if not ok:
            raise AuthenticationError("Current password is incorrect")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)

        self._users.update_password_hash(user_id, generate_password_hash(new_password))
        logger.info("Password changed for user %s", user_id)


class UserService:
    """Use case: manage accounts (admin)."""

    def __init__(
        self,
        users: UserRepository,
        students: StudentRepository,
        adults: AdultStudentRepository,
        links: ParentLinkRepository,
    ):
        self._users = users
        self._students = students
        self._adults = adults
        self._links = links

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

    def create_user_with_role(
        self,
        *,
        current_role: Role,
        email: str,
        password: str,
        role: Role,
        first_name: str,
        last_name: str,
        phone_number: Optional[str] = None,
        parent_id: Optional[int] = None,
        class_id: Optional[int] = None,
        is_adult_student: bool = False,
    ) -> int:
        self._require_admin(current_role)

        email = require_email(email)
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if role == Role.STUDENT and not is_adult_student and not parent_id:
            raise ValidationError("Parent ID is required for student accounts")
        if self._users.get_by_email(email):
            raise ValidationError("A user with this email already exists")

        phone = with_plus(phone_number) if phone_number and phone_number.strip() else None
        full_name = f"{first_name} {last_name}"

        user_id = self._users.create_user(
            email=email,
            full_name=full_name,
            password_hash=generate_password_hash(password),
            role=role,
            phone_number=phone,
        )

        if role == Role.STUDENT:
            student_id = self._students.create_student(name=full_name, email=email, class_id=class_id)
            if is_adult_student:
                self._adults.create_adult(student_id=student_id, email=email, phone_number=phone, class_id=class_id)
                self._links.upsert_preferences(NotificationPreferences(parent_user_id=user_id))
            else:
                self._links.create_link(parent_user_id=int(parent_id), student_id=student_id)

        if role == Role.PARENT:
            self._links.upsert_preferences(NotificationPreferences(parent_user_id=user_id))
            if phone:
                # phone-only row until a child is linked
                self._links.create_link(parent_user_id=user_id, student_id=None, phone_number=phone)

        logger.info("Created %s account %s (user_id=%s)", role.value, email, user_id)
        return user_id

    def list_by_role(self, role: Role) -> list[dict]:
        return [
            {
                "user_id": u.user_id,
                "email": u.email,
                "full_name": u.full_name,
                "role": u.role.value,
                "phone_number": u.phone_number,
            }
            for u in self._users.list_by_role(role)
        ]

    def update_email(self, *, current_role: Role, user_id: int, email: str) -> None:
        self._require_admin(current_role)
        email = require_email(email)

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        other = self._users.get_by_email(email)
        if other and other.user_id != user_id:
            raise ValidationError("A user with this email already exists")

        self._users.update_email(user_id, email)
        self._adults.update_email(old_email=user.email, new_email=email)

    def update_phone(self, *, current_role: Role, user_id: int, phone_number: Optional[str]) -> None:
        self._require_admin(current_role)
        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        phone = with_plus(phone_number) if phone_number and phone_number.strip() else None
        self._users.update_phone(user_id, phone)

    def reset_password(self, *, current_role: Role, user_id: int, password: str) -> None:
        self._require_admin(current_role)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        if not self._users.update_password_hash(user_id, generate_password_hash(password)):
            raise NotFoundError("User not found")

    def delete_user(self, *, current_role: Role, user_id: int) -> None:
        self._require_admin(current_role)

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deleted")

        self._links.delete_for_parent(user_id)
        if not self._users.delete_by_id(user_id):
            raise ValidationError("Failed to delete user")
        logger.info("Deleted user %s (%s)", user_id, user.email)
