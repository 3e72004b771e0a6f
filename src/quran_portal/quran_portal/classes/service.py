from __future__ import annotations

import logging

from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from ..users.service import SessionUser
from .model import ClassLink, SchoolClass
from .repository import ClassRepository

logger = logging.getLogger(__name__)


class ClassService:
    def __init__(self, classes: ClassRepository, users: UserRepository):
        self._classes = classes
        self._users = users

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

    def get_class(self, class_id: int) -> SchoolClass:
        klass = self._classes.get_by_id(class_id)
        if not klass:
            raise NotFoundError("Class not found")
        return klass

    def create_class(self, *, current_role: Role, name: str) -> int:
        self._require_admin(current_role)
        name = require_non_empty(name, "Class name")
        class_id = self._classes.create_class(name)
        logger.info("Created class %s (%s)", class_id, name)
        return class_id

    def rename_class(self, *, current_role: Role, class_id: int, name: str) -> None:
        self._require_admin(current_role)
        name = require_non_empty(name, "Class name")
        if not self._classes.rename(class_id, name):
            raise NotFoundError("Class not found")

    def delete_class(self, *, current_role: Role, class_id: int) -> None:
        self._require_admin(current_role)
        if not self._classes.delete_by_id(class_id):
            raise NotFoundError("Class not found")
        logger.info("Deleted class %s", class_id)

    def assign_teacher(self, *, current_role: Role, class_id: int, teacher_id: int) -> None:
        self._require_admin(current_role)
        self.get_class(class_id)
        teacher = self._users.get_by_id(teacher_id)
        if not teacher or teacher.role not in (Role.TEACHER, Role.ADMIN):
            raise ValidationError("Selected user is not a teacher")
        self._classes.assign_teacher(class_id, teacher_id)

    def remove_teacher(self, *, current_role: Role, class_id: int, teacher_id: int) -> None:
        self._require_admin(current_role)
        if not self._classes.remove_teacher(class_id, teacher_id):
            raise NotFoundError("Teacher is not assigned to this class")

    def list_teachers(self, class_id: int) -> list[dict]:
        out = []
        for user_id in self._classes.list_teacher_ids(class_id):
            user = self._users.get_by_id(user_id)
            if user:
                out.append({"user_id": user.user_id, "full_name": user.full_name, "email": user.email})
        return out

    def link_classes(self, *, current_role: Role, weekday_class_id: int, weekend_class_id: int) -> int:
        self._require_admin(current_role)
        if weekday_class_id == weekend_class_id:
            raise ValidationError("A class cannot be linked to itself")
        self.get_class(weekday_class_id)
        self.get_class(weekend_class_id)
        for class_id in (weekday_class_id, weekend_class_id):
            if self._classes.get_link_for(class_id):
                raise ValidationError("Class is already linked")
        return self._classes.create_link(weekday_class_id=weekday_class_id, weekend_class_id=weekend_class_id)

    def unlink(self, *, current_role: Role, class_id: int) -> None:
        self._require_admin(current_role)
        link = self._classes.get_link_for(class_id)
        if not link:
            raise NotFoundError("Class is not linked")
        self._classes.delete_link(link.link_id)

    def get_link(self, class_id: int) -> ClassLink | None:
        return self._classes.get_link_for(class_id)

    def linked_class_ids(self, class_id: int) -> list[int]:
        """The class itself followed by its linked partner, if any."""
        link = self._classes.get_link_for(class_id)
        if not link:
            return [class_id]
        return [class_id, link.partner_of(class_id)]

    def list_for_user(self, user: SessionUser) -> list[SchoolClass]:
        if user.role == Role.ADMIN:
            return list(self._classes.list_all())
        if user.role == Role.TEACHER:
            return list(self._classes.list_for_teacher(user.user_id))
        return []

    def can_manage(self, user: SessionUser, class_id: int) -> bool:
        if user.role == Role.ADMIN:
            return True
        if user.role == Role.TEACHER:
            return user.user_id in self._classes.list_teacher_ids(class_id)
        return False

    def require_manage(self, user: SessionUser, class_id: int) -> None:
        if not self.can_manage(user, class_id):
            raise AuthorizationError("You do not have access to this class")
