from __future__ import annotations

import logging
from typing import Optional

from ..classes.service import ClassService
from ..common.phone import unique_phones, with_plus
from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from ..users.service import SessionUser
from .model import ParentLink, Student
from .repository import AdultStudentRepository, ParentLinkRepository, StudentRepository

logger = logging.getLogger(__name__)


def _phone_or_none(raw: Optional[str]) -> Optional[str]:
    return with_plus(raw) if raw and raw.strip() else None


class StudentService:
    def __init__(
        self,
        students: StudentRepository,
        adults: AdultStudentRepository,
        links: ParentLinkRepository,
        users: UserRepository,
        classes: ClassService,
    ):
        self._students = students
        self._adults = adults
        self._links = links
        self._users = users
        self._classes = classes

    def get_student(self, student_id: int) -> Student:
        student = self._students.get_by_id(student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def list_class_students(self, class_id: int) -> list[Student]:
        return list(self._students.list_by_classes([class_id]))

    def add_student(self, *, current_user: SessionUser, class_id: int, name: str, email: Optional[str] = None) -> int:
        self._classes.require_manage(current_user, class_id)
        name = require_non_empty(name, "Student name")
        email = email.strip().lower() if email and email.strip() else None

        student_id = self._students.create_student(name=name, email=email, class_id=class_id)
        logger.info("Added student %s (%s) to class %s", student_id, name, class_id)
        return student_id

    def transfer_student(self, *, current_user: SessionUser, student_id: int, class_id: int) -> None:
        student = self.get_student(student_id)
        if student.class_id is not None:
            self._classes.require_manage(current_user, student.class_id)
        self._classes.get_class(class_id)
        if student.class_id == class_id:
            raise ValidationError("Student is already in this class")

        self._students.update_class(student_id, class_id)
        logger.info("Transferred student %s from class %s to %s", student_id, student.class_id, class_id)

    def remove_student(self, *, current_user: SessionUser, student_id: int) -> None:
        student = self.get_student(student_id)
        if student.class_id is not None:
            self._classes.require_manage(current_user, student.class_id)
        elif not current_user.is_admin:
            raise AuthorizationError("Admin access required")

        self._students.delete_by_id(student_id)
        logger.info("Removed student %s (%s)", student_id, student.name)

    def link_parent(
        self,
        *,
        current_role: Role,
        parent_user_id: int,
        student_id: int,
        phone_number: Optional[str] = None,
        secondary_phone_number: Optional[str] = None,
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        parent = self._users.get_by_id(parent_user_id)
        if not parent or parent.role != Role.PARENT:
            raise ValidationError("Selected user is not a parent")
        self.get_student(student_id)
        if any(l.student_id == student_id for l in self._links.list_for_parent(parent_user_id)):
            raise ValidationError("Student is already linked to this parent")

        return self._links.create_link(
            parent_user_id=parent_user_id,
            student_id=student_id,
            phone_number=_phone_or_none(phone_number),
            secondary_phone_number=_phone_or_none(secondary_phone_number),
        )

    def unlink_parent(self, *, current_role: Role, parent_user_id: int, student_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        if not self._links.delete_link(parent_user_id=parent_user_id, student_id=student_id):
            raise NotFoundError("Link not found")

    def children_of(self, parent_user_id: int) -> list[Student]:
        children = []
        for link in self._links.list_for_parent(parent_user_id):
            if link.student_id is None:
                continue
            student = self._students.get_by_id(link.student_id)
            if student:
                children.append(student)
        return children

    def can_view(self, user: SessionUser, student_id: int) -> bool:
        student = self._students.get_by_id(student_id)
        if not student:
            return False
        if user.role == Role.PARENT:
            return any(l.student_id == student_id for l in self._links.list_for_parent(user.user_id))
        if user.role == Role.STUDENT:
            return bool(student.email) and student.email.lower() == user.email.lower()
        if student.class_id is None:
            return user.is_admin
        return self._classes.can_manage(user, student.class_id)

    def require_view(self, user: SessionUser, student_id: int) -> None:
        if not self.can_view(user, student_id):
            raise AuthorizationError("You do not have access to this student")

    def resolve_recipients(self, student_id: int) -> list[str]:
        """Phone numbers that should receive messages about one student.

        Order: adult-student phone (by student id, else by email), then each
        parent link's primary and secondary phone. A link without phones falls
        back to the first phones found on any other link of the same parent.
        """
        student = self.get_student(student_id)
        phones: list[Optional[str]] = []

        adult = self._adults.get_by_student_id(student_id)
        if adult and adult.phone_number:
            phones.append(with_plus(adult.phone_number))
        elif student.email:
            for a in self._adults.list_by_emails([student.email]):
                if a.phone_number:
                    phones.append(with_plus(a.phone_number))
                    break

        for link in self._links.list_for_students([student_id]):
            phones.extend(self._link_phones(link))

        recipients = unique_phones(phones)
        logger.debug("Resolved %d recipients for student %s", len(recipients), student_id)
        return recipients

    def _link_phones(self, link: ParentLink) -> list[str]:
        if link.phone_number or link.secondary_phone_number:
            return [with_plus(p) for p in (link.phone_number, link.secondary_phone_number) if p]

        others = self._links.list_for_parent(link.parent_user_id)
        out = []
        primary = next((l.phone_number for l in others if l.phone_number), None)
        if primary:
            out.append(with_plus(primary))
        secondary = next((l.secondary_phone_number for l in others if l.secondary_phone_number), None)
        if secondary:
            out.append(with_plus(secondary))
        return out
