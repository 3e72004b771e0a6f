from __future__ import annotations

import logging
import re
import secrets
from typing import Mapping, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..classes.service import ClassService
from ..common.phone import with_plus
from ..common.validators import require_email, require_non_empty, require_positive_int
from ..core.constants import STUDENT_EMAIL_DOMAIN
from ..core.enums import RegistrationStatus, RegistrationType, Role
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError, ValidationError
from ..students.model import NotificationPreferences
from ..students.repository import AdultStudentRepository, ParentLinkRepository, StudentRepository
from ..users.repository import UserRepository
from .model import Registration, RegistrationStudent
from .repository import RegistrationRepository

logger = logging.getLogger(__name__)


def student_email(name: str, *, suffix: Optional[str] = None) -> str:
    """Login-style email for a registered student: `first.last[.suffix]@domain`."""
    local = re.sub(r"\s+", ".", name.strip().lower())
    if suffix:
        local = f"{local}.{suffix}"
    return f"{local}@{STUDENT_EMAIL_DOMAIN}"


class RegistrationService:
    """Public sign-up form intake and admin processing into accounts."""

    def __init__(
        self,
        registrations: RegistrationRepository,
        users: UserRepository,
        students: StudentRepository,
        adults: AdultStudentRepository,
        links: ParentLinkRepository,
        classes: ClassService,
    ):
        self._registrations = registrations
        self._users = users
        self._students = students
        self._adults = adults
        self._links = links
        self._classes = classes

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

    def submit_registration(
        self,
        *,
        email: str,
        parent_name: Optional[str],
        phone: str,
        registration_type: str,
        students: Sequence[Mapping],
    ) -> int:
        email = require_email(email)
        phone = require_non_empty(phone, "Phone")
        try:
            reg_type = RegistrationType(registration_type)
        except ValueError:
            raise ValidationError(f"Invalid registration type: {registration_type!r}")
        if not students:
            raise ValidationError("At least one student is required")

        rows = [
            (require_non_empty(s.get("name"), "Student name"), require_positive_int(s.get("age"), "Student age"))
            for s in students
        ]
        registration_id = self._registrations.create(
            email=email,
            parent_name=(parent_name or "").strip() or None,
            phone=phone,
            registration_type=reg_type,
            students=rows,
        )
        logger.info("Registration %s submitted by %s (%s students)", registration_id, email, len(rows))
        return registration_id

    def list_registrations(self, *, current_role: Role, status: Optional[RegistrationStatus] = None) -> list[Registration]:
        self._require_admin(current_role)
        return list(self._registrations.list_all(status=status))

    def get_registration(self, registration_id: int) -> Registration:
        registration = self._registrations.get_by_id(registration_id)
        if not registration:
            raise NotFoundError("Registration not found")
        return registration

    def reject_registration(self, *, current_role: Role, registration_id: int) -> None:
        self._require_admin(current_role)
        self.get_registration(registration_id)
        self._registrations.update_status(registration_id, RegistrationStatus.REJECTED)
        logger.info("Registration %s rejected", registration_id)

    def _find_or_create_parent(self, registration: Registration, phone: str, results: dict) -> int:
        existing = self._users.get_by_email(registration.email)
        if existing:
            return existing.user_id

        user_id = self._users.create_user(
            email=registration.email,
            full_name=registration.parent_name or registration.email,
            password_hash=generate_password_hash(secrets.token_urlsafe(12)),
            role=Role.PARENT,
            phone_number=phone,
        )
        self._links.upsert_preferences(NotificationPreferences(parent_user_id=user_id, phone_number=phone))
        results["created"].append({"type": "parent", "email": registration.email})
        return user_id

    def _link(self, parent_id: int, student_id: int, phone: str) -> None:
        if any(l.student_id == student_id for l in self._links.list_for_parent(parent_id)):
            return
        self._links.create_link(parent_user_id=parent_id, student_id=student_id, phone_number=phone)

    def _create_student(
        self, registration: Registration, student: RegistrationStudent, class_id: int, parent_id: int, phone: str
    ) -> dict:
        self._classes.get_class(class_id)

        if registration.registration_type == RegistrationType.ADULT:
            email = student_email(student.name, suffix=secrets.token_hex(3))
            student_id = self._students.create_student(name=student.name, email=email, class_id=class_id)
            self._adults.create_adult(student_id=student_id, email=email, phone_number=phone, class_id=class_id)
            self._link(parent_id, student_id, phone)
            return {"type": "adult_student", "name": student.name, "email": email, "classId": class_id}

        existing = self._students.find_by_name_and_class(student.name, class_id)
        if existing:
            self._link(parent_id, existing.student_id, phone)
            return {"type": "student_existing", "name": student.name, "classId": class_id}

        student_id = self._students.create_student(
            name=student.name, email=student_email(student.name), class_id=class_id
        )
        self._link(parent_id, student_id, phone)
        return {"type": "student", "name": student.name, "classId": class_id}

    def process_registration(
        self, *, current_role: Role, registration_id: int, class_assignments: Mapping
    ) -> dict:
        """Turn a registration into a parent account plus enrolled students.

        `class_assignments` maps registration-student ids to class ids; students
        without a class are left out. Per-student problems are reported in
        `errors` and do not stop the rest.
        """
        self._require_admin(current_role)
        registration = self.get_registration(registration_id)
        assignments = {
            require_positive_int(k, "classAssignments key"): require_positive_int(v, "class_id")
            for k, v in (class_assignments or {}).items()
            if v not in (None, "", 0)
        }

        results: dict = {"created": [], "errors": []}
        phone = with_plus(registration.phone)
        parent_id = self._find_or_create_parent(registration, phone, results)

        for student in registration.students:
            class_id = assignments.get(student.id)
            if not class_id:
                logger.warning("No class assigned for %s in registration %s", student.name, registration_id)
                continue
            try:
                results["created"].append(self._create_student(registration, student, class_id, parent_id, phone))
            except DomainError as e:
                logger.warning("Could not enroll %s: %s", student.name, e)
                results["errors"].append({"type": "student", "name": student.name, "error": str(e)})

        self._registrations.update_status(registration_id, RegistrationStatus.PROCESSED)
        logger.info(
            "Registration %s processed: %s created, %s errors",
            registration_id,
            len(results["created"]),
            len(results["errors"]),
        )
        return {
            "success": True,
            "message": f"Successfully processed registration. Created {len(results['created'])} accounts.",
            "results": results,
        }
