from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import AssignmentStatus
from .model import AdultStudent, NotificationPreferences, ParentLink, Student


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def list_by_classes(self, class_ids: Sequence[int]) -> Sequence[Student]:
        raise NotImplementedError

    def list_by_emails(self, emails: Sequence[str]) -> Sequence[Student]:
        raise NotImplementedError

    def find_by_name_and_class(self, name: str, class_id: int) -> Optional[Student]:
        raise NotImplementedError

    def create_student(self, *, name: str, email: Optional[str], class_id: Optional[int]) -> int:
        raise NotImplementedError

    def update_class(self, student_id: int, class_id: Optional[int]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, student_id: int) -> bool:
        raise NotImplementedError

    def update_levels(
        self,
        student_id: int,
        *,
        absence_level: Optional[int] = None,
        consecutive_absences: Optional[int] = None,
        failure_level: Optional[int] = None,
        last_lesson_status: Optional[AssignmentStatus] = None,
    ) -> bool:
        raise NotImplementedError

    def reset_levels(self, *, class_id: Optional[int] = None) -> int:
        """Set absence_level=1, consecutive_absences=0, failure_level=1; all students when class_id is None."""
        raise NotImplementedError


class AdultStudentRepository(Protocol):
    def get_by_student_id(self, student_id: int) -> Optional[AdultStudent]:
        raise NotImplementedError

    def list_by_emails(self, emails: Sequence[str]) -> Sequence[AdultStudent]:
        raise NotImplementedError

    def list_all(self) -> Sequence[AdultStudent]:
        raise NotImplementedError

    def create_adult(
        self, *, student_id: Optional[int], email: str, phone_number: Optional[str], class_id: Optional[int]
    ) -> int:
        raise NotImplementedError

    def update_email(self, *, old_email: str, new_email: str) -> int:
        raise NotImplementedError


class ParentLinkRepository(Protocol):
    def list_for_students(self, student_ids: Sequence[int]) -> Sequence[ParentLink]:
        raise NotImplementedError

    def list_for_parent(self, parent_user_id: int) -> Sequence[ParentLink]:
        raise NotImplementedError

    def list_all(self) -> Sequence[ParentLink]:
        raise NotImplementedError

    def create_link(
        self,
        *,
        parent_user_id: int,
        student_id: Optional[int],
        phone_number: Optional[str] = None,
        secondary_phone_number: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def delete_link(self, *, parent_user_id: int, student_id: int) -> bool:
        raise NotImplementedError

    def delete_for_parent(self, parent_user_id: int) -> int:
        raise NotImplementedError

    def get_preferences(self, parent_user_id: int) -> Optional[NotificationPreferences]:
        raise NotImplementedError

    def upsert_preferences(self, prefs: NotificationPreferences) -> None:
        raise NotImplementedError
