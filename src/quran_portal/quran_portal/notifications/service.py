from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..classes.service import ClassService
from ..common.formatting import class_context_label, clean_sms_verses, render_template
from ..common.phone import format_direct_phone, format_sms_phone, unique_phones
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_TEMPLATES, FALLBACK_MESSAGE
from ..core.enums import Role, TemplateType
from ..core.exceptions import AuthorizationError, ExternalServiceError, ValidationError
from ..lessons.repository import AssignmentRepository
from ..students.model import Student
from ..students.repository import AdultStudentRepository, ParentLinkRepository, StudentRepository
from ..students.service import StudentService
from .model import NotificationPreset, SendResult, WeekdayPreset
from .repository import TemplateRepository
from .sms_client import SmsClient

logger = logging.getLogger(__name__)


class NotificationService:
    """Builds parent/student SMS messages and sends them through the SMS client."""

    def __init__(
        self,
        templates: TemplateRepository,
        students: StudentService,
        student_repo: StudentRepository,
        adults: AdultStudentRepository,
        links: ParentLinkRepository,
        classes: ClassService,
        assignments: AssignmentRepository,
        sms: SmsClient,
        *,
        school_name: str,
    ):
        self._templates = templates
        self._students = students
        self._student_repo = student_repo
        self._adults = adults
        self._links = links
        self._classes = classes
        self._assignments = assignments
        self._sms = sms
        self._school_name = school_name

    # -- templates -----------------------------------------------------------------

    def choose_template(self, type: TemplateType, *, class_id: Optional[int] = None) -> str:
        """Class template, then global template, then the built-in default."""
        if class_id is not None:
            content = self._templates.get_class_template(class_id, type)
            if content:
                return content
        content = self._templates.get_global_template(type)
        if content:
            return content
        return DEFAULT_TEMPLATES.get(type, FALLBACK_MESSAGE)

    def _class_label(self, class_id: Optional[int]) -> str:
        if class_id is None:
            return class_context_label(None)
        klass = self._classes.get_class(class_id)
        return class_context_label(klass.name)

    def student_values(self, student: Student, *, surah: Optional[str] = None, verses: Optional[str] = None) -> dict:
        values: dict = {
            "school_name": self._school_name,
            "student_name": student.name,
            "class_name": self._class_label(student.class_id),
        }
        if surah:
            values["surah"] = surah
        if verses:
            values["verses"] = clean_sms_verses(verses)
        return values

    def absence_message(self, student: Student, *, level: int) -> str:
        """Level preset for an absence (adult wording for adult students), else the absent template."""
        is_adult = self._adults.get_by_student_id(student.student_id) is not None
        presets = self._templates.list_presets(TemplateType.LESSON_ABSENT, level=level, is_adult=is_adult)
        template = presets[0].content if presets else self.choose_template(
            TemplateType.LESSON_ABSENT, class_id=student.class_id
        )
        return render_template(template, self.student_values(student))

    # -- sending -----------------------------------------------------------------

    def _send_to_numbers(self, numbers: Iterable[str], body: str) -> SendResult:
        result = SendResult()
        sent_to: set[str] = set()
        logger.debug("SMS body: %s", body)

        for raw in numbers:
            result.total_recipients += 1
            phone = format_sms_phone(raw)
            if not phone:
                logger.warning("Skipping invalid phone number %s", raw)
                result.errors.append(f"Invalid phone number format: {raw}")
                continue
            if phone in sent_to:
                continue
            try:
                self._sms.send(phone, body)
            except ExternalServiceError as e:
                logger.error("SMS to %s failed: %s", phone, e)
                result.errors.append(f"{raw}: {e}")
                continue
            sent_to.add(phone)
            result.sent += 1

        return result

    def notify_student(
        self,
        *,
        student_id: int,
        template_type: Optional[TemplateType] = None,
        custom_message: Optional[str] = None,
        assignment_id: Optional[int] = None,
    ) -> dict:
        if not template_type and not custom_message and not assignment_id:
            raise ValidationError("Missing required parameters")

        student = self._students.get_student(student_id)
        recipients = self._students.resolve_recipients(student_id)
        if not recipients:
            logger.info("No recipients with phone numbers for student %s", student_id)
            return {"message": "No recipients with valid phone numbers found", "sent": 0}

        if custom_message:
            template = custom_message
        else:
            template = self.choose_template(template_type or TemplateType.LESSON_PASS, class_id=student.class_id)

        surah = verses = None
        if assignment_id:
            assignment = self._assignments.get_by_id(assignment_id)
            if assignment:
                surah, verses = assignment.surah, assignment.verses

        body = render_template(template, self.student_values(student, surah=surah, verses=verses))
        result = self._send_to_numbers(recipients, body)
        logger.info("Student %s notification: sent=%s errors=%s", student_id, result.sent, len(result.errors))
        return result.to_dict()

    def class_recipients(self, class_id: int) -> list[str]:
        """Phones for a class and its linked class, including siblings enrolled elsewhere under the same email."""
        class_ids = self._classes.linked_class_ids(class_id)
        students = self._student_repo.list_by_classes(class_ids)
        emails = sorted({s.email for s in students if s.email})

        student_ids = {s.student_id for s in students}
        student_ids.update(s.student_id for s in self._student_repo.list_by_emails(emails))

        parent_ids = {l.parent_user_id for l in self._links.list_for_students(sorted(student_ids))}
        phones: list[Optional[str]] = []
        parent_links = [l for pid in sorted(parent_ids) for l in self._links.list_for_parent(pid)]
        phones.extend(l.phone_number for l in parent_links if l.phone_number)
        phones.extend(l.secondary_phone_number for l in parent_links if l.phone_number)
        phones.extend(a.phone_number for a in self._adults.list_by_emails(emails))
        return unique_phones(phones)

    def broadcast_class(self, *, class_id: int, message: str) -> dict:
        message = require_non_empty(message, "Message")
        self._classes.get_class(class_id)

        recipients = self.class_recipients(class_id)
        if not recipients:
            return {"message": "No phone numbers found for students in this class", "sent": 0, "total_recipients": 0}

        result = self._send_to_numbers(recipients, message)
        logger.info("Class %s broadcast: sent=%s of %s", class_id, result.sent, len(recipients))
        return result.to_dict(include_total=True)

    def broadcast_global(self, *, current_role: Role, message: str) -> dict:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        message = require_non_empty(message, "Message")

        links = [l for l in self._links.list_all() if l.phone_number]
        phones: list[Optional[str]] = [l.phone_number for l in links]
        phones.extend(l.secondary_phone_number for l in links)
        phones.extend(a.phone_number for a in self._adults.list_all())
        recipients = unique_phones(phones)
        if not recipients:
            return {"message": "No phone numbers found in the system", "sent": 0, "total_recipients": 0}

        result = self._send_to_numbers(recipients, message)
        logger.info("Global broadcast: sent=%s of %s", result.sent, len(recipients))
        return result.to_dict(include_total=True)

    def send_direct(self, *, current_role: Role, phone_number: str, message: str) -> dict:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        if not phone_number or not message:
            raise ValidationError("Phone number and message are required")
        phone = format_direct_phone(phone_number)
        if not phone:
            raise ValidationError("Invalid phone number format")

        sid = self._sms.send(phone, message)
        return {"success": True, "message_sid": sid, "to": phone}

    # -- template management ----------------------------------------------------------

    def list_templates(self, *, class_id: Optional[int] = None) -> dict:
        global_templates = self._templates.list_global_templates()
        out = {
            t.value: global_templates.get(t.value) or DEFAULT_TEMPLATES.get(t, FALLBACK_MESSAGE)
            for t in TemplateType
        }
        if class_id is not None:
            out.update(self._templates.list_class_templates(class_id))
        return out

    def upsert_global_template(self, *, current_role: Role, type: TemplateType, content: str) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        self._templates.upsert_global_template(type, require_non_empty(content, "Template"))

    def upsert_class_template(self, *, class_id: int, type: TemplateType, content: str) -> None:
        self._classes.get_class(class_id)
        self._templates.upsert_class_template(class_id, type, require_non_empty(content, "Template"))

    def delete_class_template(self, *, class_id: int, type: TemplateType) -> bool:
        return self._templates.delete_class_template(class_id, type)

    def list_presets(
        self, type: TemplateType, *, level: Optional[int] = None, is_adult: Optional[bool] = None
    ) -> list[NotificationPreset]:
        return list(self._templates.list_presets(type, level=level, is_adult=is_adult))

    def weekday_presets(self, *, class_id: int, type: TemplateType) -> list[WeekdayPreset]:
        """Class-specific presets when the class has any, otherwise the shared ones."""
        presets = list(self._templates.list_weekday_presets(class_id, type))
        if presets:
            return presets
        return list(self._templates.list_weekday_presets(None, type))
