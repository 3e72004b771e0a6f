from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..classes.service import ClassService
from ..common.datetime_utils import month_bounds
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..notifications.service import NotificationService
from ..progress.service import ProgressService
from ..students.repository import StudentRepository
from ..users.service import SessionUser
from .factory import AttendanceStrategyFactory
from .model import RosterRow
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        classes: ClassService,
        notifications: NotificationService,
        progress: ProgressService,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._students = students
        self._classes = classes
        self._notifications = notifications
        self._progress = progress
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def mark(
        self,
        *,
        current_user: SessionUser,
        student_id: int,
        class_id: int,
        status: AttendanceStatus,
        note: Optional[str] = None,
        today: date,
        notify: bool = False,
    ) -> dict:
        self._classes.require_manage(current_user, class_id)
        student = self._students.get_by_id(student_id)
        if not student or student.class_id != class_id:
            raise ValidationError("Student is not in this class")

        existing = self._attendance.get_for_student_and_date(student_id, class_id, today)
        previous = existing.status if existing else None

        strategy = self._factory.for_mark(status=status, previous=previous)
        decision = strategy.decide(student=student)

        self._attendance.upsert(
            student_id=student_id,
            class_id=class_id,
            attendance_date=today,
            status=status,
            created_by=current_user.user_id,
            note=(note or "").strip() or None,
        )
        if (decision.absence_level, decision.consecutive_absences) != (
            student.absence_level,
            student.consecutive_absences,
        ):
            self._students.update_levels(
                student_id,
                absence_level=decision.absence_level,
                consecutive_absences=decision.consecutive_absences,
            )
        if status == AttendanceStatus.PRESENT and previous is None:
            self._progress.record_active_day(student_id=student_id, class_id=class_id, day=today)

        logger.info(
            "Attendance %s for student %s in class %s on %s (level=%s, streak=%s)",
            status.value,
            student_id,
            class_id,
            today.isoformat(),
            decision.absence_level,
            decision.consecutive_absences,
        )

        out: dict = {
            "student_id": student_id,
            "status": status.value,
            "absence_level": decision.absence_level,
            "consecutive_absences": decision.consecutive_absences,
        }
        if notify and decision.notify_level is not None:
            message = self._notifications.absence_message(student, level=decision.notify_level)
            out["notification"] = self._notifications.notify_student(student_id=student_id, custom_message=message)
        return out

    def class_roster(self, *, class_id: int, today: date) -> list[RosterRow]:
        self._classes.get_class(class_id)
        marked = {r.student_id: r.status for r in self._attendance.list_for_class_and_date(class_id, today)}
        return [
            RosterRow(
                student_id=s.student_id,
                name=s.name,
                absence_level=s.absence_level,
                consecutive_absences=s.consecutive_absences,
                attendance_status=marked.get(s.student_id),
            )
            for s in self._students.list_by_classes([class_id])
        ]

    def mark_unmarked_absent(self, *, current_user: SessionUser, class_id: int, today: date) -> dict:
        """Mark everyone without a record today absent and send each family the level message."""
        self._classes.require_manage(current_user, class_id)

        marked = 0
        notifications_sent = 0
        failed: list[str] = []
        for row in self.class_roster(class_id=class_id, today=today):
            if row.attendance_status is not None:
                continue
            result = self.mark(
                current_user=current_user,
                student_id=row.student_id,
                class_id=class_id,
                status=AttendanceStatus.ABSENT,
                today=today,
                notify=True,
            )
            marked += 1
            notification = result.get("notification") or {}
            if notification.get("sent"):
                notifications_sent += 1
            else:
                failed.append(row.name)

        logger.info(
            "Class %s: %s marked absent, %s notified, %s without message", class_id, marked, notifications_sent, len(failed)
        )
        return {"marked": marked, "notifications_sent": notifications_sent, "failed": failed}

    def history(self, *, class_id: int, start: date, end: date) -> list[dict]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        names = {s.student_id: s.name for s in self._students.list_by_classes([class_id])}
        return [
            {
                "student_id": r.student_id,
                "name": names.get(r.student_id, "-"),
                "date": r.attendance_date.strftime("%Y-%m-%d"),
                "status": r.status.value,
                "note": r.note or "",
            }
            for r in self._attendance.list_history(class_id, start, end)
        ]

    def monthly_absences(self, *, student_id: int, month: date) -> int:
        start, end = month_bounds(month)
        return self._attendance.count_absences(student_id, start, end)
