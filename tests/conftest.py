from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.quran_portal.quran_portal.attendance.model import AttendanceRecord
from src.quran_portal.quran_portal.attendance.service import AttendanceService
from src.quran_portal.quran_portal.billing.model import PaymentFailureNotification, Subscription
from src.quran_portal.quran_portal.billing.service import BillingService
from src.quran_portal.quran_portal.classes.model import ClassLink, SchoolClass
from src.quran_portal.quran_portal.classes.service import ClassService
from src.quran_portal.quran_portal.container import Container
from src.quran_portal.quran_portal.core.enums import AssignmentStatus, RegistrationStatus, Role
from src.quran_portal.quran_portal.core.exceptions import ExternalServiceError
from src.quran_portal.quran_portal.lessons.model import Assignment, Lesson
from src.quran_portal.quran_portal.lessons.service import LessonService
from src.quran_portal.quran_portal.notifications.service import NotificationService
from src.quran_portal.quran_portal.progress.model import MonthlyProgress
from src.quran_portal.quran_portal.progress.service import ProgressService
from src.quran_portal.quran_portal.quran.service import QuranService
from src.quran_portal.quran_portal.registrations.model import Registration, RegistrationStudent
from src.quran_portal.quran_portal.registrations.service import RegistrationService
from src.quran_portal.quran_portal.resets.model import ResetLog
from src.quran_portal.quran_portal.resets.service import ResetService
from src.quran_portal.quran_portal.students.model import AdultStudent, ParentLink, Student
from src.quran_portal.quran_portal.students.service import StudentService
from src.quran_portal.quran_portal.users.model import User
from src.quran_portal.quran_portal.users.service import AuthService, SessionUser, UserService

SCHOOL = "Test Academy"


class FakeUsersRepo:
    def __init__(self):
        self._next_id = 1
        self.users: dict[int, User] = {}

    def add(self, email, role, *, full_name="Test User", password="secret123", phone_number=None) -> User:
        user_id = self.create_user(
            email=email,
            full_name=full_name,
            password_hash=generate_password_hash(password),
            role=role,
            phone_number=phone_number,
        )
        return self.users[user_id]

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self.users.values() if u.email.lower() == (email or "").lower()), None)

    def create_user(self, *, email, full_name, password_hash, role, phone_number=None):
        user_id = self._next_id
        self._next_id += 1
        self.users[user_id] = User(
            user_id=user_id,
            email=email,
            full_name=full_name,
            password_hash=password_hash,
            role=role,
            phone_number=phone_number,
        )
        return user_id

    def delete_by_id(self, user_id):
        return self.users.pop(int(user_id), None) is not None

    def _update(self, user_id, **changes):
        user = self.users.get(int(user_id))
        if not user:
            return False
        self.users[user.user_id] = replace(user, **changes)
        return True

    def update_email(self, user_id, email):
        return self._update(user_id, email=email)

    def update_phone(self, user_id, phone_number):
        return self._update(user_id, phone_number=phone_number)

    def update_password_hash(self, user_id, password_hash):
        return self._update(user_id, password_hash=password_hash)

    def list_by_role(self, role):
        return [u for u in self.users.values() if u.role == role]


class FakeClassesRepo:
    def __init__(self):
        self._next_id = 1
        self.classes: dict[int, SchoolClass] = {}
        self.teachers: dict[int, list[int]] = {}
        self.links: dict[int, ClassLink] = {}

    def get_by_id(self, class_id):
        return self.classes.get(int(class_id))

    def list_all(self):
        return sorted(self.classes.values(), key=lambda c: c.name)

    def list_for_teacher(self, user_id):
        return [c for c in self.list_all() if user_id in self.teachers.get(c.class_id, [])]

    def create_class(self, name):
        class_id = self._next_id
        self._next_id += 1
        self.classes[class_id] = SchoolClass(class_id=class_id, name=name)
        return class_id

    def rename(self, class_id, name):
        if class_id not in self.classes:
            return False
        self.classes[class_id] = SchoolClass(class_id=class_id, name=name)
        return True

    def delete_by_id(self, class_id):
        return self.classes.pop(class_id, None) is not None

    def assign_teacher(self, class_id, user_id):
        ids = self.teachers.setdefault(class_id, [])
        if user_id not in ids:
            ids.append(user_id)

    def remove_teacher(self, class_id, user_id):
        ids = self.teachers.get(class_id, [])
        if user_id not in ids:
            return False
        ids.remove(user_id)
        return True

    def list_teacher_ids(self, class_id):
        return list(self.teachers.get(class_id, []))

    def get_link_for(self, class_id):
        return next(
            (l for l in self.links.values() if class_id in (l.weekday_class_id, l.weekend_class_id)),
            None,
        )

    def create_link(self, *, weekday_class_id, weekend_class_id):
        link_id = len(self.links) + 1
        self.links[link_id] = ClassLink(link_id, weekday_class_id, weekend_class_id)
        return link_id

    def delete_link(self, link_id):
        return self.links.pop(link_id, None) is not None


class FakeStudentsRepo:
    def __init__(self):
        self._next_id = 1
        self.students: dict[int, Student] = {}

    def get_by_id(self, student_id):
        return self.students.get(int(student_id))

    def list_by_classes(self, class_ids):
        return [s for s in self.students.values() if s.class_id in class_ids]

    def list_by_emails(self, emails):
        wanted = {e.lower() for e in emails}
        return [s for s in self.students.values() if s.email and s.email.lower() in wanted]

    def find_by_name_and_class(self, name, class_id):
        return next(
            (s for s in self.students.values() if s.name.lower() == name.lower() and s.class_id == class_id),
            None,
        )

    def create_student(self, *, name, email, class_id):
        student_id = self._next_id
        self._next_id += 1
        self.students[student_id] = Student(student_id=student_id, name=name, email=email, class_id=class_id)
        return student_id

    def update_class(self, student_id, class_id):
        student = self.students.get(student_id)
        if not student:
            return False
        self.students[student_id] = replace(student, class_id=class_id)
        return True

    def delete_by_id(self, student_id):
        return self.students.pop(student_id, None) is not None

    def update_levels(
        self, student_id, *, absence_level=None, consecutive_absences=None, failure_level=None, last_lesson_status=None
    ):
        student = self.students.get(student_id)
        if not student:
            return False
        changes = {
            k: v
            for k, v in {
                "absence_level": absence_level,
                "consecutive_absences": consecutive_absences,
                "failure_level": failure_level,
                "last_lesson_status": last_lesson_status,
            }.items()
            if v is not None
        }
        self.students[student_id] = replace(student, **changes)
        return True

    def reset_levels(self, *, class_id=None):
        count = 0
        for s in list(self.students.values()):
            if class_id is None or s.class_id == class_id:
                self.students[s.student_id] = replace(s, absence_level=1, consecutive_absences=0, failure_level=1)
                count += 1
        return count


class FakeAdultsRepo:
    def __init__(self):
        self.adults: list[AdultStudent] = []

    def get_by_student_id(self, student_id):
        return next((a for a in self.adults if a.student_id == student_id), None)

    def list_by_emails(self, emails):
        wanted = {e.lower() for e in emails}
        return [a for a in self.adults if a.email.lower() in wanted]

    def list_all(self):
        return list(self.adults)

    def create_adult(self, *, student_id, email, phone_number, class_id):
        adult_id = len(self.adults) + 1
        self.adults.append(AdultStudent(adult_id, student_id, email, phone_number, class_id))
        return adult_id

    def update_email(self, *, old_email, new_email):
        count = 0
        for i, a in enumerate(self.adults):
            if a.email == old_email:
                self.adults[i] = replace(a, email=new_email)
                count += 1
        return count


class FakeLinksRepo:
    def __init__(self):
        self.links: list[ParentLink] = []
        self.preferences: dict = {}

    def list_for_students(self, student_ids):
        return [l for l in self.links if l.student_id in student_ids]

    def list_for_parent(self, parent_user_id):
        return [l for l in self.links if l.parent_user_id == parent_user_id]

    def list_all(self):
        return list(self.links)

    def create_link(self, *, parent_user_id, student_id, phone_number=None, secondary_phone_number=None):
        link_id = len(self.links) + 1
        self.links.append(ParentLink(link_id, parent_user_id, student_id, phone_number, secondary_phone_number))
        return link_id

    def delete_link(self, *, parent_user_id, student_id):
        before = len(self.links)
        self.links = [l for l in self.links if (l.parent_user_id, l.student_id) != (parent_user_id, student_id)]
        return len(self.links) < before

    def delete_for_parent(self, parent_user_id):
        before = len(self.links)
        self.links = [l for l in self.links if l.parent_user_id != parent_user_id]
        return before - len(self.links)

    def get_preferences(self, parent_user_id):
        return self.preferences.get(parent_user_id)

    def upsert_preferences(self, prefs):
        self.preferences[prefs.parent_user_id] = prefs


class FakeAttendanceRepo:
    def __init__(self):
        self.records: dict[tuple, AttendanceRecord] = {}

    def get_for_student_and_date(self, student_id, class_id, attendance_date):
        return self.records.get((student_id, class_id, attendance_date))

    def list_for_class_and_date(self, class_id, attendance_date):
        return [r for r in self.records.values() if r.class_id == class_id and r.attendance_date == attendance_date]

    def upsert(self, *, student_id, class_id, attendance_date, status, created_by, note=None):
        key = (student_id, class_id, attendance_date)
        existing = self.records.get(key)
        self.records[key] = AttendanceRecord(
            attendance_id=existing.attendance_id if existing else len(self.records) + 1,
            student_id=student_id,
            class_id=class_id,
            attendance_date=attendance_date,
            status=status,
            created_by=created_by,
            note=note,
        )

    def list_history(self, class_id, start_date, end_date):
        rows = [r for r in self.records.values() if r.class_id == class_id and start_date <= r.attendance_date <= end_date]
        return sorted(rows, key=lambda r: r.attendance_date, reverse=True)

    def count_absences(self, student_id, start_date, end_date):
        return sum(
            1
            for r in self.records.values()
            if r.student_id == student_id and r.status.value == "absent" and start_date <= r.attendance_date <= end_date
        )


class FakeLessonsRepo:
    def __init__(self):
        self.lessons: list[Lesson] = []

    def get_active(self, student_id):
        return next((l for l in self.lessons if l.student_id == student_id and l.is_active), None)

    def replace_active(self, *, student_id, surah, verses, lesson_type, sort_order=None):
        self.lessons = [replace(l, is_active=False) if l.student_id == student_id else l for l in self.lessons]
        lesson_id = len(self.lessons) + 1
        self.lessons.append(
            Lesson(lesson_id, student_id, surah, verses, lesson_type=lesson_type, sort_order=sort_order)
        )
        return lesson_id


class FakeAssignmentsRepo:
    def __init__(self):
        self.assignments: dict[int, Assignment] = {}

    def get_by_id(self, assignment_id):
        return self.assignments.get(assignment_id)

    def create_assignment(self, *, student_id, surah, verses, type, assigned_by, lesson_id=None, created_at=None):
        assignment_id = len(self.assignments) + 1
        self.assignments[assignment_id] = Assignment(
            assignment_id=assignment_id,
            student_id=student_id,
            surah=surah,
            verses=verses,
            type=type,
            status=AssignmentStatus.ASSIGNED,
            assigned_by=assigned_by,
            lesson_id=lesson_id,
            created_at=created_at or datetime(2025, 1, 1),
        )
        return assignment_id

    def update_status(self, assignment_id, status, *, updated_at):
        a = self.assignments.get(assignment_id)
        if not a:
            return False
        self.assignments[assignment_id] = replace(a, status=status, updated_at=updated_at)
        return True

    def list_for_student(self, student_id, *, limit=None):
        rows = sorted(
            (a for a in self.assignments.values() if a.student_id == student_id),
            key=lambda a: (a.created_at, a.assignment_id),
            reverse=True,
        )
        return rows[:limit] if limit else rows


class FakeTemplatesRepo:
    def __init__(self):
        self.class_templates: dict[tuple, str] = {}
        self.global_templates: dict = {}
        self.presets: list = []
        self.weekday_presets: list = []

    def get_class_template(self, class_id, type):
        return self.class_templates.get((class_id, type))

    def get_global_template(self, type):
        return self.global_templates.get(type)

    def list_class_templates(self, class_id):
        return {t.value: c for (cid, t), c in self.class_templates.items() if cid == class_id}

    def list_global_templates(self):
        return {t.value: c for t, c in self.global_templates.items()}

    def upsert_class_template(self, class_id, type, content):
        self.class_templates[(class_id, type)] = content

    def upsert_global_template(self, type, content):
        self.global_templates[type] = content

    def delete_class_template(self, class_id, type):
        return self.class_templates.pop((class_id, type), None) is not None

    def list_presets(self, type, *, level=None, is_adult=None):
        return [
            p
            for p in self.presets
            if p.type == type and (level is None or p.level == level) and (is_adult is None or p.is_adult == is_adult)
        ]

    def list_weekday_presets(self, class_id, type):
        return [p for p in self.weekday_presets if p.type == type and p.class_id == class_id]


class FakeProgressRepo:
    def __init__(self):
        self.rows: dict[tuple, MonthlyProgress] = {}
        self.feedback: dict[tuple, object] = {}

    def get(self, student_id, month):
        return self.rows.get((student_id, month))

    def list_for_students(self, student_ids, month):
        return [p for (sid, m), p in self.rows.items() if sid in student_ids and m == month]

    def increment(self, *, student_id, month, class_id, field, amount=1):
        row = self.rows.get((student_id, month)) or MonthlyProgress(student_id=student_id, month=month, class_id=class_id)
        self.rows[(student_id, month)] = replace(row, **{field: getattr(row, field) + amount})

    def get_feedback(self, student_id, month):
        return self.feedback.get((student_id, month))

    def upsert_feedback(self, feedback):
        self.feedback[(feedback.student_id, feedback.month)] = feedback


class FakeResetLogsRepo:
    def __init__(self):
        self.logs: list[ResetLog] = []

    def add(self, *, reset_date, status, details):
        log_id = len(self.logs) + 1
        self.logs.append(ResetLog(log_id, reset_date, status, details))
        return log_id

    def latest(self):
        return self.logs[-1] if self.logs else None


class FakeSubscriptionsRepo:
    def __init__(self):
        self.rows: dict[int, Subscription] = {}

    def get_by_user(self, user_id):
        return self.rows.get(user_id)

    def get_by_customer(self, stripe_customer_id):
        return next((s for s in self.rows.values() if s.stripe_customer_id == stripe_customer_id), None)

    def upsert(self, subscription):
        self.rows[subscription.user_id] = subscription

    def mark_canceled(self, user_id):
        sub = self.rows.get(user_id)
        if not sub:
            return 0
        self.rows[user_id] = replace(sub, is_active=False, subscription_status="canceled")
        return 1

    def list_active(self):
        return [s for s in self.rows.values() if s.is_active]


class FakePaymentNotificationsRepo:
    def __init__(self):
        self.rows: list[PaymentFailureNotification] = []

    def last_sent_since(self, stripe_customer_id, since):
        matches = [
            n for n in self.rows if n.stripe_customer_id == stripe_customer_id and n.notification_sent_at >= since
        ]
        return max(matches, key=lambda n: n.notification_sent_at) if matches else None

    def add(self, *, user_id, stripe_customer_id, payment_intent_id, invoice_id, phone_number, sent_at):
        notification_id = len(self.rows) + 1
        self.rows.append(
            PaymentFailureNotification(
                notification_id, user_id, stripe_customer_id, payment_intent_id, invoice_id, phone_number, sent_at
            )
        )
        return notification_id

    def delete_older_than(self, cutoff):
        before = len(self.rows)
        self.rows = [n for n in self.rows if n.notification_sent_at >= cutoff]
        return before - len(self.rows)


class FakeRegistrationsRepo:
    def __init__(self):
        self.rows: dict[int, Registration] = {}
        self._next_student_id = 1

    def get_by_id(self, registration_id):
        return self.rows.get(registration_id)

    def list_all(self, *, status=None):
        return [r for r in self.rows.values() if status is None or r.status == status]

    def create(self, *, email, parent_name, phone, registration_type, students):
        registration_id = len(self.rows) + 1
        kids = []
        for name, age in students:
            kids.append(RegistrationStudent(self._next_student_id, name, age))
            self._next_student_id += 1
        self.rows[registration_id] = Registration(
            registration_id=registration_id,
            email=email,
            parent_name=parent_name,
            phone=phone,
            registration_type=registration_type,
            students=tuple(kids),
        )
        return registration_id

    def update_status(self, registration_id, status: RegistrationStatus):
        reg = self.rows.get(registration_id)
        if not reg:
            return False
        self.rows[registration_id] = replace(reg, status=status)
        return True


class RecordingSms:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.failing: set[str] = set()

    def send(self, to, body):
        if to in self.failing:
            raise ExternalServiceError("Twilio error: unreachable", status_code=400)
        self.sent.append((to, body))
        return f"SM{len(self.sent)}"


class FakeStripe:
    def __init__(self):
        self.sessions: list[dict] = []
        self.customers: dict[str, dict] = {}
        self.subscriptions: dict[str, list[dict]] = {}
        self.expanded: list[str] = []

    def create_checkout_session(self, params):
        self.sessions.append(dict(params))
        return {"id": f"cs_{len(self.sessions)}", "url": f"https://checkout.stripe.test/{len(self.sessions)}"}

    def retrieve_customer(self, customer_id):
        customer = self.customers.get(customer_id)
        if customer is None:
            raise ExternalServiceError("Stripe error: No such customer", status_code=404)
        return customer

    def retrieve_subscription(self, subscription_id):
        for subs in self.subscriptions.values():
            for s in subs:
                if s["id"] == subscription_id:
                    return s
        raise ExternalServiceError("Stripe error: No such subscription", status_code=404)

    def list_subscriptions(self, status, *, expand_customer=False):
        subs = self.subscriptions.get(status, [])
        if not expand_customer:
            return list(subs)
        self.expanded.append(status)
        return [{**s, "customer": self.customers.get(s["customer"], {"id": s["customer"]})} for s in subs]


class FakeQuranClient:
    def __init__(self):
        self.chapters = [
            {"id": 1, "name_simple": "Al-Fatihah"},
            {"id": 2, "name_simple": "Al-Baqarah"},
            {"id": 112, "name_simple": "Al-Ikhlas"},
        ]
        self.pages = {"2:1": 2, "2:5": 2, "2:20": 4, "112:1": 604, "112:4": 604}

    def list_chapters(self):
        return list(self.chapters)

    def page_number(self, verse_key):
        return self.pages[verse_key]


@dataclass
class World:
    users: FakeUsersRepo
    classes: FakeClassesRepo
    students: FakeStudentsRepo
    adults: FakeAdultsRepo
    links: FakeLinksRepo
    attendance: FakeAttendanceRepo
    lessons: FakeLessonsRepo
    assignments: FakeAssignmentsRepo
    templates: FakeTemplatesRepo
    progress: FakeProgressRepo
    reset_logs: FakeResetLogsRepo
    subscriptions: FakeSubscriptionsRepo
    payment_notifications: FakePaymentNotificationsRepo
    registrations: FakeRegistrationsRepo
    sms: RecordingSms
    stripe: FakeStripe
    quran: FakeQuranClient
    container: Container

    def session_user(self, user: User) -> SessionUser:
        return SessionUser(user_id=user.user_id, email=user.email, full_name=user.full_name, role=user.role)

    def add_student(self, name: str, class_id: Optional[int], *, email: Optional[str] = None, **levels) -> Student:
        student_id = self.students.create_student(name=name, email=email, class_id=class_id)
        if levels:
            self.students.update_levels(student_id, **levels)
        return self.students.get_by_id(student_id)


@pytest.fixture
def world() -> World:
    users = FakeUsersRepo()
    classes = FakeClassesRepo()
    students = FakeStudentsRepo()
    adults = FakeAdultsRepo()
    links = FakeLinksRepo()
    attendance = FakeAttendanceRepo()
    lessons = FakeLessonsRepo()
    assignments = FakeAssignmentsRepo()
    templates = FakeTemplatesRepo()
    progress = FakeProgressRepo()
    reset_logs = FakeResetLogsRepo()
    subscriptions = FakeSubscriptionsRepo()
    payment_notifications = FakePaymentNotificationsRepo()
    registrations = FakeRegistrationsRepo()
    sms = RecordingSms()
    stripe = FakeStripe()
    quran = FakeQuranClient()

    class_service = ClassService(classes, users)
    student_service = StudentService(students, adults, links, users, class_service)
    notification_service = NotificationService(
        templates, student_service, students, adults, links, class_service, assignments, sms, school_name=SCHOOL
    )
    progress_service = ProgressService(progress, students, lessons, assignments, attendance)
    lesson_service = LessonService(lessons, assignments, students, student_service, progress_service, notification_service)

    container = Container(
        auth_service=AuthService(users),
        user_service=UserService(users, students, adults, links),
        class_service=class_service,
        student_service=student_service,
        notification_service=notification_service,
        progress_service=progress_service,
        lesson_service=lesson_service,
        attendance_service=AttendanceService(attendance, students, class_service, notification_service, progress_service),
        reset_service=ResetService(students, reset_logs),
        billing_service=BillingService(
            subscriptions,
            payment_notifications,
            users,
            links,
            templates,
            stripe,
            sms,
            price_id="price_test",
            webhook_secret="whsec_test",
            school_name=SCHOOL,
            billing_portal_url="https://billing.example.test",
        ),
        registration_service=RegistrationService(registrations, users, students, adults, links, class_service),
        quran_service=QuranService(quran),
    )
    return World(
        users=users,
        classes=classes,
        students=students,
        adults=adults,
        links=links,
        attendance=attendance,
        lessons=lessons,
        assignments=assignments,
        templates=templates,
        progress=progress,
        reset_logs=reset_logs,
        subscriptions=subscriptions,
        payment_notifications=payment_notifications,
        registrations=registrations,
        sms=sms,
        stripe=stripe,
        quran=quran,
        container=container,
    )


@pytest.fixture
def admin(world) -> User:
    return world.users.add("admin@school.test", Role.ADMIN, full_name="Head Admin")


@pytest.fixture
def teacher(world) -> User:
    return world.users.add("teacher@school.test", Role.TEACHER, full_name="Ustadh Omar")


@pytest.fixture
def app(world, monkeypatch):
    from src.quran_portal.quran_portal.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    flask_app = create_app(container=world.container)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    """Put a user into the test client session without going through /api/login."""

    def _login(user: User) -> None:
        with client.session_transaction() as sess:
            sess["user_id"] = user.user_id
            sess["email"] = user.email
            sess["name"] = user.full_name
            sess["role"] = user.role.value

    return _login
