from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .billing.mysql_billing_repository import MySQLPaymentNotificationRepository, MySQLSubscriptionRepository
from .billing.service import BillingService
from .billing.stripe_client import StripeHttpClient
from .classes.mysql_class_repository import MySQLClassRepository
from .classes.service import ClassService
from .database.connection import DBConfig, DatabaseConnection
from .lessons.mysql_lesson_repository import MySQLAssignmentRepository, MySQLLessonRepository
from .lessons.service import LessonService
from .notifications.mysql_template_repository import MySQLTemplateRepository
from .notifications.service import NotificationService
from .notifications.sms_client import TwilioSmsClient
from .progress.mysql_progress_repository import MySQLProgressRepository
from .progress.service import ProgressService
from .quran.client import QuranApiClient
from .quran.service import QuranService
from .registrations.mysql_registration_repository import MySQLRegistrationRepository
from .registrations.service import RegistrationService
from .resets.mysql_reset_log_repository import MySQLResetLogRepository
from .resets.service import ResetService
from .students.mysql_parent_link_repository import MySQLParentLinkRepository
from .students.mysql_student_repository import MySQLAdultStudentRepository, MySQLStudentRepository
from .students.service import StudentService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    user_service: UserService
    class_service: ClassService
    student_service: StudentService
    notification_service: NotificationService
    progress_service: ProgressService
    lesson_service: LessonService
    attendance_service: AttendanceService
    reset_service: ResetService
    billing_service: BillingService
    registration_service: RegistrationService
    quran_service: QuranService


def build_container(*, db_config: dict, settings: ModuleType) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    timeout = float(getattr(settings, "HTTP_TIMEOUT_SECONDS", 15))
    school_name = getattr(settings, "SCHOOL_NAME", "Quran Academy")

    users_repo = MySQLUserRepository(conn)
    classes_repo = MySQLClassRepository(conn)
    students_repo = MySQLStudentRepository(conn)
    adults_repo = MySQLAdultStudentRepository(conn)
    links_repo = MySQLParentLinkRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    lessons_repo = MySQLLessonRepository(conn)
    assignments_repo = MySQLAssignmentRepository(conn)
    progress_repo = MySQLProgressRepository(conn)
    templates_repo = MySQLTemplateRepository(conn)
    reset_logs_repo = MySQLResetLogRepository(conn)
    subscriptions_repo = MySQLSubscriptionRepository(conn)
    payment_notifications_repo = MySQLPaymentNotificationRepository(conn)
    registrations_repo = MySQLRegistrationRepository(conn)

    sms = TwilioSmsClient(
        account_sid=getattr(settings, "TWILIO_ACCOUNT_SID", ""),
        auth_token=getattr(settings, "TWILIO_AUTH_TOKEN", ""),
        from_number=getattr(settings, "TWILIO_FROM_NUMBER", ""),
        timeout=timeout,
    )
    stripe = StripeHttpClient(secret_key=getattr(settings, "STRIPE_SECRET_KEY", ""), timeout=timeout)

    class_service = ClassService(classes_repo, users_repo)
    student_service = StudentService(students_repo, adults_repo, links_repo, users_repo, class_service)
    notification_service = NotificationService(
        templates_repo,
        student_service,
        students_repo,
        adults_repo,
        links_repo,
        class_service,
        assignments_repo,
        sms,
        school_name=school_name,
    )
    progress_service = ProgressService(progress_repo, students_repo, lessons_repo, assignments_repo, attendance_repo)
    lesson_service = LessonService(
        lessons_repo, assignments_repo, students_repo, student_service, progress_service, notification_service
    )
    attendance_service = AttendanceService(
        attendance_repo,
        students_repo,
        class_service,
        notification_service,
        progress_service,
        strategy_factory=AttendanceStrategyFactory(),
    )
    billing_service = BillingService(
        subscriptions_repo,
        payment_notifications_repo,
        users_repo,
        links_repo,
        templates_repo,
        stripe,
        sms,
        price_id=getattr(settings, "STRIPE_PRICE_ID", ""),
        webhook_secret=getattr(settings, "STRIPE_WEBHOOK_SECRET", ""),
        school_name=school_name,
        billing_portal_url=getattr(settings, "BILLING_PORTAL_URL", ""),
    )

    return Container(
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, students_repo, adults_repo, links_repo),
        class_service=class_service,
        student_service=student_service,
        notification_service=notification_service,
        progress_service=progress_service,
        lesson_service=lesson_service,
        attendance_service=attendance_service,
        reset_service=ResetService(students_repo, reset_logs_repo),
        billing_service=billing_service,
        registration_service=RegistrationService(
            registrations_repo, users_repo, students_repo, adults_repo, links_repo, class_service
        ),
        quran_service=QuranService(QuranApiClient(base_url=getattr(settings, "QURAN_API_BASE_URL"), timeout=timeout)),
    )
