"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import TemplateType

MAX_ABSENCE_LEVEL = 3
MAX_FAILURE_LEVEL = 3

PAYMENT_REMINDER_COOLDOWN_DAYS = 7
NOTIFICATION_RETENTION_DAYS = 30
RECENT_PASS_MINUTES = 30

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_SESSION_DAYS = 7
MIN_PASSWORD_LENGTH = 6

# Placeholders: {{school_name}}, {{student_name}}, {{surah}}, {{verses}}, {{class_name}}
DEFAULT_TEMPLATES = {
    TemplateType.LESSON_PASS: (
        "{{school_name}}: {{student_name}} has passed their lesson today! Great work! "
        "Their new lesson is {{surah}}: {{verses}}."
    ),
    TemplateType.LESSON_FAIL: (
        "{{school_name}}: {{student_name}} needs more practice with their current lesson "
        "{{surah}}: {{verses}}. Please help them review at home."
    ),
    TemplateType.LESSON_ABSENT: (
        "{{school_name}}: {{student_name}} was marked absent today. "
        "Please inform their teacher if they will be missing class."
    ),
    TemplateType.HOMEWORK_ASSIGNED: (
        "{{school_name}}: New homework has been assigned for {{student_name}}. "
        "Please practice {{surah}}: {{verses}}."
    ),
    TemplateType.PAYMENT_FAILED: (
        "{{school_name}}: Your payment failed. Please update your card through the billing portal "
        "using your signup email."
    ),
}

FALLBACK_MESSAGE = "Notification from {{school_name}}"

# Generated login emails for students created from a registration
STUDENT_EMAIL_DOMAIN = "students.quranportal.local"
