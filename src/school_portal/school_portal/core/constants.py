"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

# Indexed by date.weekday() (Monday == 0).
DAYS_OF_WEEK = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

IDENTITY_CACHE_TTL_SECONDS = 30
IDENTITY_CACHE_KEY_PREFIX = "identity:"

DEFAULT_REPORT_LIMIT = 50
DEFAULT_ATTENDANCE_LIMIT = 30
DEFAULT_LEAVE_LIMIT = 100
MAX_PAGE_LIMIT = 500

MAX_TEXT_LENGTH = 2000
MAX_STUDENT_ATTENDANCE_LENGTH = 1000
MAX_GRADE_LENGTH = 50
MAX_CLASS_NAME_LENGTH = 255
MAX_LEAVE_TYPE_LENGTH = 100

DEFAULT_ACADEMIC_YEAR = "2024-25"

AUTH_RATE_LIMIT = "5 per minute"
READ_RATE_LIMIT = "200 per minute"
WRITE_RATE_LIMIT = "50 per minute"

DEFAULT_NOTIFICATION_LIMIT = 50
DEFAULT_NOTIFICATION_TYPE = "general"
MAX_NOTIFICATION_TITLE_LENGTH = 255
MAX_NOTIFICATION_TYPE_LENGTH = 50
