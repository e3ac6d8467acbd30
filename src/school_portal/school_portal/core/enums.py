from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    SCHOOL_ADMIN = "school_admin"
    TEACHER = "teacher"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Teacher attendance status stored per (teacher, school, date)."""

    PRESENT = "Present"
    ABSENT = "Absent"
    PENDING = "Pending"
    LEAVE_APPROVED = "Leave-Approved"
    LEAVE_REJECTED = "Leave-Rejected"
    UNREPORTED = "Unreported"


class LeaveStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ReportStatus(str, Enum):
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class ReconciliationStatus(str, Enum):
    """Outcome of reconciling a teacher's reports against the day's schedule."""

    MARKED = "marked"
    PENDING = "pending"
    SKIPPED = "skipped"


class ReviewAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
