from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ReportStatus

# Columns a teacher may change through the update endpoint.
EDITABLE_FIELDS = (
    "school_id",
    "class_id",
    "grade",
    "report_date",
    "start_time",
    "end_time",
    "topics_covered",
    "homework_assigned",
    "student_attendance",
    "notes",
)


@dataclass(frozen=True)
class DailyReport:
    """What a teacher taught in one class on one date."""

    report_id: int
    teacher_id: int
    school_id: int
    class_id: Optional[int]
    grade: Optional[str]
    report_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    topics_covered: Optional[str] = None
    homework_assigned: Optional[str] = None
    student_attendance: Optional[str] = None
    notes: Optional[str] = None
    report_status: ReportStatus = ReportStatus.SUBMITTED
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    teacher_name: Optional[str] = None

    def to_dict(self) -> dict:
        def _ts(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat(timespec="seconds") if value else None

        return {
            "id": self.report_id,
            "teacher_id": self.teacher_id,
            "teacher_name": self.teacher_name,
            "school_id": self.school_id,
            "class_id": self.class_id,
            "grade": self.grade,
            "date": self.report_date.isoformat(),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "topics_covered": self.topics_covered,
            "homework_assigned": self.homework_assigned,
            "student_attendance": self.student_attendance,
            "notes": self.notes,
            "report_status": self.report_status.value,
            "approved_by": self.approved_by,
            "approved_at": _ts(self.approved_at),
            "created_at": _ts(self.created_at),
            "updated_at": _ts(self.updated_at),
        }
