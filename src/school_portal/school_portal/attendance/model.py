from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one teacher's attendance at one school on one date."""

    attendance_id: int
    user_id: int
    school_id: int
    attendance_date: date
    status: AttendanceStatus
    class_id: Optional[int] = None
    recorded_by: Optional[int] = None
    recorded_at: Optional[datetime] = None
    remarks: Optional[str] = None
    teacher_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "user_id": self.user_id,
            "teacher_name": self.teacher_name,
            "school_id": self.school_id,
            "class_id": self.class_id,
            "date": self.attendance_date.isoformat(),
            "status": self.status.value,
            "recorded_by": self.recorded_by,
            "recorded_at": self.recorded_at.isoformat(timespec="seconds") if self.recorded_at else None,
            "remarks": self.remarks,
        }


@dataclass(frozen=True)
class AttendanceSummaryRow:
    """Read-model: per-teacher status counts over a date range."""

    user_id: int
    teacher_name: str
    present: int = 0
    absent: int = 0
    leave: int = 0
    other: int = 0

    @property
    def total(self) -> int:
        return self.present + self.absent + self.leave + self.other

    @property
    def present_percentage(self) -> float:
        if not self.total:
            return 0.0
        return round(self.present * 100.0 / self.total, 1)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "teacher_name": self.teacher_name,
            "present": self.present,
            "absent": self.absent,
            "leave": self.leave,
            "other": self.other,
            "total": self.total,
            "present_percentage": self.present_percentage,
        }
