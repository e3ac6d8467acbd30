from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: int
    teacher_id: int
    school_id: int
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    leave_type: Optional[str] = None
    substitute_required: bool = False
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    teacher_name: Optional[str] = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def to_dict(self) -> dict:
        return {
            "id": self.leave_id,
            "teacher_id": self.teacher_id,
            "teacher_name": self.teacher_name,
            "school_id": self.school_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days": self.days,
            "leave_type": self.leave_type,
            "reason": self.reason,
            "substitute_required": self.substitute_required,
            "status": self.status.value,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": self.reviewed_at.isoformat(timespec="seconds") if self.reviewed_at else None,
            "review_notes": self.review_notes,
            "created_at": self.created_at.isoformat(timespec="seconds") if self.created_at else None,
        }
