from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ScheduledPeriod:
    """A recurring weekly class slot taught by one teacher at one school."""

    schedule_id: int
    school_id: int
    teacher_id: int
    class_id: Optional[int]
    period_id: Optional[int]
    grade: Optional[str]
    subject: str
    day_of_week: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    room: Optional[str] = None
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.schedule_id,
            "school_id": self.school_id,
            "teacher_id": self.teacher_id,
            "class_id": self.class_id,
            "period_id": self.period_id,
            "grade": self.grade,
            "subject": self.subject,
            "day_of_week": self.day_of_week,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "room": self.room,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Period:
    period_id: int
    school_id: int
    period_number: int
    start_time: str
    end_time: str
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.period_id,
            "school_id": self.school_id,
            "period_number": self.period_number,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_active": self.is_active,
        }
