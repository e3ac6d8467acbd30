from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Period, ScheduledPeriod


class ScheduleRepository(Protocol):
    def list_active_for_day(self, *, teacher_id: int, school_id: int, day_of_week: str) -> Sequence[ScheduledPeriod]:
        raise NotImplementedError

    def list_for_school(
        self,
        *,
        school_id: int,
        teacher_id: Optional[int] = None,
        day_of_week: Optional[str] = None,
        include_inactive: bool = False,
    ) -> Sequence[ScheduledPeriod]:
        raise NotImplementedError

    def get_by_id(self, schedule_id: int) -> Optional[ScheduledPeriod]:
        raise NotImplementedError

    def create_schedule(
        self,
        *,
        school_id: int,
        teacher_id: int,
        class_id: Optional[int],
        period_id: Optional[int],
        grade: Optional[str],
        subject: str,
        day_of_week: str,
        start_time: Optional[str],
        end_time: Optional[str],
        room: Optional[str],
    ) -> int:
        raise NotImplementedError

    def set_active(self, schedule_id: int, is_active: bool) -> bool:
        raise NotImplementedError


class PeriodRepository(Protocol):
    def get_by_id(self, period_id: int) -> Optional[Period]:
        raise NotImplementedError

    def list_for_school(self, school_id: int) -> Sequence[Period]:
        raise NotImplementedError

    def create_period(self, *, school_id: int, period_number: int, start_time: str, end_time: str) -> int:
        raise NotImplementedError
