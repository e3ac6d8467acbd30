from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import normalize_time_string
from ..common.validators import optional_positive_int, optional_text, require_non_empty, require_positive_int
from ..core.constants import DAYS_OF_WEEK, MAX_GRADE_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..schools.access import SchoolAccessService
from ..schools.class_repository import ClassRepository
from ..schools.repository import SchoolRepository
from ..users.model import Identity
from .model import Period, ScheduledPeriod
from .repository import PeriodRepository, ScheduleRepository

_MANAGER_ROLES = frozenset({Role.ADMIN, Role.SCHOOL_ADMIN})


def normalize_day(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip()
    if not v:
        return None
    for day in DAYS_OF_WEEK:
        if day.lower() == v.lower():
            return day
    raise ValidationError("day_of_week must be a weekday name (Monday..Sunday)")


class ScheduleService:
    """Use case: weekly class schedules and school periods."""

    def __init__(
        self,
        schedules: ScheduleRepository,
        periods: PeriodRepository,
        schools: SchoolRepository,
        classes: ClassRepository,
        access: SchoolAccessService,
    ):
        self._schedules = schedules
        self._periods = periods
        self._schools = schools
        self._classes = classes
        self._access = access

    def _require_manager(self, identity: Identity, school_id: int) -> None:
        if identity.role not in _MANAGER_ROLES:
            raise AuthorizationError("You do not have permission to manage schedules")
        self._access.require_access(identity, school_id)

    def create_schedule(self, identity: Identity, data: Mapping[str, Any]) -> int:
        school_id = require_positive_int(data.get("school_id"), "school_id")
        self._require_manager(identity, school_id)

        teacher_id = require_positive_int(data.get("teacher_id"), "teacher_id")
        if school_id not in self._schools.list_teacher_school_ids(teacher_id):
            raise ValidationError("Teacher is not assigned to this school")

        day = normalize_day(data.get("day_of_week"))
        if not day:
            raise ValidationError("day_of_week is required")

        class_id = optional_positive_int(data.get("class_id"), "class_id")
        grade = optional_text(data.get("grade"), "grade", MAX_GRADE_LENGTH)
        if class_id is not None:
            cls = self._classes.get_by_id(class_id)
            if not cls or cls.school_id != school_id:
                raise ValidationError("class_id does not belong to this school")
            grade = grade or cls.grade
        if class_id is None and not grade:
            raise ValidationError("grade or class_id is required")

        period_id = optional_positive_int(data.get("period_id"), "period_id")
        start_time = normalize_time_string(data.get("start_time"), "start_time")
        end_time = normalize_time_string(data.get("end_time"), "end_time")
        if period_id is not None:
            period = self._periods.get_by_id(period_id)
            if not period or period.school_id != school_id:
                raise ValidationError("period_id does not belong to this school")
            start_time = start_time or period.start_time
            end_time = end_time or period.end_time
        if start_time and end_time and end_time <= start_time:
            raise ValidationError("end_time must be after start_time")

        return self._schedules.create_schedule(
            school_id=school_id,
            teacher_id=teacher_id,
            class_id=class_id,
            period_id=period_id,
            grade=grade,
            subject=require_non_empty(data.get("subject") or "", "subject"),
            day_of_week=day,
            start_time=start_time,
            end_time=end_time,
            room=optional_text(data.get("room"), "room", 100),
        )

    def list_for_school(
        self,
        identity: Identity,
        *,
        school_id: int,
        teacher_id: Optional[int] = None,
        day_of_week: Optional[str] = None,
        include_inactive: bool = False,
    ) -> Sequence[ScheduledPeriod]:
        self._require_manager(identity, school_id)
        return self._schedules.list_for_school(
            school_id=int(school_id),
            teacher_id=teacher_id,
            day_of_week=normalize_day(day_of_week),
            include_inactive=include_inactive,
        )

    def list_for_teacher(
        self,
        identity: Identity,
        *,
        school_id: int,
        day_of_week: Optional[str] = None,
    ) -> Sequence[ScheduledPeriod]:
        if identity.role != Role.TEACHER:
            raise AuthorizationError("Only teachers have a personal schedule")
        self._access.require_access(identity, school_id)
        return self._schedules.list_for_school(
            school_id=int(school_id),
            teacher_id=identity.user_id,
            day_of_week=normalize_day(day_of_week),
        )

    def deactivate(self, identity: Identity, schedule_id: int) -> None:
        schedule = self._schedules.get_by_id(int(schedule_id))
        if not schedule:
            raise NotFoundError("Schedule not found")
        self._require_manager(identity, schedule.school_id)
        if not self._schedules.set_active(schedule.schedule_id, False):
            raise ValidationError("Failed to deactivate schedule")

    def create_period(self, identity: Identity, data: Mapping[str, Any]) -> int:
        school_id = require_positive_int(data.get("school_id"), "school_id")
        self._require_manager(identity, school_id)

        period_number = require_positive_int(data.get("period_number"), "period_number")
        start_time = normalize_time_string(data.get("start_time"), "start_time")
        end_time = normalize_time_string(data.get("end_time"), "end_time")
        if not start_time or not end_time:
            raise ValidationError("start_time and end_time are required")
        if end_time <= start_time:
            raise ValidationError("end_time must be after start_time")

        return self._periods.create_period(
            school_id=school_id,
            period_number=period_number,
            start_time=start_time,
            end_time=end_time,
        )

    def list_periods(self, identity: Identity, *, school_id: int) -> Sequence[Period]:
        self._access.require_access(identity, school_id)
        return self._periods.list_for_school(int(school_id))
