from __future__ import annotations

from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from ..core.constants import DEFAULT_ATTENDANCE_LIMIT, MAX_PAGE_LIMIT
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..schools.access import SchoolAccessService
from ..users.model import Identity
from .model import AttendanceRecord, AttendanceSummaryRow
from .repository import AttendanceRepository

CSV_FIELDS = ["date", "user_id", "teacher_name", "school_id", "class_id", "status", "recorded_at", "remarks"]

# Upper bound on rows pulled for a summary/export; one school-month fits easily.
_REPORT_ROW_CAP = 10000


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValidationError("end_date must be on or after start_date")


class AttendanceService:
    def __init__(self, attendance: AttendanceRepository, access: SchoolAccessService):
        self._attendance = attendance
        self._access = access

    def list_for_teacher(
        self,
        identity: Identity,
        *,
        school_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = DEFAULT_ATTENDANCE_LIMIT,
    ) -> Sequence[AttendanceRecord]:
        if identity.role != Role.TEACHER:
            raise AuthorizationError("Only teachers have personal attendance")
        _check_range(start_date, end_date)
        if school_id is not None:
            self._access.require_access(identity, school_id)

        return self._attendance.list_records(
            user_id=identity.user_id,
            school_ids=[int(school_id)] if school_id is not None else None,
            start_date=start_date,
            end_date=end_date,
            limit=min(int(limit), MAX_PAGE_LIMIT),
        )

    def _scope(self, identity: Identity, school_id: Optional[int]) -> Optional[Sequence[int]]:
        if identity.role not in {Role.ADMIN, Role.SCHOOL_ADMIN}:
            raise AuthorizationError("You do not have permission to view school attendance")
        if school_id is not None:
            self._access.require_access(identity, school_id)
            return [int(school_id)]
        return self._access.accessible_school_ids(identity)

    def list_for_school(
        self,
        identity: Identity,
        *,
        school_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = DEFAULT_ATTENDANCE_LIMIT,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        _check_range(start_date, end_date)
        return self._attendance.list_records(
            school_ids=self._scope(identity, school_id),
            user_id=teacher_id,
            start_date=start_date,
            end_date=end_date,
            limit=min(int(limit), MAX_PAGE_LIMIT),
            offset=int(offset),
        )

    def summary(
        self,
        identity: Identity,
        *,
        start_date: date,
        end_date: date,
        school_id: Optional[int] = None,
    ) -> List[AttendanceSummaryRow]:
        """Per-teacher counts by status with a present percentage."""
        _check_range(start_date, end_date)
        records = self._attendance.list_records(
            school_ids=self._scope(identity, school_id),
            start_date=start_date,
            end_date=end_date,
            limit=_REPORT_ROW_CAP,
        )

        counts: Dict[int, Dict[str, object]] = OrderedDict()
        for r in sorted(records, key=lambda rec: ((rec.teacher_name or "").lower(), rec.user_id)):
            c = counts.setdefault(
                r.user_id,
                {"name": r.teacher_name or str(r.user_id), "present": 0, "absent": 0, "leave": 0, "other": 0},
            )
            if r.status == AttendanceStatus.PRESENT:
                c["present"] += 1
            elif r.status == AttendanceStatus.ABSENT:
                c["absent"] += 1
            elif r.status == AttendanceStatus.LEAVE_APPROVED:
                c["leave"] += 1
            else:
                c["other"] += 1

        return [
            AttendanceSummaryRow(
                user_id=user_id,
                teacher_name=str(c["name"]),
                present=int(c["present"]),
                absent=int(c["absent"]),
                leave=int(c["leave"]),
                other=int(c["other"]),
            )
            for user_id, c in counts.items()
        ]

    def export_rows(
        self,
        identity: Identity,
        *,
        start_date: date,
        end_date: date,
        school_id: Optional[int] = None,
    ) -> List[dict]:
        _check_range(start_date, end_date)
        records = self._attendance.list_records(
            school_ids=self._scope(identity, school_id),
            start_date=start_date,
            end_date=end_date,
            limit=_REPORT_ROW_CAP,
        )
        return [
            {
                "date": r.attendance_date.isoformat(),
                "user_id": r.user_id,
                "teacher_name": r.teacher_name or "",
                "school_id": r.school_id,
                "class_id": r.class_id if r.class_id is not None else "",
                "status": r.status.value,
                "recorded_at": r.recorded_at.strftime("%Y-%m-%d %H:%M:%S") if r.recorded_at else "",
                "remarks": r.remarks or "",
            }
            for r in records
        ]


def default_range(today: date, *, days: int = 30) -> tuple[date, date]:
    return today - timedelta(days=days), today
