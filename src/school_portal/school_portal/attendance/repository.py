from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_day(self, *, user_id: int, school_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def upsert_status(
        self,
        *,
        user_id: int,
        school_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        class_id: Optional[int],
        recorded_by: Optional[int],
        recorded_at: datetime,
        remarks: Optional[str] = None,
        preserve_leave: bool = True,
    ) -> None:
        """Insert or update the single row for (user, school, date).

        With ``preserve_leave`` an existing Leave-Approved row is left untouched.
        """

        raise NotImplementedError

    def list_records(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        user_id: Optional[int] = None,
        school_ids: Optional[Sequence[int]] = None,
        limit: int = 30,
        offset: int = 0,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
