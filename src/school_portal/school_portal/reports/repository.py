from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import ReportStatus
from .model import DailyReport


class ReportRepository(Protocol):
    def create_report(self, *, teacher_id: int, fields: Mapping[str, Any], created_at: datetime) -> int:
        raise NotImplementedError

    def get_by_id(self, report_id: int) -> Optional[DailyReport]:
        raise NotImplementedError

    def update_report(self, report_id: int, *, fields: Mapping[str, Any], updated_at: datetime) -> bool:
        """Apply ``fields`` (a subset of EDITABLE_FIELDS)."""

        raise NotImplementedError

    def list_for_day(self, *, teacher_id: int, school_id: int, report_date: date) -> Sequence[DailyReport]:
        raise NotImplementedError

    def list_reports(
        self,
        *,
        teacher_id: Optional[int] = None,
        school_ids: Optional[Sequence[int]] = None,
        status: Optional[ReportStatus] = None,
        report_date: Optional[date] = None,
        class_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[DailyReport]:
        raise NotImplementedError

    def set_review(
        self,
        report_id: int,
        *,
        status: ReportStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        notes: Optional[str],
    ) -> bool:
        raise NotImplementedError
