"""Mark a teacher present once the day's scheduled periods are reported.

``decide`` holds the whole rule and does no I/O; ``AttendanceReconciler``
gathers its inputs from the repositories and applies the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional, Set

from ..common.datetime_utils import day_name, now_local
from ..core.enums import AttendanceStatus, ReconciliationStatus
from ..reports.model import DailyReport
from ..reports.repository import ReportRepository
from ..schedules.model import ScheduledPeriod
from ..schedules.repository import ScheduleRepository
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconciliationResult:
    status: ReconciliationStatus
    reports_submitted: int = 0
    total_periods: int = 0
    covered_periods: int = 0

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "reportsSubmitted": self.reports_submitted,
            "totalPeriods": self.total_periods,
            "coveredPeriods": self.covered_periods,
        }


def scheduled_period_ids(schedules: Iterable[ScheduledPeriod]) -> Set[int]:
    """Distinct period ids of the day; rows without a period are not counted."""
    return {s.period_id for s in schedules if s.period_id is not None}


def covered_period_ids(schedules: Iterable[ScheduledPeriod], reports: Iterable[DailyReport]) -> Set[int]:
    """Period ids matched by at least one report, by grade or else by class."""
    slots = [s for s in schedules if s.period_id is not None]
    covered: Set[int] = set()
    for report in reports:
        for s in slots:
            if report.grade and s.grade and report.grade == s.grade:
                covered.add(s.period_id)
            elif report.class_id is not None and s.class_id is not None and report.class_id == s.class_id:
                covered.add(s.period_id)
    return covered


def should_mark_present(*, total_periods: int, covered_periods: int, submitted_count: int) -> bool:
    if total_periods > 0:
        # The report count fallback tolerates grade/class naming that does not line up with the schedule.
        return covered_periods >= total_periods or submitted_count >= total_periods
    return submitted_count > 0


def decide(
    *,
    total_periods: int,
    covered_periods: int,
    submitted_count: int,
    existing_status: Optional[AttendanceStatus],
) -> ReconciliationStatus:
    if not should_mark_present(
        total_periods=total_periods,
        covered_periods=covered_periods,
        submitted_count=submitted_count,
    ):
        return ReconciliationStatus.PENDING
    if existing_status == AttendanceStatus.LEAVE_APPROVED:
        return ReconciliationStatus.SKIPPED
    return ReconciliationStatus.MARKED


class AttendanceReconciler:
    """Recompute a teacher's attendance for one date after a report is saved.

    Fail-open: any error is logged and reported as ``skipped`` so that the
    report submission itself never fails because of attendance bookkeeping.
    Safe to re-run; an approved leave is never overwritten.
    """

    def __init__(
        self,
        schedules: ScheduleRepository,
        reports: ReportRepository,
        attendance: AttendanceRepository,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._schedules = schedules
        self._reports = reports
        self._attendance = attendance
        self._clock = clock or now_local

    def reconcile(
        self,
        *,
        teacher_id: int,
        school_id: int,
        report_date: date,
        class_id: Optional[int] = None,
    ) -> ReconciliationResult:
        submitted = total = covered = 0
        try:
            schedules = self._schedules.list_active_for_day(
                teacher_id=teacher_id,
                school_id=school_id,
                day_of_week=day_name(report_date),
            )
            reports = self._reports.list_for_day(
                teacher_id=teacher_id,
                school_id=school_id,
                report_date=report_date,
            )
            total = len(scheduled_period_ids(schedules))
            covered = len(covered_period_ids(schedules, reports))
            submitted = len(reports)

            if not should_mark_present(total_periods=total, covered_periods=covered, submitted_count=submitted):
                logger.info(
                    "Attendance pending for teacher %s on %s (%d/%d periods, %d reports)",
                    teacher_id, report_date, covered, total, submitted,
                )
                return ReconciliationResult(ReconciliationStatus.PENDING, submitted, total, covered)

            existing = self._attendance.get_for_day(
                user_id=teacher_id,
                school_id=school_id,
                attendance_date=report_date,
            )
            status = decide(
                total_periods=total,
                covered_periods=covered,
                submitted_count=submitted,
                existing_status=existing.status if existing else None,
            )
            if status == ReconciliationStatus.MARKED:
                self._attendance.upsert_status(
                    user_id=teacher_id,
                    school_id=school_id,
                    attendance_date=report_date,
                    status=AttendanceStatus.PRESENT,
                    class_id=class_id,
                    recorded_by=teacher_id,
                    recorded_at=self._clock(),
                )
                logger.info("Attendance marked Present for teacher %s on %s", teacher_id, report_date)
            else:
                logger.info("Attendance for teacher %s on %s left as %s", teacher_id, report_date, existing.status.value)
            return ReconciliationResult(status, submitted, total, covered)
        except Exception:
            logger.exception(
                "Attendance reconciliation failed for teacher %s at school %s on %s",
                teacher_id, school_id, report_date,
            )
            return ReconciliationResult(ReconciliationStatus.SKIPPED, submitted, total, covered)
