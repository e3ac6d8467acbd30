from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from ..attendance.reconciliation import AttendanceReconciler, ReconciliationResult
from ..common.datetime_utils import normalize_time_string, now_local, require_iso_date
from ..common.validators import optional_positive_int, optional_text, require_positive_int
from ..core.constants import (
    DEFAULT_REPORT_LIMIT,
    MAX_CLASS_NAME_LENGTH,
    MAX_GRADE_LENGTH,
    MAX_PAGE_LIMIT,
    MAX_STUDENT_ATTENDANCE_LENGTH,
    MAX_TEXT_LENGTH,
)
from ..core.enums import ReportStatus, ReviewAction, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..schools.access import SchoolAccessService
from ..schools.service import ClassService
from ..users.model import Identity
from .model import DailyReport
from .repository import ReportRepository

logger = logging.getLogger(__name__)

_TEXT_LIMITS = (
    ("topics_covered", MAX_TEXT_LENGTH),
    ("homework_assigned", MAX_TEXT_LENGTH),
    ("student_attendance", MAX_STUDENT_ATTENDANCE_LENGTH),
    ("notes", MAX_TEXT_LENGTH),
)


class ReportCreateError(Exception):
    """The report row itself could not be stored."""

    hint = "Check database constraints and required fields"


def parse_review_action(value: Any) -> ReviewAction:
    try:
        return ReviewAction(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError("action must be 'approve' or 'reject'")


def parse_report_status(value: Optional[str]) -> Optional[ReportStatus]:
    v = (value or "").strip()
    if not v:
        return None
    for status in ReportStatus:
        if status.value.lower() == v.lower():
            return status
    raise ValidationError("status must be Submitted, Approved or Rejected")


class ReportService:
    """Use case: teacher daily reports and their review by school admins."""

    def __init__(
        self,
        reports: ReportRepository,
        classes: ClassService,
        access: SchoolAccessService,
        reconciler: AttendanceReconciler,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._reports = reports
        self._classes = classes
        self._access = access
        self._reconciler = reconciler
        self._clock = clock or now_local

    @staticmethod
    def _require_teacher(identity: Identity) -> None:
        if identity.role != Role.TEACHER:
            raise AuthorizationError("Only teachers can submit reports")

    @staticmethod
    def _clean_fields(data: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
        """Validate a create (``partial=False``) or update payload."""
        fields: Dict[str, Any] = {}

        if not partial or "school_id" in data:
            fields["school_id"] = require_positive_int(data.get("school_id"), "school_id")
        if not partial or "date" in data:
            fields["report_date"] = require_iso_date(data.get("date"), "date")
        if "class_id" in data:
            fields["class_id"] = optional_positive_int(data.get("class_id"), "class_id")
        if "grade" in data:
            fields["grade"] = optional_text(data.get("grade"), "grade", MAX_GRADE_LENGTH)
        if not partial and not fields.get("class_id") and not fields.get("grade"):
            raise ValidationError("grade or class_id is required")

        for key in ("start_time", "end_time"):
            if key in data:
                fields[key] = normalize_time_string(data.get(key), key)
        for key, max_len in _TEXT_LIMITS:
            if key in data:
                fields[key] = optional_text(data.get(key), key, max_len)
        return fields

    def create_report(self, identity: Identity, data: Mapping[str, Any]) -> Tuple[DailyReport, ReconciliationResult]:
        self._require_teacher(identity)
        fields = self._clean_fields(data, partial=False)
        self._access.require_access(identity, fields["school_id"])

        fields["class_id"] = self._classes.resolve_class_id(
            school_id=fields["school_id"],
            class_id=fields.get("class_id"),
            grade=fields.get("grade"),
            class_name=optional_text(data.get("class_name"), "class_name", MAX_CLASS_NAME_LENGTH),
        )

        try:
            report_id = self._reports.create_report(
                teacher_id=identity.user_id,
                fields=fields,
                created_at=self._clock(),
            )
            report = self._reports.get_by_id(report_id)
        except Exception as exc:
            logger.exception("Failed to create report for teacher %s", identity.user_id)
            raise ReportCreateError(str(exc)) from exc
        if report is None:
            raise ReportCreateError(f"report {report_id} not found after insert")

        result = self._reconciler.reconcile(
            teacher_id=identity.user_id,
            school_id=report.school_id,
            report_date=report.report_date,
            class_id=report.class_id,
        )
        return report, result

    def update_report(
        self,
        identity: Identity,
        report_id: int,
        data: Mapping[str, Any],
    ) -> Tuple[DailyReport, ReconciliationResult]:
        self._require_teacher(identity)
        existing = self._reports.get_by_id(int(report_id))
        if not existing or existing.teacher_id != identity.user_id:
            raise NotFoundError("Report not found")

        fields = self._clean_fields(data, partial=True)
        if not fields:
            raise ValidationError("No changes provided")

        school_id = fields.get("school_id", existing.school_id)
        moved = school_id != existing.school_id
        if moved:
            self._access.require_access(identity, school_id)

        grade = fields["grade"] if "grade" in fields else existing.grade
        if fields.get("class_id") is not None:
            class_id = self._classes.resolve_class_id(school_id=school_id, class_id=fields["class_id"], grade=grade)
        elif grade and ("class_id" in fields or "grade" in fields or moved):
            class_id = self._classes.resolve_class_id(school_id=school_id, class_id=None, grade=grade)
        elif moved or "class_id" in fields:
            # The old class belongs to the old school, or was cleared explicitly.
            class_id = None
        else:
            class_id = existing.class_id
        if not grade and class_id is None:
            raise ValidationError("grade or class_id is required")
        fields["class_id"] = class_id

        self._reports.update_report(existing.report_id, fields=fields, updated_at=self._clock())
        report = self._reports.get_by_id(existing.report_id)
        if report is None:
            raise NotFoundError("Report not found")

        result = self._reconciler.reconcile(
            teacher_id=identity.user_id,
            school_id=report.school_id,
            report_date=report.report_date,
            class_id=report.class_id,
        )
        return report, result

    def list_for_teacher(
        self,
        identity: Identity,
        *,
        school_id: Optional[int] = None,
        status: Optional[ReportStatus] = None,
        report_date: Optional[date] = None,
        class_id: Optional[int] = None,
        limit: int = DEFAULT_REPORT_LIMIT,
        offset: int = 0,
    ) -> Sequence[DailyReport]:
        self._require_teacher(identity)
        if school_id is not None:
            self._access.require_access(identity, school_id)
        return self._reports.list_reports(
            teacher_id=identity.user_id,
            school_ids=[int(school_id)] if school_id is not None else None,
            status=status,
            report_date=report_date,
            class_id=class_id,
            limit=min(int(limit), MAX_PAGE_LIMIT),
            offset=int(offset),
        )

    def list_for_school(
        self,
        identity: Identity,
        *,
        school_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        status: Optional[ReportStatus] = None,
        report_date: Optional[date] = None,
        class_id: Optional[int] = None,
        limit: int = DEFAULT_REPORT_LIMIT,
        offset: int = 0,
    ) -> Sequence[DailyReport]:
        if identity.role not in {Role.ADMIN, Role.SCHOOL_ADMIN}:
            raise AuthorizationError("You do not have permission to view school reports")
        if school_id is not None:
            self._access.require_access(identity, school_id)
            school_ids: Optional[Sequence[int]] = [int(school_id)]
        else:
            school_ids = self._access.accessible_school_ids(identity)

        return self._reports.list_reports(
            teacher_id=teacher_id,
            school_ids=school_ids,
            status=status,
            report_date=report_date,
            class_id=class_id,
            limit=min(int(limit), MAX_PAGE_LIMIT),
            offset=int(offset),
        )

    def review(
        self,
        identity: Identity,
        report_id: int,
        *,
        action: ReviewAction,
        notes: Optional[str] = None,
    ) -> DailyReport:
        if identity.role not in {Role.ADMIN, Role.SCHOOL_ADMIN}:
            raise AuthorizationError("You do not have permission to review reports")

        report = self._reports.get_by_id(int(report_id))
        if not report:
            raise NotFoundError("Report not found")
        self._access.require_access(identity, report.school_id)

        notes = optional_text(notes, "notes", MAX_TEXT_LENGTH)
        new_notes = report.notes
        if action == ReviewAction.REJECT:
            status = ReportStatus.REJECTED
            if notes:
                new_notes = f"{report.notes or ''} [REJECTED: {notes}]".strip()
        else:
            status = ReportStatus.APPROVED

        self._reports.set_review(
            report.report_id,
            status=status,
            reviewer_id=identity.user_id,
            reviewed_at=self._clock(),
            notes=new_notes,
        )
        updated = self._reports.get_by_id(report.report_id)
        if updated is None:
            raise NotFoundError("Report not found")
        return updated
