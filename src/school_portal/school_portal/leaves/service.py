from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_dates, now_local, require_iso_date
from ..common.validators import as_bool, optional_text, require_positive_int
from ..core.constants import DEFAULT_LEAVE_LIMIT, MAX_LEAVE_TYPE_LENGTH, MAX_PAGE_LIMIT, MAX_TEXT_LENGTH
from ..core.enums import AttendanceStatus, LeaveStatus, ReviewAction, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..schools.access import SchoolAccessService
from ..users.model import Identity
from .model import LeaveRequest
from .repository import LeaveRepository

logger = logging.getLogger(__name__)

# A single request may not block out more than one school year.
MAX_LEAVE_DAYS = 366


def parse_leave_status(value: Optional[str]) -> Optional[LeaveStatus]:
    v = (value or "").strip()
    if not v:
        return None
    for status in LeaveStatus:
        if status.value.lower() == v.lower():
            return status
    raise ValidationError("status must be Pending, Approved or Rejected")


class LeaveService:
    def __init__(
        self,
        leaves: LeaveRepository,
        attendance: AttendanceRepository,
        access: SchoolAccessService,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._leaves = leaves
        self._attendance = attendance
        self._access = access
        self._clock = clock or now_local

    def create_leave(self, identity: Identity, data: Mapping[str, Any]) -> LeaveRequest:
        if identity.role != Role.TEACHER:
            raise AuthorizationError("Only teachers can request leave")

        school_id = require_positive_int(data.get("school_id"), "school_id")
        start_date = require_iso_date(data.get("start_date"), "start_date")
        end_date = require_iso_date(data.get("end_date"), "end_date")
        if end_date < start_date:
            raise ValidationError("end_date must be on or after start_date")
        if (end_date - start_date).days + 1 > MAX_LEAVE_DAYS:
            raise ValidationError(f"Leave cannot exceed {MAX_LEAVE_DAYS} days")

        reason = optional_text(data.get("reason"), "reason", MAX_TEXT_LENGTH)
        if not reason:
            raise ValidationError("reason is required")

        self._access.require_access(identity, school_id)

        leave_id = self._leaves.create_leave(
            teacher_id=identity.user_id,
            school_id=school_id,
            start_date=start_date,
            end_date=end_date,
            leave_type=optional_text(data.get("leave_type"), "leave_type", MAX_LEAVE_TYPE_LENGTH),
            reason=reason,
            substitute_required=as_bool(data.get("substitute_required")),
            created_at=self._clock(),
        )
        leave = self._leaves.get_by_id(leave_id)
        if leave is None:
            raise NotFoundError("Leave request not found")
        return leave

    def list_mine(
        self,
        identity: Identity,
        *,
        status: Optional[LeaveStatus] = None,
        limit: int = DEFAULT_LEAVE_LIMIT,
    ) -> Sequence[LeaveRequest]:
        if identity.role != Role.TEACHER:
            raise AuthorizationError("Only teachers have leave requests")
        return self._leaves.list_leaves(teacher_id=identity.user_id, status=status, limit=min(int(limit), MAX_PAGE_LIMIT))

    def list_for_school(
        self,
        identity: Identity,
        *,
        school_id: Optional[int] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = DEFAULT_LEAVE_LIMIT,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        if identity.role not in {Role.ADMIN, Role.SCHOOL_ADMIN}:
            raise AuthorizationError("You do not have permission to view leave requests")
        if school_id is not None:
            self._access.require_access(identity, school_id)
            school_ids: Optional[Sequence[int]] = [int(school_id)]
        else:
            school_ids = self._access.accessible_school_ids(identity)
        return self._leaves.list_leaves(
            school_ids=school_ids,
            status=status,
            limit=min(int(limit), MAX_PAGE_LIMIT),
            offset=int(offset),
        )

    def decide(
        self,
        identity: Identity,
        leave_id: int,
        *,
        action: ReviewAction,
        notes: Optional[str] = None,
    ) -> LeaveRequest:
        """Approve or reject a pending leave.

        Approval writes a Leave-Approved attendance row for every date in the
        range, replacing whatever status those dates had.
        """
        if identity.role not in {Role.ADMIN, Role.SCHOOL_ADMIN}:
            raise AuthorizationError("You do not have permission to review leave requests")

        leave = self._leaves.get_by_id(int(leave_id))
        if not leave:
            raise NotFoundError("Leave request not found")
        if not self._access.can_access(identity, leave.school_id):
            # Do not reveal leaves of other schools.
            raise NotFoundError("Leave request not found")
        if leave.status != LeaveStatus.PENDING:
            raise ValidationError(f"Leave request is already {leave.status.value}")

        status = LeaveStatus.APPROVED if action == ReviewAction.APPROVE else LeaveStatus.REJECTED
        now = self._clock()
        if not self._leaves.decide(
            leave.leave_id,
            status=status,
            reviewer_id=identity.user_id,
            reviewed_at=now,
            notes=optional_text(notes, "notes", MAX_TEXT_LENGTH),
        ):
            raise ValidationError("Leave request was already reviewed")

        if status == LeaveStatus.APPROVED:
            remarks = f"Approved leave: {leave.leave_type or 'Leave'} - {leave.reason}"
            for day in iter_dates(leave.start_date, leave.end_date):
                self._attendance.upsert_status(
                    user_id=leave.teacher_id,
                    school_id=leave.school_id,
                    attendance_date=day,
                    status=AttendanceStatus.LEAVE_APPROVED,
                    class_id=None,
                    recorded_by=identity.user_id,
                    recorded_at=now,
                    remarks=remarks,
                    preserve_leave=False,
                )
            logger.info(
                "Leave %s approved by %s: %d day(s) marked Leave-Approved",
                leave.leave_id, identity.user_id, leave.days,
            )

        updated = self._leaves.get_by_id(leave.leave_id)
        if updated is None:
            raise NotFoundError("Leave request not found")
        return updated
