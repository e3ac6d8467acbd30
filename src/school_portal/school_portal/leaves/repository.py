from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def create_leave(
        self,
        *,
        teacher_id: int,
        school_id: int,
        start_date: date,
        end_date: date,
        leave_type: Optional[str],
        reason: str,
        substitute_required: bool,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_leaves(
        self,
        *,
        teacher_id: Optional[int] = None,
        school_ids: Optional[Sequence[int]] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError

    def decide(
        self,
        leave_id: int,
        *,
        status: LeaveStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        notes: Optional[str],
    ) -> bool:
        """Move a Pending leave to ``status``; False if it was no longer Pending."""

        raise NotImplementedError
