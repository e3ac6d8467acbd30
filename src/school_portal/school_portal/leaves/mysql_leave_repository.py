from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRepository

_LEAVE_COLUMNS = """
    l.leave_id, l.teacher_id, l.school_id, l.start_date, l.end_date, l.leave_type, l.reason,
    l.substitute_required, l.status, l.reviewed_by, l.reviewed_at, l.review_notes, l.created_at,
    u.full_name AS teacher_name
"""


def _row_to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        teacher_id=int(r["teacher_id"]),
        school_id=int(r["school_id"]),
        start_date=as_date(r["start_date"]),
        end_date=as_date(r["end_date"]),
        reason=r["reason"],
        status=LeaveStatus(r["status"]),
        leave_type=r.get("leave_type"),
        substitute_required=bool(r.get("substitute_required")),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_at=r.get("reviewed_at"),
        review_notes=r.get("review_notes"),
        created_at=r.get("created_at"),
        teacher_name=r.get("teacher_name"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_requests(
                    teacher_id, school_id, start_date, end_date, leave_type, reason,
                    substitute_required, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(teacher_id),
                    int(school_id),
                    start_date,
                    end_date,
                    leave_type,
                    reason,
                    1 if substitute_required else 0,
                    LeaveStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}
                FROM leave_requests l
                JOIN users u ON u.user_id = l.teacher_id
                WHERE l.leave_id=%s
                """,
                (int(leave_id),),
            )
            r = fetchone(cur)
            return _row_to_leave(r) if r else None

    def list_leaves(
        self,
        *,
        teacher_id: Optional[int] = None,
        school_ids: Optional[Sequence[int]] = None,
        status: Optional[LeaveStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Sequence[LeaveRequest]:
        clauses = ["1=1"]
        params: list[object] = []
        if teacher_id is not None:
            clauses.append("l.teacher_id=%s")
            params.append(int(teacher_id))
        if school_ids is not None:
            if not school_ids:
                return []
            clauses.append(f"l.school_id IN ({', '.join(['%s'] * len(school_ids))})")
            params.extend(int(s) for s in school_ids)
        if status is not None:
            clauses.append("l.status=%s")
            params.append(status.value)
        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LEAVE_COLUMNS}
                FROM leave_requests l
                JOIN users u ON u.user_id = l.teacher_id
                WHERE {' AND '.join(clauses)}
                ORDER BY l.created_at DESC, l.leave_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_leave(r) for r in fetchall(cur)]

    def decide(
        self,
        leave_id: int,
        *,
        status: LeaveStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        notes: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_notes=%s
                WHERE leave_id=%s AND status=%s
                """,
                (status.value, int(reviewer_id), reviewed_at, notes, int(leave_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0
