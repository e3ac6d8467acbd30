from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

# Column assignments run left to right in ON DUPLICATE KEY UPDATE, so status
# must be assigned last for the other columns to still see the old value.
_UPSERT_PRESERVING_LEAVE = """
    INSERT INTO teacher_attendance(
        user_id, school_id, attendance_date, status, class_id, recorded_by, recorded_at, remarks
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
    ON DUPLICATE KEY UPDATE
        class_id=IF(status='Leave-Approved', class_id, VALUES(class_id)),
        recorded_by=IF(status='Leave-Approved', recorded_by, VALUES(recorded_by)),
        recorded_at=IF(status='Leave-Approved', recorded_at, VALUES(recorded_at)),
        remarks=IF(status='Leave-Approved', remarks, COALESCE(VALUES(remarks), remarks)),
        status=IF(status='Leave-Approved', status, VALUES(status))
"""

_UPSERT_OVERWRITE = """
    INSERT INTO teacher_attendance(
        user_id, school_id, attendance_date, status, class_id, recorded_by, recorded_at, remarks
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
    ON DUPLICATE KEY UPDATE
        class_id=COALESCE(VALUES(class_id), class_id),
        recorded_by=VALUES(recorded_by),
        recorded_at=VALUES(recorded_at),
        remarks=VALUES(remarks),
        status=VALUES(status)
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        school_id=int(r["school_id"]),
        attendance_date=as_date(r["attendance_date"]),
        status=AttendanceStatus(r["status"]),
        class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
        recorded_by=int(r["recorded_by"]) if r.get("recorded_by") is not None else None,
        recorded_at=r.get("recorded_at"),
        remarks=r.get("remarks"),
        teacher_name=r.get("teacher_name"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_day(self, *, user_id: int, school_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, user_id, school_id, attendance_date, status,
                       class_id, recorded_by, recorded_at, remarks
                FROM teacher_attendance
                WHERE user_id=%s AND school_id=%s AND attendance_date=%s
                """,
                (int(user_id), int(school_id), attendance_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

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
        sql = _UPSERT_PRESERVING_LEAVE if preserve_leave else _UPSERT_OVERWRITE
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                sql,
                (
                    int(user_id),
                    int(school_id),
                    attendance_date,
                    status.value,
                    class_id,
                    recorded_by,
                    recorded_at,
                    remarks,
                ),
            )

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
        clauses = ["1=1"]
        params: list[object] = []

        if start_date is not None:
            clauses.append("ta.attendance_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("ta.attendance_date <= %s")
            params.append(end_date)
        if user_id is not None:
            clauses.append("ta.user_id=%s")
            params.append(int(user_id))
        if school_ids is not None:
            if not school_ids:
                return []
            clauses.append(f"ta.school_id IN ({', '.join(['%s'] * len(school_ids))})")
            params.extend(int(s) for s in school_ids)

        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ta.attendance_id, ta.user_id, ta.school_id, ta.attendance_date, ta.status,
                       ta.class_id, ta.recorded_by, ta.recorded_at, ta.remarks,
                       u.full_name AS teacher_name
                FROM teacher_attendance ta
                JOIN users u ON u.user_id = ta.user_id
                WHERE {' AND '.join(clauses)}
                ORDER BY ta.attendance_date DESC, u.full_name ASC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
