from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import ReportStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone, format_mysql_time
from .model import EDITABLE_FIELDS, DailyReport
from .repository import ReportRepository

_REPORT_COLUMNS = """
    r.report_id, r.teacher_id, r.school_id, r.class_id, r.grade, r.report_date,
    r.start_time, r.end_time, r.topics_covered, r.homework_assigned, r.student_attendance,
    r.notes, r.report_status, r.approved_by, r.approved_at, r.created_at, r.updated_at,
    u.full_name AS teacher_name
"""


def _row_to_report(r: dict) -> DailyReport:
    return DailyReport(
        report_id=int(r["report_id"]),
        teacher_id=int(r["teacher_id"]),
        school_id=int(r["school_id"]),
        class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
        grade=r.get("grade"),
        report_date=as_date(r["report_date"]),
        start_time=format_mysql_time(r.get("start_time")),
        end_time=format_mysql_time(r.get("end_time")),
        topics_covered=r.get("topics_covered"),
        homework_assigned=r.get("homework_assigned"),
        student_attendance=r.get("student_attendance"),
        notes=r.get("notes"),
        report_status=ReportStatus(r.get("report_status") or ReportStatus.SUBMITTED.value),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        approved_at=r.get("approved_at"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        teacher_name=r.get("teacher_name"),
    )


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_report(self, *, teacher_id: int, fields: Mapping[str, Any], created_at: datetime) -> int:
        columns = [c for c in EDITABLE_FIELDS if c in fields]
        values = [fields[c] for c in columns]
        columns += ["teacher_id", "report_status", "created_at"]
        values += [int(teacher_id), ReportStatus.SUBMITTED.value, created_at]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO teacher_reports({', '.join(columns)}) VALUES({', '.join(['%s'] * len(columns))})",
                tuple(values),
            )
            return int(cur.lastrowid)

    def get_by_id(self, report_id: int) -> Optional[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REPORT_COLUMNS}
                FROM teacher_reports r
                JOIN users u ON u.user_id = r.teacher_id
                WHERE r.report_id=%s
                """,
                (int(report_id),),
            )
            row = fetchone(cur)
            return _row_to_report(row) if row else None

    def update_report(self, report_id: int, *, fields: Mapping[str, Any], updated_at: datetime) -> bool:
        columns = [c for c in EDITABLE_FIELDS if c in fields]
        assignments = [f"{c}=%s" for c in columns] + ["updated_at=%s"]
        params = [fields[c] for c in columns] + [updated_at, int(report_id)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE teacher_reports SET {', '.join(assignments)} WHERE report_id=%s",
                tuple(params),
            )
            return cur.rowcount > 0

    def list_for_day(self, *, teacher_id: int, school_id: int, report_date: date) -> Sequence[DailyReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REPORT_COLUMNS}
                FROM teacher_reports r
                JOIN users u ON u.user_id = r.teacher_id
                WHERE r.teacher_id=%s AND r.school_id=%s AND r.report_date=%s
                ORDER BY r.report_id ASC
                """,
                (int(teacher_id), int(school_id), report_date),
            )
            return [_row_to_report(r) for r in fetchall(cur)]

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
        clauses = ["1=1"]
        params: list[object] = []

        if teacher_id is not None:
            clauses.append("r.teacher_id=%s")
            params.append(int(teacher_id))
        if school_ids is not None:
            if not school_ids:
                return []
            clauses.append(f"r.school_id IN ({', '.join(['%s'] * len(school_ids))})")
            params.extend(int(s) for s in school_ids)
        if status is not None:
            clauses.append("r.report_status=%s")
            params.append(status.value)
        if report_date is not None:
            clauses.append("r.report_date=%s")
            params.append(report_date)
        if class_id is not None:
            clauses.append("r.class_id=%s")
            params.append(int(class_id))

        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REPORT_COLUMNS}
                FROM teacher_reports r
                JOIN users u ON u.user_id = r.teacher_id
                WHERE {' AND '.join(clauses)}
                ORDER BY r.report_date DESC, r.created_at DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_report(r) for r in fetchall(cur)]

    def set_review(
        self,
        report_id: int,
        *,
        status: ReportStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        notes: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE teacher_reports
                SET report_status=%s, approved_by=%s, approved_at=%s, notes=%s, updated_at=%s
                WHERE report_id=%s
                """,
                (status.value, int(reviewer_id), reviewed_at, notes, reviewed_at, int(report_id)),
            )
            return cur.rowcount > 0
