from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, format_mysql_time
from .model import Period, ScheduledPeriod
from .repository import PeriodRepository, ScheduleRepository

_SCHEDULE_COLUMNS = """
    schedule_id, school_id, teacher_id, class_id, period_id, grade, subject,
    day_of_week, start_time, end_time, room, is_active
"""


def _row_to_schedule(r: dict) -> ScheduledPeriod:
    return ScheduledPeriod(
        schedule_id=int(r["schedule_id"]),
        school_id=int(r["school_id"]),
        teacher_id=int(r["teacher_id"]),
        class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
        period_id=int(r["period_id"]) if r.get("period_id") is not None else None,
        grade=r.get("grade"),
        subject=r["subject"],
        day_of_week=r["day_of_week"],
        start_time=format_mysql_time(r.get("start_time")),
        end_time=format_mysql_time(r.get("end_time")),
        room=r.get("room"),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active_for_day(self, *, teacher_id: int, school_id: int, day_of_week: str) -> Sequence[ScheduledPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SCHEDULE_COLUMNS}
                FROM class_schedules
                WHERE teacher_id=%s AND school_id=%s AND day_of_week=%s AND is_active=1
                ORDER BY start_time ASC, schedule_id ASC
                """,
                (int(teacher_id), int(school_id), day_of_week),
            )
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def list_for_school(
        self,
        *,
        school_id: int,
        teacher_id: Optional[int] = None,
        day_of_week: Optional[str] = None,
        include_inactive: bool = False,
    ) -> Sequence[ScheduledPeriod]:
        clauses = ["school_id=%s"]
        params: list[object] = [int(school_id)]
        if teacher_id is not None:
            clauses.append("teacher_id=%s")
            params.append(int(teacher_id))
        if day_of_week:
            clauses.append("day_of_week=%s")
            params.append(day_of_week)
        if not include_inactive:
            clauses.append("is_active=1")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SCHEDULE_COLUMNS}
                FROM class_schedules
                WHERE {' AND '.join(clauses)}
                ORDER BY FIELD(day_of_week, 'Monday','Tuesday','Wednesday','Thursday','Friday','Saturday','Sunday'),
                         start_time ASC, schedule_id ASC
                """,
                tuple(params),
            )
            return [_row_to_schedule(r) for r in fetchall(cur)]

    def get_by_id(self, schedule_id: int) -> Optional[ScheduledPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SCHEDULE_COLUMNS} FROM class_schedules WHERE schedule_id=%s", (int(schedule_id),))
            row = fetchone(cur)
            return _row_to_schedule(row) if row else None

    def create_schedule(
        self,
        *,
        school_id: int,
        teacher_id: int,
        class_id: Optional[int],
        period_id: Optional[int],
        grade: Optional[str],
        subject: str,
        day_of_week: str,
        start_time: Optional[str],
        end_time: Optional[str],
        room: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO class_schedules(
                    school_id, teacher_id, class_id, period_id, grade, subject,
                    day_of_week, start_time, end_time, room, is_active
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    int(school_id),
                    int(teacher_id),
                    class_id,
                    period_id,
                    grade,
                    subject,
                    day_of_week,
                    start_time,
                    end_time,
                    room,
                ),
            )
            return int(cur.lastrowid)

    def set_active(self, schedule_id: int, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE class_schedules SET is_active=%s WHERE schedule_id=%s",
                (1 if is_active else 0, int(schedule_id)),
            )
            return cur.rowcount > 0


def _row_to_period(r: dict) -> Period:
    return Period(
        period_id=int(r["period_id"]),
        school_id=int(r["school_id"]),
        period_number=int(r["period_number"]),
        start_time=format_mysql_time(r["start_time"]) or "",
        end_time=format_mysql_time(r["end_time"]) or "",
        is_active=bool(r.get("is_active", True)),
    )


class MySQLPeriodRepository(PeriodRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, period_id: int) -> Optional[Period]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT period_id, school_id, period_number, start_time, end_time, is_active FROM periods WHERE period_id=%s",
                (int(period_id),),
            )
            row = fetchone(cur)
            return _row_to_period(row) if row else None

    def list_for_school(self, school_id: int) -> Sequence[Period]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_id, school_id, period_number, start_time, end_time, is_active
                FROM periods
                WHERE school_id=%s
                ORDER BY period_number ASC
                """,
                (int(school_id),),
            )
            return [_row_to_period(r) for r in fetchall(cur)]

    def create_period(self, *, school_id: int, period_number: int, start_time: str, end_time: str) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO periods(school_id, period_number, start_time, end_time, is_active) VALUES(%s,%s,%s,%s,1)",
                    (int(school_id), int(period_number), start_time, end_time),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise ValidationError(f"Period {period_number} already exists for this school") from exc
            raise
