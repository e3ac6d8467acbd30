from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import School
from .repository import SchoolRepository


def _row_to_school(row: dict) -> School:
    return School(
        school_id=int(row["school_id"]),
        name=row["name"],
        code=row.get("code"),
        address=row.get("address"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLSchoolRepository(SchoolRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, school_id: int) -> Optional[School]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT school_id, name, code, address, is_active FROM schools WHERE school_id=%s",
                (int(school_id),),
            )
            row = fetchone(cur)
            return _row_to_school(row) if row else None

    def list_schools(self, *, school_ids: Optional[Sequence[int]] = None) -> Sequence[School]:
        sql = "SELECT school_id, name, code, address, is_active FROM schools"
        params: tuple = ()
        if school_ids is not None:
            if not school_ids:
                return []
            sql += f" WHERE school_id IN ({', '.join(['%s'] * len(school_ids))})"
            params = tuple(int(s) for s in school_ids)
        sql += " ORDER BY name ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_school(r) for r in fetchall(cur)]

    def create_school(self, *, name: str, code: Optional[str], address: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO schools(name, code, address, is_active) VALUES(%s,%s,%s,1)",
                (name, code, address),
            )
            return int(cur.lastrowid)

    def assign_teacher(self, *, teacher_id: int, school_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT IGNORE INTO teacher_schools(teacher_id, school_id) VALUES(%s,%s)",
                (int(teacher_id), int(school_id)),
            )

    def unassign_teacher(self, *, teacher_id: int, school_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM teacher_schools WHERE teacher_id=%s AND school_id=%s",
                (int(teacher_id), int(school_id)),
            )
            return cur.rowcount > 0

    def list_teacher_school_ids(self, teacher_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT school_id FROM teacher_schools WHERE teacher_id=%s ORDER BY school_id",
                (int(teacher_id),),
            )
            return [int(r["school_id"]) for r in fetchall(cur)]
