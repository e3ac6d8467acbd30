from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .class_model import SchoolClass
from .class_repository import ClassRepository, DuplicateClassError

_CLASS_COLUMNS = "class_id, school_id, name, grade, academic_year"


def _row_to_class(row: dict) -> SchoolClass:
    return SchoolClass(
        class_id=int(row["class_id"]),
        school_id=int(row["school_id"]),
        name=row["name"],
        grade=row.get("grade"),
        academic_year=row.get("academic_year") or "",
    )


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CLASS_COLUMNS} FROM classes WHERE class_id=%s", (int(class_id),))
            row = fetchone(cur)
            return _row_to_class(row) if row else None

    def find_by_grade(self, *, school_id: int, grade: str) -> Optional[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_CLASS_COLUMNS} FROM classes
                WHERE school_id=%s AND grade=%s
                ORDER BY class_id ASC
                LIMIT 1
                """,
                (int(school_id), grade),
            )
            row = fetchone(cur)
            return _row_to_class(row) if row else None

    def create_class(self, *, school_id: int, name: str, grade: Optional[str], academic_year: str) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO classes(school_id, name, grade, academic_year) VALUES(%s,%s,%s,%s)",
                    (int(school_id), name, grade, academic_year),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                raise DuplicateClassError(name) from exc
            raise

    def list_for_school(self, school_id: int) -> Sequence[SchoolClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_CLASS_COLUMNS} FROM classes WHERE school_id=%s ORDER BY name ASC",
                (int(school_id),),
            )
            return [_row_to_class(r) for r in fetchall(cur)]
