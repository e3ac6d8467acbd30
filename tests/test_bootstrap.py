from __future__ import annotations

from pathlib import Path

from src.school_portal.school_portal.database.bootstrap import _strip_database_statements, split_sql_statements

REPO_ROOT = Path(__file__).resolve().parents[1]


def test_split_ignores_semicolons_in_strings_and_comments():
    sql = """
    -- seed; not a statement
    INSERT INTO schools(name, code) VALUES ('North; High', 'NHS');
    INSERT INTO schools(name, code) VALUES ('It''s \\'fine\\'', "RSP");
    SELECT 1
    """

    statements = list(split_sql_statements(sql))

    assert len(statements) == 3
    assert "'North; High'" in statements[0]
    assert statements[2] == "SELECT 1"


def test_database_statements_are_stripped():
    sql = "CREATE DATABASE IF NOT EXISTS other;\nUSE other;\nCREATE TABLE t (id INT);\n"

    assert list(split_sql_statements(_strip_database_statements(sql))) == ["CREATE TABLE t (id INT)"]


def test_schema_declares_attendance_uniqueness():
    statements = list(split_sql_statements((REPO_ROOT / "database" / "schema.sql").read_text(encoding="utf-8")))

    attendance = [s for s in statements if "CREATE TABLE" in s and "teacher_attendance" in s]
    assert len(attendance) == 1
    assert "UNIQUE" in attendance[0]
