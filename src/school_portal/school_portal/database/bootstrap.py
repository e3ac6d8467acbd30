"""Schema/seed helpers used by ``scripts/`` and by ``create_app`` when
AUTO_INIT_DB / AUTO_SEED_DB are enabled."""

from __future__ import annotations

import logging
import re
from contextlib import closing
from pathlib import Path
from typing import Iterable, List

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

_CREATE_DB_RE = re.compile(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$")
_USE_DB_RE = re.compile(r"(?im)^\s*USE\b.*?;\s*$")


def _strip_database_statements(sql: str) -> str:
    # The target database comes from DB_CONFIG, never from the SQL file.
    return _USE_DB_RE.sub("", _CREATE_DB_RE.sub("", sql))


def split_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ``;`` outside of quoted strings and ``--`` comments."""
    buf: List[str] = []
    quote = ""
    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < n:
                buf.append(sql[i + 1])
                i += 2
                continue
            if ch == quote:
                quote = ""
        elif ch in ("'", '"', "`"):
            quote = ch
            buf.append(ch)
        elif ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end
            continue
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
        else:
            buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, sql: str) -> int:
    count = 0
    with closing(conn_factory.connect()) as conn:
        cur = conn.cursor()
        for stmt in split_sql_statements(_strip_database_statements(sql)):
            cur.execute(stmt)
            count += 1
        conn.commit()
    return count


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_mapping(db_config)
    with closing(DatabaseConnection(config).connect(with_database=False)) as conn:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = Path(schema_path).read_text(encoding="utf-8")
    count = _run_script(DatabaseConnection(DBConfig.from_mapping(db_config)), sql)
    logger.info("Applied %s (%d statements)", schema_path, count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    sql = Path(seed_path).read_text(encoding="utf-8")
    count = _run_script(DatabaseConnection(DBConfig.from_mapping(db_config)), sql)
    logger.info("Applied %s (%d statements)", seed_path, count)


DEMO_USERS = (
    # full_name, username, email, password, role, school code
    ("System Admin", "admin", "admin@example.org", "admin123", "admin", None),
    ("Grace School Admin", "schooladmin", "schooladmin@example.org", "school123", "school_admin", "NHS"),
    ("Tom Teacher", "teacher", "teacher@example.org", "teacher123", "teacher", None),
)


def ensure_demo_users(db_config: dict) -> None:
    """Upsert demo accounts and assign the demo teacher to every seeded school."""
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    with closing(conn_factory.connect()) as conn:
        cur = conn.cursor(dictionary=True)

        def school_id_for(code: str | None):
            if code is None:
                return None
            cur.execute("SELECT school_id FROM schools WHERE code=%s", (code,))
            row = cur.fetchone()
            if not row:
                raise RuntimeError(f"Missing seeded school with code={code}")
            return int(row["school_id"])

        for full_name, username, email, password, role, school_code in DEMO_USERS:
            cur.execute(
                """
                INSERT INTO users (full_name, username, email, password_hash, role, school_id, is_active)
                VALUES (%s, %s, %s, %s, %s, %s, 1)
                ON DUPLICATE KEY UPDATE
                    full_name=VALUES(full_name), email=VALUES(email), password_hash=VALUES(password_hash),
                    role=VALUES(role), school_id=VALUES(school_id), is_active=1
                """,
                (full_name, username, email, generate_password_hash(password), role, school_id_for(school_code)),
            )

        cur.execute(
            """
            INSERT IGNORE INTO teacher_schools (teacher_id, school_id)
            SELECT u.user_id, s.school_id
            FROM users u CROSS JOIN schools s
            WHERE u.username='teacher'
            """
        )
        conn.commit()


def list_tables(db_config: dict) -> list[str]:
    conn_factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    with closing(conn_factory.connect()) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
