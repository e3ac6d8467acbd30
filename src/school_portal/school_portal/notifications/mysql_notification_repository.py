from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence, Tuple

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository

_NOTIFICATION_COLUMNS = """
    n.notification_id, n.user_id, n.school_id, n.sender_id, n.title, n.message, n.notification_type,
    n.is_read, n.created_at, n.read_at, u.full_name AS recipient_name, u.role AS recipient_role
"""


def _row_to_notification(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        user_id=int(r["user_id"]),
        school_id=int(r["school_id"]),
        sender_id=int(r["sender_id"]) if r.get("sender_id") is not None else None,
        title=r["title"],
        message=r["message"],
        notification_type=r["notification_type"],
        is_read=bool(r.get("is_read")),
        created_at=r.get("created_at"),
        read_at=r.get("read_at"),
        recipient_name=r.get("recipient_name"),
        recipient_role=r.get("recipient_role"),
    )


def _where(
    *,
    user_id: Optional[int],
    sender_id: Optional[int],
    school_ids: Optional[Sequence[int]],
    is_read: Optional[bool],
) -> Tuple[str, list]:
    clauses = ["1=1"]
    params: list[object] = []
    if user_id is not None:
        clauses.append("n.user_id=%s")
        params.append(int(user_id))
    if sender_id is not None:
        clauses.append("n.sender_id=%s")
        params.append(int(sender_id))
    if school_ids is not None:
        clauses.append(f"n.school_id IN ({', '.join(['%s'] * len(school_ids))})")
        params.extend(int(s) for s in school_ids)
    if is_read is not None:
        clauses.append("n.is_read=%s")
        params.append(1 if is_read else 0)
    return " AND ".join(clauses), params


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_notifications(
        self,
        *,
        user_ids: Sequence[int],
        school_id: int,
        sender_id: Optional[int],
        title: str,
        message: str,
        notification_type: str,
        created_at: datetime,
    ) -> int:
        if not user_ids:
            return 0
        rows = [
            (int(uid), int(school_id), sender_id, title, message, notification_type, created_at)
            for uid in user_ids
        ]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO notifications(
                    user_id, school_id, sender_id, title, message, notification_type, is_read, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,0,%s)
                """,
                rows,
            )
            return len(rows)

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_NOTIFICATION_COLUMNS}
                FROM notifications n
                JOIN users u ON u.user_id = n.user_id
                WHERE n.notification_id=%s
                """,
                (int(notification_id),),
            )
            r = fetchone(cur)
            return _row_to_notification(r) if r else None

    def list_notifications(
        self,
        *,
        user_id: Optional[int] = None,
        sender_id: Optional[int] = None,
        school_ids: Optional[Sequence[int]] = None,
        is_read: Optional[bool] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[Notification]:
        if school_ids is not None and not school_ids:
            return []
        where, params = _where(user_id=user_id, sender_id=sender_id, school_ids=school_ids, is_read=is_read)
        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_NOTIFICATION_COLUMNS}
                FROM notifications n
                JOIN users u ON u.user_id = n.user_id
                WHERE {where}
                ORDER BY n.created_at DESC, n.notification_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params),
            )
            return [_row_to_notification(r) for r in fetchall(cur)]

    def count_notifications(
        self,
        *,
        user_id: Optional[int] = None,
        sender_id: Optional[int] = None,
        school_ids: Optional[Sequence[int]] = None,
        is_read: Optional[bool] = None,
    ) -> int:
        if school_ids is not None and not school_ids:
            return 0
        where, params = _where(user_id=user_id, sender_id=sender_id, school_ids=school_ids, is_read=is_read)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM notifications n WHERE {where}", tuple(params))
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def set_read(self, notification_id: int, *, user_id: int, is_read: bool, read_at: Optional[datetime]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE notifications
                SET is_read=%s, read_at=%s
                WHERE notification_id=%s AND user_id=%s
                """,
                (1 if is_read else 0, read_at, int(notification_id), int(user_id)),
            )
            return cur.rowcount > 0

    def mark_all_read(self, *, user_id: int, read_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1, read_at=%s WHERE user_id=%s AND is_read=0",
                (read_at, int(user_id)),
            )
            return int(cur.rowcount)
