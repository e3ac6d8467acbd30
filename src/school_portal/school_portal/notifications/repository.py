from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
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
        """Insert one unread row per recipient; returns how many were stored."""

        raise NotImplementedError

    def get_by_id(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

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
        raise NotImplementedError

    def count_notifications(
        self,
        *,
        user_id: Optional[int] = None,
        sender_id: Optional[int] = None,
        school_ids: Optional[Sequence[int]] = None,
        is_read: Optional[bool] = None,
    ) -> int:
        raise NotImplementedError

    def set_read(self, notification_id: int, *, user_id: int, is_read: bool, read_at: Optional[datetime]) -> bool:
        raise NotImplementedError

    def mark_all_read(self, *, user_id: int, read_at: datetime) -> int:
        raise NotImplementedError
