from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Notification:
    """A message delivered to one user; a broadcast is stored as one row per recipient."""

    notification_id: int
    user_id: int
    school_id: int
    sender_id: Optional[int]
    title: str
    message: str
    notification_type: str
    is_read: bool = False
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    recipient_name: Optional[str] = None
    recipient_role: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "user_id": self.user_id,
            "recipient_name": self.recipient_name,
            "recipient_role": self.recipient_role,
            "school_id": self.school_id,
            "sender_id": self.sender_id,
            "title": self.title,
            "message": self.message,
            "type": self.notification_type,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(timespec="seconds") if self.created_at else None,
            "read_at": self.read_at.isoformat(timespec="seconds") if self.read_at else None,
        }
