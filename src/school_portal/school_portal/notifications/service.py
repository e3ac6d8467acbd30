from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from ..common.datetime_utils import now_local
from ..common.validators import optional_positive_int, optional_text
from ..core.constants import (
    DEFAULT_NOTIFICATION_LIMIT,
    DEFAULT_NOTIFICATION_TYPE,
    MAX_NOTIFICATION_TITLE_LENGTH,
    MAX_NOTIFICATION_TYPE_LENGTH,
    MAX_PAGE_LIMIT,
    MAX_TEXT_LENGTH,
)
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..schools.access import SchoolAccessService
from ..schools.repository import SchoolRepository
from ..users.model import Identity, User
from ..users.repository import UserRepository
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)

RECIPIENT_TYPES = ("role", "individual")

_SENDER_ROLES = {Role.ADMIN, Role.SCHOOL_ADMIN, Role.TEACHER}


def parse_read_filter(value: Optional[str]) -> Optional[bool]:
    """``all`` -> None, ``read`` -> True, ``unread`` -> False."""
    v = (value or "").strip().lower()
    if v in ("", "all"):
        return None
    if v == "read":
        return True
    if v == "unread":
        return False
    raise ValidationError("filter must be all, read or unread")


def _parse_role(value: Any) -> Role:
    try:
        return Role(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown role: {value}")


class NotificationService:
    """Use case: school notifications sent by staff and read by their recipients.

    School admins (and admins) may address any user of a school they manage;
    teachers may only address students of a school they are assigned to.
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        users: UserRepository,
        schools: SchoolRepository,
        access: SchoolAccessService,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._notifications = notifications
        self._users = users
        self._schools = schools
        self._access = access
        self._clock = clock or now_local

    def _belongs_to(self, user: User, school_id: int) -> bool:
        if not user.is_active:
            return False
        if user.role == Role.TEACHER:
            return school_id in self._schools.list_teacher_school_ids(user.user_id)
        return user.school_id == school_id

    def _target_school(self, identity: Identity, data: Mapping[str, Any]) -> int:
        school_id = optional_positive_int(data.get("school_id"), "school_id")
        if school_id is None:
            if identity.role != Role.SCHOOL_ADMIN or not identity.school_id:
                raise ValidationError("school_id is required")
            school_id = identity.school_id
        self._access.require_access(identity, school_id)
        return school_id

    def _resolve_recipients(
        self,
        identity: Identity,
        school_id: int,
        recipient_type: str,
        recipients: Sequence[Any],
    ) -> List[int]:
        if recipient_type == "role":
            roles = {_parse_role(r) for r in recipients}
            if identity.role == Role.TEACHER and roles != {Role.STUDENT}:
                raise AuthorizationError("Teachers can only send notifications to students")
            candidates: List[User] = []
            for role in sorted(roles, key=lambda r: r.value):
                candidates.extend(self._users.list_users(role=role))
        else:
            candidates = []
            for raw in recipients:
                user_id = optional_positive_int(raw, "recipients")
                user = self._users.get_by_id(user_id) if user_id is not None else None
                if user is not None:
                    candidates.append(user)
            if identity.role == Role.TEACHER:
                candidates = [u for u in candidates if u.role == Role.STUDENT]

        seen: set[int] = set()
        user_ids: List[int] = []
        for user in candidates:
            if user.user_id not in seen and self._belongs_to(user, school_id):
                seen.add(user.user_id)
                user_ids.append(user.user_id)
        return user_ids

    def send(self, identity: Identity, data: Mapping[str, Any]) -> Tuple[int, int]:
        """Deliver one notification to every matching recipient.

        Returns ``(sent, recipients)``.
        """
        if identity.role not in _SENDER_ROLES:
            raise AuthorizationError("You do not have permission to send notifications")

        title = optional_text(data.get("title"), "title", MAX_NOTIFICATION_TITLE_LENGTH)
        message = optional_text(data.get("message"), "message", MAX_TEXT_LENGTH)
        if not title or not message:
            raise ValidationError("Title and message are required")
        notification_type = (
            optional_text(data.get("type"), "type", MAX_NOTIFICATION_TYPE_LENGTH) or DEFAULT_NOTIFICATION_TYPE
        )

        recipient_type = str(data.get("recipientType") or data.get("recipient_type") or "").strip().lower()
        recipients = data.get("recipients")
        if recipient_type not in RECIPIENT_TYPES or not isinstance(recipients, list) or not recipients:
            raise ValidationError("Recipient type and recipients are required")

        school_id = self._target_school(identity, data)
        user_ids = self._resolve_recipients(identity, school_id, recipient_type, recipients)
        if not user_ids:
            raise ValidationError("No recipients found matching the criteria")

        sent = self._notifications.create_notifications(
            user_ids=user_ids,
            school_id=school_id,
            sender_id=identity.user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            created_at=self._clock(),
        )
        logger.info("User %s sent %r to %d recipient(s) at school %s", identity.user_id, title, sent, school_id)
        return sent, len(user_ids)

    def list_mine(
        self,
        identity: Identity,
        *,
        is_read: Optional[bool] = None,
        limit: int = DEFAULT_NOTIFICATION_LIMIT,
        offset: int = 0,
    ) -> Tuple[Sequence[Notification], int, int]:
        """Caller's own notifications, plus total matching and unread counts."""
        items = self._notifications.list_notifications(
            user_id=identity.user_id,
            is_read=is_read,
            limit=min(int(limit), MAX_PAGE_LIMIT),
            offset=int(offset),
        )
        total = self._notifications.count_notifications(user_id=identity.user_id, is_read=is_read)
        unread = self._notifications.count_notifications(user_id=identity.user_id, is_read=False)
        return items, total, unread

    def list_for_school(
        self,
        identity: Identity,
        *,
        school_id: Optional[int] = None,
        user_id: Optional[int] = None,
        limit: int = DEFAULT_NOTIFICATION_LIMIT,
        offset: int = 0,
    ) -> Tuple[Sequence[Notification], int]:
        """Notifications delivered within the caller's schools.

        Teachers only see what they sent themselves.
        """
        if identity.role not in _SENDER_ROLES:
            raise AuthorizationError("You do not have permission to view school notifications")
        if school_id is not None:
            self._access.require_access(identity, school_id)
            school_ids: Optional[Sequence[int]] = [int(school_id)]
        else:
            school_ids = self._access.accessible_school_ids(identity)
        sender_id = identity.user_id if identity.role == Role.TEACHER else None

        items = self._notifications.list_notifications(
            user_id=user_id,
            sender_id=sender_id,
            school_ids=school_ids,
            limit=min(int(limit), MAX_PAGE_LIMIT),
            offset=int(offset),
        )
        total = self._notifications.count_notifications(user_id=user_id, sender_id=sender_id, school_ids=school_ids)
        return items, total

    def set_read(self, identity: Identity, notification_id: int, *, is_read: bool = True) -> Notification:
        notification = self._notifications.get_by_id(int(notification_id))
        if not notification or notification.user_id != identity.user_id:
            raise NotFoundError("Notification not found")
        self._notifications.set_read(
            notification.notification_id,
            user_id=identity.user_id,
            is_read=is_read,
            read_at=self._clock() if is_read else None,
        )
        updated = self._notifications.get_by_id(notification.notification_id)
        if updated is None:
            raise NotFoundError("Notification not found")
        return updated

    def mark_all_read(self, identity: Identity) -> int:
        return self._notifications.mark_all_read(user_id=identity.user_id, read_at=self._clock())
