from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: an account.

    ``school_id`` is the home school of school admins and students; teachers
    are linked to schools through ``teacher_schools`` instead.
    """

    user_id: int
    full_name: str
    username: str
    email: Optional[str]
    password_hash: str
    role: Role
    school_id: Optional[int]
    is_active: bool = True

    def to_public_dict(self) -> dict:
        return {
            "id": self.user_id,
            "full_name": self.full_name,
            "username": self.username,
            "email": self.email,
            "role": self.role.value,
            "school_id": self.school_id,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Identity:
    """Resolved caller of a request (what the guards put on ``flask.g``)."""

    user_id: int
    full_name: str
    role: Role
    school_id: Optional[int]
    csrf: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "full_name": self.full_name,
            "role": self.role.value,
            "school_id": self.school_id,
        }
