from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        email: Optional[str],
        password_hash: str,
        role: Role,
        school_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def list_users(self, *, role: Optional[Role] = None, school_id: Optional[int] = None) -> Sequence[User]:
        raise NotImplementedError

    def set_active(self, user_id: int, is_active: bool) -> bool:
        raise NotImplementedError
