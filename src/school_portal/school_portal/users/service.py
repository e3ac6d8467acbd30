from __future__ import annotations

from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..schools.repository import SchoolRepository
from .model import User
from .repository import UserRepository


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> User:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder hashes like 'CHANGE_ME' in seeded rows
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")
        return user


class UserService:
    """Use case: manage accounts (admin and school admin)."""

    def __init__(self, users: UserRepository, schools: SchoolRepository):
        self._users = users
        self._schools = schools

    def create_account(
        self,
        *,
        current_role: Role,
        current_school_id: Optional[int],
        full_name: str,
        username: str,
        password: str,
        role: Role,
        email: Optional[str] = None,
        school_id: Optional[int] = None,
    ) -> int:
        if current_role not in {Role.ADMIN, Role.SCHOOL_ADMIN}:
            raise AuthorizationError("You do not have permission to create accounts")
        if role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be created here")
        if current_role == Role.SCHOOL_ADMIN:
            if role == Role.SCHOOL_ADMIN:
                raise AuthorizationError("School admins cannot create other school admins")
            # School admins always create accounts for their own school.
            school_id = current_school_id

        full_name = require_non_empty(full_name, "full_name")
        username = require_non_empty(username, "username")
        require_min_length(password, "password", 6)

        if role in {Role.SCHOOL_ADMIN, Role.STUDENT} and not school_id:
            raise ValidationError("school_id is required for this role")
        if school_id and not self._schools.get_by_id(int(school_id)):
            raise NotFoundError("School not found")

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")

        user_id = self._users.create_user(
            full_name=full_name,
            username=username,
            email=(email or "").strip() or None,
            password_hash=generate_password_hash(password),
            role=role,
            school_id=int(school_id) if school_id and role != Role.TEACHER else None,
        )

        # Teachers created for a school are assigned to it right away.
        if role == Role.TEACHER and school_id:
            self._schools.assign_teacher(teacher_id=user_id, school_id=int(school_id))
        return user_id

    def list_users(
        self,
        *,
        current_role: Role,
        current_school_id: Optional[int],
        role: Optional[Role] = None,
        school_id: Optional[int] = None,
    ) -> Sequence[User]:
        if current_role == Role.SCHOOL_ADMIN:
            school_id = current_school_id
        elif current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission to list accounts")
        return self._users.list_users(role=role, school_id=school_id)

    def deactivate(self, *, current_role: Role, user_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission to deactivate accounts")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deactivated")
        if not self._users.set_active(user.user_id, False):
            raise ValidationError("Failed to deactivate account")
