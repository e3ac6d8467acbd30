from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..users.model import Identity
from .repository import SchoolRepository


class SchoolAccessService:
    """Tenant scoping: which schools may a caller act on.

    - admin: every school
    - school_admin / student: their home school only
    - teacher: schools listed in teacher_schools
    """

    def __init__(self, schools: SchoolRepository):
        self._schools = schools

    def accessible_school_ids(self, identity: Identity) -> Optional[Sequence[int]]:
        """School ids the caller may access; ``None`` means unrestricted."""
        if identity.role == Role.ADMIN:
            return None
        if identity.role == Role.TEACHER:
            return list(self._schools.list_teacher_school_ids(identity.user_id))
        return [identity.school_id] if identity.school_id else []

    def can_access(self, identity: Identity, school_id: int) -> bool:
        allowed = self.accessible_school_ids(identity)
        return allowed is None or int(school_id) in allowed

    def require_access(self, identity: Identity, school_id: int) -> None:
        if not self.can_access(identity, school_id):
            raise AuthorizationError("You do not have access to this school")
