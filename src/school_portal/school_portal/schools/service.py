from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_ACADEMIC_YEAR, MAX_CLASS_NAME_LENGTH, MAX_GRADE_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import Identity
from ..users.repository import UserRepository
from .access import SchoolAccessService
from .class_model import SchoolClass
from .class_repository import ClassRepository, DuplicateClassError
from .model import School
from .repository import SchoolRepository

logger = logging.getLogger(__name__)


class SchoolService:
    """Use case: manage schools and teacher assignments (system admin)."""

    def __init__(self, schools: SchoolRepository, users: UserRepository, access: SchoolAccessService):
        self._schools = schools
        self._users = users
        self._access = access

    def create_school(self, *, current_role: Role, name: str, code: str = "", address: str = "") -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission to create schools")
        name = require_non_empty(name, "name")
        return self._schools.create_school(
            name=name,
            code=optional_text(code, "code", 50),
            address=optional_text(address, "address", 500),
        )

    def list_for(self, identity: Identity) -> Sequence[School]:
        return self._schools.list_schools(school_ids=self._access.accessible_school_ids(identity))

    def get(self, identity: Identity, school_id: int) -> School:
        self._access.require_access(identity, school_id)
        school = self._schools.get_by_id(int(school_id))
        if not school:
            raise NotFoundError("School not found")
        return school

    def assign_teacher(self, *, current_role: Role, teacher_id: int, school_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission to assign teachers")

        teacher = self._users.get_by_id(int(teacher_id))
        if not teacher or teacher.role != Role.TEACHER:
            raise NotFoundError("Teacher not found")
        if not self._schools.get_by_id(int(school_id)):
            raise NotFoundError("School not found")

        self._schools.assign_teacher(teacher_id=teacher.user_id, school_id=int(school_id))

    def unassign_teacher(self, *, current_role: Role, teacher_id: int, school_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission to assign teachers")
        if not self._schools.unassign_teacher(teacher_id=int(teacher_id), school_id=int(school_id)):
            raise NotFoundError("Assignment not found")

    def is_teacher_at(self, *, teacher_id: int, school_id: int) -> bool:
        return int(school_id) in self._schools.list_teacher_school_ids(int(teacher_id))


class ClassService:
    def __init__(self, classes: ClassRepository, *, academic_year: str = DEFAULT_ACADEMIC_YEAR):
        self._classes = classes
        self._academic_year = academic_year

    def list_for_school(self, school_id: int) -> Sequence[SchoolClass]:
        return self._classes.list_for_school(int(school_id))

    def create_class(self, *, school_id: int, name: str, grade: str = "", academic_year: str = "") -> int:
        name = require_non_empty(name, "name")
        if len(name) > MAX_CLASS_NAME_LENGTH:
            raise ValidationError(f"name must be at most {MAX_CLASS_NAME_LENGTH} characters")
        try:
            return self._classes.create_class(
                school_id=int(school_id),
                name=name,
                grade=optional_text(grade, "grade", MAX_GRADE_LENGTH),
                academic_year=(academic_year or "").strip() or self._academic_year,
            )
        except DuplicateClassError:
            raise ValidationError("A class with this name already exists in the school")

    def resolve_class_id(
        self,
        *,
        school_id: int,
        class_id: Optional[int],
        grade: Optional[str],
        class_name: Optional[str] = None,
    ) -> Optional[int]:
        """Class a report belongs to: explicit id, else found or created by grade."""
        if class_id is not None:
            existing = self._classes.get_by_id(int(class_id))
            if not existing or existing.school_id != int(school_id):
                raise ValidationError("class_id does not belong to this school")
            return existing.class_id

        if not grade:
            return None

        found = self._classes.find_by_grade(school_id=int(school_id), grade=grade)
        if found:
            return found.class_id

        name = class_name or f"Class - {grade}"
        try:
            new_id = self._classes.create_class(
                school_id=int(school_id),
                name=name,
                grade=grade,
                academic_year=self._academic_year,
            )
            logger.info("Created class %r (id=%s) for school %s", name, new_id, school_id)
            return new_id
        except DuplicateClassError:
            # Created concurrently (or a same-named class has another grade).
            found = self._classes.find_by_grade(school_id=int(school_id), grade=grade)
            if found:
                return found.class_id
            logger.warning("Class %r exists in school %s without grade %r", name, school_id, grade)
            return None
