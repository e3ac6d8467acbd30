from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .class_model import SchoolClass


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[SchoolClass]:
        raise NotImplementedError

    def find_by_grade(self, *, school_id: int, grade: str) -> Optional[SchoolClass]:
        raise NotImplementedError

    def create_class(self, *, school_id: int, name: str, grade: Optional[str], academic_year: str) -> int:
        """Insert a class; raises ``DuplicateClassError`` if the name is taken in the school."""

        raise NotImplementedError

    def list_for_school(self, school_id: int) -> Sequence[SchoolClass]:
        raise NotImplementedError


class DuplicateClassError(Exception):
    pass
