from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import School


class SchoolRepository(Protocol):
    def get_by_id(self, school_id: int) -> Optional[School]:
        raise NotImplementedError

    def list_schools(self, *, school_ids: Optional[Sequence[int]] = None) -> Sequence[School]:
        """All schools, or only ``school_ids`` when given."""

        raise NotImplementedError

    def create_school(self, *, name: str, code: Optional[str], address: Optional[str]) -> int:
        raise NotImplementedError

    def assign_teacher(self, *, teacher_id: int, school_id: int) -> None:
        raise NotImplementedError

    def unassign_teacher(self, *, teacher_id: int, school_id: int) -> bool:
        raise NotImplementedError

    def list_teacher_school_ids(self, teacher_id: int) -> Sequence[int]:
        raise NotImplementedError
