from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SchoolClass:
    """A class (grade group) within one school."""

    class_id: int
    school_id: int
    name: str
    grade: Optional[str]
    academic_year: str

    def to_dict(self) -> dict:
        return {
            "id": self.class_id,
            "school_id": self.school_id,
            "name": self.name,
            "grade": self.grade,
            "academic_year": self.academic_year,
        }
