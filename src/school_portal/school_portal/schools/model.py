from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class School:
    school_id: int
    name: str
    code: Optional[str]
    address: Optional[str]
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.school_id,
            "name": self.name,
            "code": self.code,
            "address": self.address,
            "is_active": self.is_active,
        }
