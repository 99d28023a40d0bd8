from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class HRStaff:
    """A row of the institutional HR directory (read-only for this app)."""

    staff_id: str
    first_name: str
    middle_name: Optional[str]
    surname: str
    email: Optional[str]
    department_code: Optional[str]
    line_manager_staff_id: Optional[str]

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.middle_name, self.surname) if p)

    def to_dict(self) -> dict:
        return {
            "staff_id": self.staff_id,
            "full_name": self.full_name,
            "email": self.email or "",
            "department": self.department_code or "",
            "line_manager_staff_id": self.line_manager_staff_id,
        }
