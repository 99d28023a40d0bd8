from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a portal account.

    Plain data object; no DB access code lives here.
    """

    user_id: int
    uuid: str
    staff_id: str
    username: str
    email: str
    password_hash: str
    department: Optional[str]
    line_manager_id: Optional[int]
    is_active: bool = True
    roles: tuple[Role, ...] = field(default_factory=tuple)

    def has_role(self, role: Role) -> bool:
        return role in self.roles


@dataclass(frozen=True)
class DuplicateAccount:
    user_id: int
    username: str
    is_active: bool
    roles: tuple[str, ...]

    @property
    def status_label(self) -> str:
        return "Active" if self.is_active else "Inactive"

    @property
    def roles_label(self) -> str:
        return ", ".join(self.roles) if self.roles else "No roles assigned"
