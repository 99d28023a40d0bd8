from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.constants import HR_SEARCH_LIMIT, MIN_LOGIN_PASSWORD_LENGTH, MIN_NEW_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .hr_staff_model import HRStaff
from .hr_staff_repository import HRStaffRepository
from .repository import UserRepository


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login, and what services receive as the actor."""

    user_id: int
    username: str
    email: str
    department: Optional[str]
    roles: tuple[Role, ...] = field(default_factory=tuple)
    staff_id: Optional[str] = None

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    @property
    def is_admin(self) -> bool:
        return Role.ADMINISTRATOR in self.roles

    def to_session(self) -> dict:
        return {
            "user_id": self.user_id,
            "name": self.username,
            "email": self.email,
            "department": self.department,
            "roles": [r.value for r in self.roles],
            "staff_id": self.staff_id,
        }

    @classmethod
    def from_session(cls, data) -> "SessionUser":
        roles: list[Role] = []
        for name in data.get("roles") or []:
            try:
                roles.append(Role(name))
            except ValueError:
                continue
        return cls(
            user_id=int(data["user_id"]),
            username=data.get("name") or "",
            email=data.get("email") or "",
            department=data.get("department"),
            roles=tuple(roles),
            staff_id=data.get("staff_id"),
        )


def _require_admin(actor: SessionUser) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Only administrators can manage user accounts")


def _parse_roles(values: Iterable) -> tuple[Role, ...]:
    out: list[Role] = []
    for v in values or ():
        try:
            role = v if isinstance(v, Role) else Role(v)
        except ValueError:
            raise ValidationError(f"Unknown role: {v}")
        if role not in out:
            out.append(role)
    return tuple(out)


@dataclass(frozen=True)
class DuplicateCheck:
    exists: bool
    status: Optional[str] = None
    roles: Optional[str] = None
    username: Optional[str] = None

    def to_dict(self) -> dict:
        if not self.exists:
            return {"exists": False}
        return {"exists": True, "status": self.status, "roles": self.roles, "username": self.username}


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> SessionUser:
        try:
            email = require_email(email)
            require_min_length(password, "Password", MIN_LOGIN_PASSWORD_LENGTH)
        except ValidationError:
            raise AuthenticationError("Invalid email or password")

        user = self._users.get_by_email(email)
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password)
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionUser(
            user_id=user.user_id,
            username=user.username,
            email=user.email,
            department=user.department,
            roles=user.roles,
            staff_id=user.staff_id,
        )


class UserService:
    """Use case: manage accounts (admin) and self-service profile actions."""

    def __init__(self, users: UserRepository, hr_staff: HRStaffRepository):
        self._users = users
        self._hr_staff = hr_staff

    def _validate_line_manager(self, line_manager_id: Optional[int], *, user_id: Optional[int] = None) -> Optional[int]:
        if not line_manager_id:
            return None
        line_manager_id = int(line_manager_id)
        if user_id is not None and line_manager_id == int(user_id):
            raise ValidationError("A user cannot be their own line manager")
        if not self._users.get_by_id(line_manager_id):
            raise ValidationError("Selected line manager does not exist")
        return line_manager_id

    def create_account(
        self,
        *,
        actor: SessionUser,
        staff_id: str,
        username: str,
        email: str,
        password: str,
        department: str,
        roles: Sequence,
        line_manager_id: Optional[int] = None,
    ) -> int:
        _require_admin(actor)

        staff_id = require_non_empty(staff_id, "Staff ID")
        username = require_non_empty(username, "Name")
        email = require_email(email)
        department = require_non_empty(department, "Department")
        require_min_length(password, "Password", MIN_NEW_PASSWORD_LENGTH)
        parsed_roles = _parse_roles(roles)

        existing = self._users.find_duplicate(staff_id=staff_id, email=email)
        if existing:
            raise ValidationError(
                "This staff member already has an account. "
                f"Status: {existing.status_label}. Current roles: {existing.roles_label}. "
                "Use the Edit button on their existing profile to update their roles or status."
            )

        return self._users.create_user(
            uuid=str(uuid.uuid4()),
            staff_id=staff_id,
            username=username,
            email=email,
            password_hash=generate_password_hash(password),
            department=department,
            line_manager_id=self._validate_line_manager(line_manager_id),
            roles=parsed_roles,
            actor_id=actor.user_id,
        )

    def update_account(
        self,
        *,
        actor: SessionUser,
        user_id: int,
        username: str,
        email: str,
        department: str,
        roles: Sequence,
        is_active: bool = True,
        line_manager_id: Optional[int] = None,
    ) -> None:
        _require_admin(actor)

        current = self._users.get_by_id(int(user_id))
        if not current:
            raise NotFoundError("User does not exist")

        username = require_non_empty(username, "Name")
        email = require_email(email)
        department = require_non_empty(department, "Department")
        parsed_roles = _parse_roles(roles)

        if email != current.email:
            other = self._users.get_by_email(email)
            if other and other.user_id != current.user_id:
                raise ValidationError("Another account already uses this email")

        if int(user_id) == actor.user_id and Role.ADMINISTRATOR not in parsed_roles:
            raise ValidationError("You cannot remove your own Administrator role")

        ok = self._users.update_user(
            user_id=int(user_id),
            username=username,
            email=email,
            department=department,
            is_active=bool(is_active),
            line_manager_id=self._validate_line_manager(line_manager_id, user_id=int(user_id)),
            roles=parsed_roles,
            actor_id=actor.user_id,
        )
        if not ok:
            raise ValidationError("Failed to update user")

    def delete_user(self, *, actor: SessionUser, user_id: int) -> None:
        _require_admin(actor)

        if int(user_id) == actor.user_id:
            raise ValidationError("You cannot delete your own account")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User does not exist")

        if self._users.has_institutional_records(user.user_id):
            raise ValidationError(
                "This user has authored memos or signed approvals and cannot be removed. "
                'Use "Inactivate" to revoke access while preserving the institutional record.'
            )

        if not self._users.delete_user(user_id=user.user_id, actor_id=actor.user_id):
            raise ValidationError("Failed to delete user")

    def toggle_status(self, *, actor: SessionUser, user_id: int) -> bool:
        """Flip the active flag; returns the new value."""
        _require_admin(actor)

        if int(user_id) == actor.user_id:
            raise ValidationError("You cannot deactivate your own account")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User does not exist")

        new_value = not user.is_active
        if not self._users.set_active(user_id=user.user_id, is_active=new_value, actor_id=actor.user_id):
            raise ValidationError("Failed to update user status")
        return new_value

    def change_password(self, *, actor: SessionUser, current_password: str, new_password: str) -> None:
        user = self._users.get_by_id(actor.user_id)
        if not user:
            raise NotFoundError("User not found.")

        try:
            ok = check_password_hash(user.password_hash, current_password or "")
        except ValueError:
            ok = False
        if not ok:
            raise ValidationError("Your current password is incorrect.")

        require_min_length(new_password, "New password", MIN_NEW_PASSWORD_LENGTH)

        if not self._users.update_password(user_id=user.user_id, password_hash=generate_password_hash(new_password)):
            raise ValidationError("Failed to change password")

    def check_duplicate(self, *, staff_id: Optional[str], email: Optional[str]) -> DuplicateCheck:
        staff_id = (staff_id or "").strip() or None
        email = (email or "").strip().lower() or None
        if not staff_id and not email:
            return DuplicateCheck(exists=False)

        existing = self._users.find_duplicate(staff_id=staff_id, email=email)
        if not existing:
            return DuplicateCheck(exists=False)
        return DuplicateCheck(
            exists=True,
            status=existing.status_label,
            roles=existing.roles_label,
            username=existing.username,
        )

    def get_user(self, *, actor: SessionUser, user_id: int):
        _require_admin(actor)
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User does not exist")
        return user

    def list_admin_view(self, *, actor: SessionUser) -> Sequence[dict]:
        _require_admin(actor)
        return self._users.list_admin_view()

    def list_managers(self) -> Sequence[dict]:
        return self._users.list_with_role(Role.LINE_MANAGER)

    def list_recipients(self) -> Sequence[dict]:
        return self._users.list_active()

    def search_hr_staff(self, term: str) -> Sequence[HRStaff]:
        term = (term or "").strip()
        if not term:
            return []
        return self._hr_staff.search(term, limit=HR_SEARCH_LIMIT)
