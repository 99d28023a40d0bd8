from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import DuplicateAccount, User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    Write methods take `actor_id` and record their audit row in the same transaction.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_staff_id(self, staff_id: str) -> Optional[User]:
        raise NotImplementedError

    def find_duplicate(self, *, staff_id: Optional[str], email: Optional[str]) -> Optional[DuplicateAccount]:
        raise NotImplementedError

    def list_ids_with_role(self, role: Role, *, active_only: bool = True) -> Sequence[int]:
        """User ids holding `role`, lowest id first."""

        raise NotImplementedError

    def create_user(
        self,
        *,
        uuid: str,
        staff_id: str,
        username: str,
        email: str,
        password_hash: str,
        department: str,
        line_manager_id: Optional[int],
        roles: Sequence[Role],
        actor_id: int,
    ) -> int:
        raise NotImplementedError

    def update_user(
        self,
        *,
        user_id: int,
        username: str,
        email: str,
        department: str,
        is_active: bool,
        line_manager_id: Optional[int],
        roles: Sequence[Role],
        actor_id: int,
    ) -> bool:
        raise NotImplementedError

    def has_institutional_records(self, user_id: int) -> bool:
        """True if the user authored a memo or holds any approval step."""

        raise NotImplementedError

    def delete_user(self, *, user_id: int, actor_id: int) -> bool:
        raise NotImplementedError

    def set_active(self, *, user_id: int, is_active: bool, actor_id: int) -> bool:
        raise NotImplementedError

    def update_password(self, *, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def list_admin_view(self) -> Sequence[dict]:
        raise NotImplementedError

    def list_with_role(self, role: Role) -> Sequence[dict]:
        raise NotImplementedError

    def list_active(self) -> Sequence[dict]:
        raise NotImplementedError
