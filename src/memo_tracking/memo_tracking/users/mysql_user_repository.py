from __future__ import annotations

from typing import Optional, Sequence

from ..audit.writer import insert_audit_log
from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import Rollback, db_cursor, fetchall, fetchone
from .model import DuplicateAccount, User
from .repository import UserRepository

_ROLE_SEP = "||"

_USER_SELECT = f"""
    SELECT u.id, u.uuid, u.staff_id, u.username, u.email, u.password_hash,
           u.department, u.line_manager_id, u.is_active,
           GROUP_CONCAT(r.name ORDER BY r.name SEPARATOR '{_ROLE_SEP}') AS roles_list
    FROM memo_system_users u
    LEFT JOIN user_roles ur ON ur.user_id = u.id
    LEFT JOIN roles r ON r.id = ur.role_id
"""


def _split_roles(value: Optional[str]) -> list[str]:
    return [v for v in (value or "").split(_ROLE_SEP) if v]


def _to_roles(value: Optional[str]) -> tuple[Role, ...]:
    out: list[Role] = []
    for name in _split_roles(value):
        try:
            out.append(Role(name))
        except ValueError:
            # roles table may carry names this app does not act on
            continue
    return tuple(out)


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["id"]),
        uuid=row["uuid"],
        staff_id=row["staff_id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        department=row.get("department"),
        line_manager_id=row.get("line_manager_id"),
        is_active=bool(row.get("is_active", True)),
        roles=_to_roles(row.get("roles_list")),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_USER_SELECT} WHERE {where} GROUP BY u.id", params)
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("u.id=%s", (int(user_id),))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("u.email=%s", (email,))

    def get_by_staff_id(self, staff_id: str) -> Optional[User]:
        return self._get_one("u.staff_id=%s", (staff_id,))

    def find_duplicate(self, *, staff_id: Optional[str], email: Optional[str]) -> Optional[DuplicateAccount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.id, u.username, u.is_active,
                       GROUP_CONCAT(r.name ORDER BY r.name SEPARATOR '{_ROLE_SEP}') AS roles_list
                FROM memo_system_users u
                LEFT JOIN user_roles ur ON u.id = ur.user_id
                LEFT JOIN roles r ON ur.role_id = r.id
                WHERE u.staff_id = %s OR u.email = %s
                GROUP BY u.id
                LIMIT 1
                """,
                (staff_id, email),
            )
            row = fetchone(cur)
            if not row:
                return None
            return DuplicateAccount(
                user_id=int(row["id"]),
                username=row["username"],
                is_active=bool(row["is_active"]),
                roles=tuple(_split_roles(row.get("roles_list"))),
            )

    def list_ids_with_role(self, role: Role, *, active_only: bool = True) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.id
                FROM memo_system_users u
                JOIN user_roles ur ON u.id = ur.user_id
                JOIN roles r ON ur.role_id = r.id
                WHERE r.name = %s {"AND u.is_active = 1" if active_only else ""}
                ORDER BY u.id ASC
                """,
                (role.value,),
            )
            return [int(r["id"]) for r in fetchall(cur)]

    @staticmethod
    def _replace_roles(cur, user_id: int, roles: Sequence[Role]) -> None:
        cur.execute("DELETE FROM user_roles WHERE user_id=%s", (user_id,))
        for role in roles:
            cur.execute(
                """
                INSERT INTO user_roles(user_id, role_id)
                SELECT %s, id FROM roles WHERE name=%s
                """,
                (user_id, role.value),
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO memo_system_users(uuid, staff_id, username, email, password_hash, department, line_manager_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (uuid, staff_id, username, email, password_hash, department, line_manager_id),
            )
            user_id = int(cur.lastrowid)
            self._replace_roles(cur, user_id, roles)
            insert_audit_log(cur, user_id=actor_id, action="CREATE_USER", table_name="users", record_id=user_id)
            return user_id

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("SELECT id FROM memo_system_users WHERE id=%s", (int(user_id),))
                if not fetchone(cur):
                    raise Rollback()
                cur.execute(
                    """
                    UPDATE memo_system_users
                    SET username=%s, email=%s, department=%s, is_active=%s, line_manager_id=%s
                    WHERE id=%s
                    """,
                    (username, email, department, 1 if is_active else 0, line_manager_id, int(user_id)),
                )
                self._replace_roles(cur, int(user_id), roles)
                insert_audit_log(cur, user_id=actor_id, action="UPDATE_USER", table_name="users", record_id=int(user_id))
                return True
        except Rollback:
            return False

    def has_institutional_records(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT id FROM memos WHERE created_by=%s LIMIT 1", (int(user_id),))
            if fetchone(cur):
                return True
            cur.execute("SELECT id FROM memo_approvals WHERE approver_id=%s LIMIT 1", (int(user_id),))
            return fetchone(cur) is not None

    def delete_user(self, *, user_id: int, actor_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                # audit_logs.user_id is NOT NULL; hand the history to the admin doing the delete
                cur.execute("UPDATE audit_logs SET user_id=%s WHERE user_id=%s", (int(actor_id), int(user_id)))
                cur.execute("UPDATE memo_system_users SET line_manager_id=NULL WHERE line_manager_id=%s", (int(user_id),))
                cur.execute("DELETE FROM user_roles WHERE user_id=%s", (int(user_id),))
                cur.execute("DELETE FROM memo_recipients WHERE recipient_id=%s", (int(user_id),))
                cur.execute("DELETE FROM notifications WHERE user_id=%s", (int(user_id),))
                cur.execute("DELETE FROM memo_system_users WHERE id=%s", (int(user_id),))
                if cur.rowcount <= 0:
                    raise Rollback()
                insert_audit_log(cur, user_id=actor_id, action="DELETE_USER", table_name="users", record_id=int(user_id))
                return True
        except Rollback:
            return False

    def set_active(self, *, user_id: int, is_active: bool, actor_id: int) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE memo_system_users SET is_active=%s WHERE id=%s",
                    (1 if is_active else 0, int(user_id)),
                )
                if cur.rowcount <= 0:
                    raise Rollback()
                insert_audit_log(
                    cur,
                    user_id=actor_id,
                    action="TOGGLE_USER_STATUS",
                    table_name="users",
                    record_id=int(user_id),
                    new_value={"is_active": bool(is_active)},
                )
                return True
        except Rollback:
            return False

    def update_password(self, *, user_id: int, password_hash: str) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE memo_system_users SET password_hash=%s, updated_at=CURRENT_TIMESTAMP WHERE id=%s",
                    (password_hash, int(user_id)),
                )
                if cur.rowcount <= 0:
                    raise Rollback()
                insert_audit_log(
                    cur,
                    user_id=int(user_id),
                    action="CHANGE_PASSWORD",
                    table_name="memo_system_users",
                    record_id=int(user_id),
                )
                return True
        except Rollback:
            return False

    def list_admin_view(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.id, u.staff_id, u.username, u.email, u.department, u.is_active, u.line_manager_id,
                       m.username AS line_manager_name,
                       GROUP_CONCAT(r.name ORDER BY r.name SEPARATOR '{_ROLE_SEP}') AS roles_list
                FROM memo_system_users u
                LEFT JOIN memo_system_users m ON m.id = u.line_manager_id
                LEFT JOIN user_roles ur ON u.id = ur.user_id
                LEFT JOIN roles r ON ur.role_id = r.id
                GROUP BY u.id
                ORDER BY u.created_at DESC, u.id DESC
                """
            )
            out: list[dict] = []
            for r in fetchall(cur):
                out.append(
                    {
                        "user_id": int(r["id"]),
                        "staff_id": r["staff_id"],
                        "username": r["username"],
                        "email": r["email"],
                        "department": r.get("department") or "-",
                        "is_active": bool(r["is_active"]),
                        "line_manager_id": r.get("line_manager_id"),
                        "line_manager_name": r.get("line_manager_name") or "-",
                        "roles": _split_roles(r.get("roles_list")),
                    }
                )
            return out

    def list_with_role(self, role: Role) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.id, u.username, u.department
                FROM memo_system_users u
                JOIN user_roles ur ON u.id = ur.user_id
                JOIN roles r ON ur.role_id = r.id
                WHERE r.name = %s
                ORDER BY u.username
                """,
                (role.value,),
            )
            return [
                {"id": int(r["id"]), "username": r["username"], "department": r.get("department") or ""}
                for r in fetchall(cur)
            ]

    def list_active(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.id, u.username, u.department
                FROM memo_system_users u
                WHERE u.is_active = 1
                ORDER BY u.username
                """
            )
            return [
                {"id": int(r["id"]), "username": r["username"], "department": r.get("department") or ""}
                for r in fetchall(cur)
            ]
