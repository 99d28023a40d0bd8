from __future__ import annotations

from dataclasses import replace
from typing import Optional

import pytest
from werkzeug.security import check_password_hash, generate_password_hash

from src.memo_tracking.memo_tracking.core.enums import Role
from src.memo_tracking.memo_tracking.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.memo_tracking.memo_tracking.users.hr_staff_model import HRStaff
from src.memo_tracking.memo_tracking.users.model import DuplicateAccount, User
from src.memo_tracking.memo_tracking.users.service import AuthService, SessionUser, UserService


def make_user(user_id, staff_id, email, *roles, password="password123", is_active=True, line_manager_id=None):
    return User(
        user_id=user_id,
        uuid=f"user-{user_id}",
        staff_id=staff_id,
        username=f"User {user_id}",
        email=email,
        password_hash=generate_password_hash(password),
        department="HR",
        line_manager_id=line_manager_id,
        is_active=is_active,
        roles=tuple(roles),
    )


class InMemoryUsers:
    def __init__(self, *users: User):
        self.users = {u.user_id: u for u in users}
        self.institutional: set[int] = set()
        self.audit: list[tuple[str, int]] = []

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.email == email), None)

    def find_duplicate(self, *, staff_id, email):
        u = next((u for u in self.users.values() if u.staff_id == staff_id or u.email == email), None)
        if not u:
            return None
        return DuplicateAccount(
            user_id=u.user_id,
            username=u.username,
            is_active=u.is_active,
            roles=tuple(r.value for r in u.roles),
        )

    def create_user(self, *, uuid, staff_id, username, email, password_hash, department, line_manager_id, roles, actor_id):
        user_id = max(self.users) + 1
        self.users[user_id] = User(
            user_id=user_id,
            uuid=uuid,
            staff_id=staff_id,
            username=username,
            email=email,
            password_hash=password_hash,
            department=department,
            line_manager_id=line_manager_id,
            roles=tuple(roles),
        )
        self.audit.append(("CREATE_USER", user_id))
        return user_id

    def update_user(self, *, user_id, username, email, department, is_active, line_manager_id, roles, actor_id):
        u = self.users[user_id]
        self.users[user_id] = replace(
            u,
            username=username,
            email=email,
            department=department,
            is_active=is_active,
            line_manager_id=line_manager_id,
            roles=tuple(roles),
        )
        self.audit.append(("UPDATE_USER", user_id))
        return True

    def has_institutional_records(self, user_id):
        return user_id in self.institutional

    def delete_user(self, *, user_id, actor_id):
        del self.users[user_id]
        self.audit.append(("DELETE_USER", user_id))
        return True

    def set_active(self, *, user_id, is_active, actor_id):
        self.users[user_id] = replace(self.users[user_id], is_active=is_active)
        self.audit.append(("TOGGLE_USER_STATUS", user_id))
        return True

    def update_password(self, *, user_id, password_hash):
        self.users[user_id] = replace(self.users[user_id], password_hash=password_hash)
        return True


class InMemoryHRStaff:
    def __init__(self, *rows: HRStaff):
        self.rows = rows
        self.last_limit = None

    def search(self, term, *, limit):
        self.last_limit = limit
        return [r for r in self.rows if term.lower() in r.full_name.lower()][:limit]


ADMIN = make_user(1, "ADMIN001", "admin@university.edu", Role.ADMINISTRATOR)
STAFF = make_user(2, "HR002", "daniel@university.edu", Role.STAFF)


def session_for(user: User) -> SessionUser:
    return SessionUser(user_id=user.user_id, username=user.username, email=user.email, department=user.department, roles=user.roles)


def build(*users: User):
    repo = InMemoryUsers(*(users or (ADMIN, STAFF)))
    hr = InMemoryHRStaff(
        HRStaff("HR001", "Grace", None, "Okafor", "grace@university.edu", "HR", None),
        HRStaff("HR002", "Daniel", "K", "Bello", "daniel@university.edu", "HR", "HR001"),
    )
    return UserService(repo, hr), repo, hr


def test_authenticate_returns_session_user():
    auth = AuthService(InMemoryUsers(ADMIN, STAFF))

    s_user = auth.authenticate(" Daniel@University.edu ", "password123")

    assert s_user.user_id == STAFF.user_id
    assert s_user.staff_id == "HR002"
    assert s_user.to_session()["roles"] == ["Staff"]
    assert SessionUser.from_session(s_user.to_session()) == s_user


@pytest.mark.parametrize(
    "email,password",
    [
        ("daniel@university.edu", "wrong-password"),
        ("nobody@university.edu", "password123"),
        ("not-an-email", "password123"),
        ("daniel@university.edu", "short"),
    ],
)
def test_authenticate_rejects_bad_credentials(email, password):
    auth = AuthService(InMemoryUsers(ADMIN, STAFF))

    with pytest.raises(AuthenticationError):
        auth.authenticate(email, password)


def test_authenticate_rejects_inactive_account():
    auth = AuthService(InMemoryUsers(replace(STAFF, is_active=False)))

    with pytest.raises(AuthenticationError):
        auth.authenticate("daniel@university.edu", "password123")


def test_create_account_is_admin_only():
    svc, _, _ = build()

    with pytest.raises(AuthorizationError):
        svc.create_account(
            actor=session_for(STAFF),
            staff_id="HR009",
            username="New",
            email="new@university.edu",
            password="password123",
            department="HR",
            roles=["Staff"],
        )


def test_create_account_hashes_password_and_parses_roles():
    svc, repo, _ = build()

    user_id = svc.create_account(
        actor=session_for(ADMIN),
        staff_id="HR009",
        username="New Person",
        email="New@University.edu",
        password="password123",
        department="HR",
        roles=["Staff", "Line Manager", "Staff"],
        line_manager_id=ADMIN.user_id,
    )

    created = repo.get_by_id(user_id)
    assert created.email == "new@university.edu"
    assert created.roles == (Role.STAFF, Role.LINE_MANAGER)
    assert check_password_hash(created.password_hash, "password123")
    assert ("CREATE_USER", user_id) in repo.audit


def test_create_account_reports_existing_account():
    svc, _, _ = build()

    with pytest.raises(ValidationError) as exc:
        svc.create_account(
            actor=session_for(ADMIN),
            staff_id="HR002",
            username="Dup",
            email="other@university.edu",
            password="password123",
            department="HR",
            roles=["Staff"],
        )

    assert "Status: Active" in str(exc.value)
    assert "Current roles: Staff" in str(exc.value)


def test_create_account_validates_password_and_roles():
    svc, _, _ = build()
    base = dict(
        actor=session_for(ADMIN),
        staff_id="HR010",
        username="X",
        email="x@university.edu",
        department="HR",
    )

    with pytest.raises(ValidationError):
        svc.create_account(password="short", roles=["Staff"], **base)
    with pytest.raises(ValidationError):
        svc.create_account(password="password123", roles=["Dean"], **base)


def test_user_cannot_be_their_own_line_manager():
    svc, _, _ = build()

    with pytest.raises(ValidationError):
        svc.update_account(
            actor=session_for(ADMIN),
            user_id=STAFF.user_id,
            username="Daniel",
            email="daniel@university.edu",
            department="HR",
            roles=["Staff"],
            line_manager_id=STAFF.user_id,
        )


def test_delete_user_rules():
    svc, repo, _ = build()

    with pytest.raises(ValidationError):
        svc.delete_user(actor=session_for(ADMIN), user_id=ADMIN.user_id)

    repo.institutional.add(STAFF.user_id)
    with pytest.raises(ValidationError):
        svc.delete_user(actor=session_for(ADMIN), user_id=STAFF.user_id)

    repo.institutional.clear()
    svc.delete_user(actor=session_for(ADMIN), user_id=STAFF.user_id)
    assert repo.get_by_id(STAFF.user_id) is None

    with pytest.raises(NotFoundError):
        svc.delete_user(actor=session_for(ADMIN), user_id=STAFF.user_id)


def test_toggle_status_flips_flag():
    svc, repo, _ = build()

    assert svc.toggle_status(actor=session_for(ADMIN), user_id=STAFF.user_id) is False
    assert repo.get_by_id(STAFF.user_id).is_active is False
    assert svc.toggle_status(actor=session_for(ADMIN), user_id=STAFF.user_id) is True


def test_change_password():
    svc, repo, _ = build()

    with pytest.raises(ValidationError):
        svc.change_password(actor=session_for(STAFF), current_password="nope", new_password="newpassword1")
    with pytest.raises(ValidationError):
        svc.change_password(actor=session_for(STAFF), current_password="password123", new_password="short")

    svc.change_password(actor=session_for(STAFF), current_password="password123", new_password="newpassword1")
    assert check_password_hash(repo.get_by_id(STAFF.user_id).password_hash, "newpassword1")


def test_check_duplicate():
    svc, _, _ = build()

    assert svc.check_duplicate(staff_id="", email=None).to_dict() == {"exists": False}
    assert svc.check_duplicate(staff_id="HR999", email="none@university.edu").to_dict() == {"exists": False}
    assert svc.check_duplicate(staff_id=None, email="DANIEL@university.edu").to_dict() == {
        "exists": True,
        "status": "Active",
        "roles": "Staff",
        "username": "User 2",
    }


def test_search_hr_staff_limit_and_blank_term():
    svc, _, hr = build()

    assert svc.search_hr_staff("  ") == []
    results = svc.search_hr_staff("bello")
    assert [r.staff_id for r in results] == ["HR002"]
    assert results[0].full_name == "Daniel K Bello"
    assert hr.last_limit == 15
