from __future__ import annotations

from datetime import datetime

import pytest

from src.memo_tracking.memo_tracking.core.enums import MemoStatus
from src.memo_tracking.memo_tracking.database.mysql_base import Rollback, db_cursor
from src.memo_tracking.memo_tracking.memos.mysql_memo_repository import MySQLMemoRepository
from src.memo_tracking.memo_tracking.notifications.model import NewNotification
from src.memo_tracking.memo_tracking.reports.mysql_report_repository import MySQLReportRepository


class FakeCursor:
    def __init__(self, rowcount=1, rows=()):
        self.rowcount = rowcount
        self.rows = list(rows)
        self.executed: list[tuple[str, tuple]] = []
        self.closed = False
        self.lastrowid = None

    def execute(self, sql, params=()):
        self.executed.append((" ".join(sql.split()), tuple(params)))

    def fetchone(self):
        return self.rows[0] if self.rows else None

    def fetchall(self):
        return self.rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, cursor: FakeCursor):
        self._cursor = cursor
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, cursor: FakeCursor):
        self.conn = FakeConnection(cursor)

    def connect(self):
        return self.conn


def test_db_cursor_commits_on_success():
    factory = FakeConnFactory(FakeCursor())

    with db_cursor(factory) as (_, cur):
        cur.execute("UPDATE memos SET status=%s WHERE id=%s", ("Archived", 1))

    assert factory.conn.commits == 1
    assert factory.conn.rollbacks == 0
    assert factory.conn.closed and cur.closed


def test_db_cursor_rolls_back_when_the_block_raises():
    factory = FakeConnFactory(FakeCursor())

    with pytest.raises(RuntimeError):
        with db_cursor(factory) as (_, cur):
            cur.execute("UPDATE memos SET status=%s WHERE id=%s", ("Draft", 1))
            raise RuntimeError("notification insert failed")

    assert factory.conn.commits == 0
    assert factory.conn.rollbacks == 1
    assert factory.conn.closed


def test_db_cursor_rollback_signal_propagates_to_caller():
    factory = FakeConnFactory(FakeCursor())

    with pytest.raises(Rollback):
        with db_cursor(factory):
            raise Rollback()

    assert (factory.conn.commits, factory.conn.rollbacks) == (0, 1)


def test_record_approval_on_processed_step_writes_nothing():
    cursor = FakeCursor(rowcount=0)
    factory = FakeConnFactory(cursor)
    repo = MySQLMemoRepository(factory)

    ok = repo.record_approval(
        approval_id=7,
        memo_id=1,
        actor_id=2,
        new_status=MemoStatus.DISTRIBUTED,
        notifications=[NewNotification(user_id=3, message="approved")],
    )

    assert ok is False
    assert factory.conn.commits == 0
    assert factory.conn.rollbacks == 1
    # only the guarded step update ran; no status change, notification or audit row
    assert len(cursor.executed) == 1
    assert cursor.executed[0][0].startswith("UPDATE memo_approvals")


def test_record_approval_commits_the_whole_sequence():
    cursor = FakeCursor(rowcount=1)
    factory = FakeConnFactory(cursor)
    repo = MySQLMemoRepository(factory)

    ok = repo.record_approval(
        approval_id=7,
        memo_id=1,
        actor_id=2,
        new_status=MemoStatus.DISTRIBUTED,
        notifications=[NewNotification(user_id=3, message="approved")],
    )

    assert ok is True
    assert (factory.conn.commits, factory.conn.rollbacks) == (1, 0)
    statements = [sql for sql, _ in cursor.executed]
    assert statements[1].startswith("UPDATE memos SET status")
    assert any(sql.startswith("INSERT INTO notifications") for sql in statements)
    assert statements[-1].startswith("INSERT INTO audit_logs")


def test_pending_queue_is_blocked_only_by_earlier_pending_steps():
    row = {
        "id": 1,
        "uuid": "m-1",
        "reference_number": "IMTS/2026/HR/001",
        "title": "Budget review",
        "department": "HR",
        "category": None,
        "priority": "Medium",
        "memo_type": "Approval",
        "status": "Line Manager Review",
        "created_at": datetime(2026, 3, 2, 9, 0),
        "creator_name": "Daniel Bello",
        "approval_id": 11,
        "step_order": 2,
    }
    cursor = FakeCursor(rows=[row])
    repo = MySQLMemoRepository(FakeConnFactory(cursor))

    queue = repo.list_pending_for_approver(2)

    sql, params = cursor.executed[0]
    assert "a2.step_order < a.step_order AND a2.status = %s" in sql
    assert params == (2, "Pending", "Pending")
    assert [(r["id"], r["approval_id"], r["step_order"]) for r in queue] == [(1, 11, 2)]


def test_dashboard_pending_count_uses_the_same_current_step_rule():
    cursor = FakeCursor(rows=[{"c": 1}])
    repo = MySQLReportRepository(FakeConnFactory(cursor))

    assert repo.count_pending_approvals(2) == 1

    sql, params = cursor.executed[0]
    assert "a2.step_order < a.step_order AND a2.status = %s" in sql
    assert params == (2, "Pending", "Pending")
