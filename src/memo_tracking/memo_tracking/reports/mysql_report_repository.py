from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ApprovalStatus, MemoStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .repository import ReportRepository


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _scalar(self, sql: str, params: tuple = ()) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            row = fetchone(cur)
            return int(row["c"]) if row and row["c"] is not None else 0

    def count_pending_approvals(self, user_id: int) -> int:
        return self._scalar(
            """
            SELECT COUNT(*) AS c
            FROM memo_approvals a
            WHERE a.approver_id = %s
              AND a.status = %s
              AND NOT EXISTS (
                  SELECT 1 FROM memo_approvals a2
                  WHERE a2.memo_id = a.memo_id
                    AND a2.step_order < a.step_order
                    AND a2.status = %s
              )
            """,
            (int(user_id), ApprovalStatus.PENDING.value, ApprovalStatus.PENDING.value),
        )

    def count_unacknowledged(self, user_id: int) -> int:
        return self._scalar(
            """
            SELECT COUNT(*) AS c
            FROM memo_recipients mr
            JOIN memos m ON mr.memo_id = m.id
            WHERE mr.recipient_id = %s AND mr.acknowledged_at IS NULL AND m.status = %s
            """,
            (int(user_id), MemoStatus.DISTRIBUTED.value),
        )

    def count_created_by(self, user_id: int) -> int:
        return self._scalar("SELECT COUNT(*) AS c FROM memos WHERE created_by = %s", (int(user_id),))

    def count_memos(self, *, status: Optional[str] = None) -> int:
        if status is None:
            return self._scalar("SELECT COUNT(*) AS c FROM memos")
        return self._scalar("SELECT COUNT(*) AS c FROM memos WHERE status = %s", (status,))

    def count_users(self) -> int:
        return self._scalar("SELECT COUNT(*) AS c FROM memo_system_users")

    def monthly_memo_counts(self, *, since: date) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DATE_FORMAT(created_at, '%%Y-%%m') AS month, COUNT(*) AS c
                FROM memos
                WHERE created_at >= %s
                GROUP BY month
                """,
                (since,),
            )
            return {r["month"]: int(r["c"]) for r in fetchall(cur)}

    def list_all_memos(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.id, m.uuid, m.reference_number, m.title, m.department, m.memo_type,
                       m.status, m.created_at, u.username AS creator_name
                FROM memos m
                JOIN memo_system_users u ON m.created_by = u.id
                ORDER BY m.created_at DESC, m.id DESC
                """
            )
            return [
                {
                    "id": int(r["id"]),
                    "uuid": r["uuid"],
                    "reference_number": r["reference_number"],
                    "title": r["title"],
                    "department": r["department"],
                    "memo_type": r["memo_type"],
                    "status": r["status"],
                    "created_at": r["created_at"].strftime("%Y-%m-%d") if r["created_at"] else "",
                    "creator_name": r["creator_name"],
                }
                for r in fetchall(cur)
            ]
