from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import NewNotification, Notification
from .repository import NotificationRepository


def insert_notifications(cur, *, memo_id: Optional[int], notifications: Iterable[NewNotification]) -> None:
    """Queue notifications on the caller's cursor (same transaction as the workflow change)."""
    for n in notifications:
        cur.execute(
            "INSERT INTO notifications(user_id, memo_id, message) VALUES(%s,%s,%s)",
            (int(n.user_id), memo_id, n.message),
        )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_user(self, *, user_id: int, limit: int) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT n.id, n.user_id, n.memo_id, n.message, n.is_read, n.created_at, m.uuid AS memo_uuid
                FROM notifications n
                LEFT JOIN memos m ON n.memo_id = m.id
                WHERE n.user_id = %s
                ORDER BY n.created_at DESC, n.id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [
                Notification(
                    notification_id=int(r["id"]),
                    user_id=int(r["user_id"]),
                    memo_id=r.get("memo_id"),
                    memo_uuid=r.get("memo_uuid"),
                    message=r["message"],
                    is_read=bool(r["is_read"]),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]

    def count_unread(self, *, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS c FROM notifications WHERE user_id=%s AND is_read=0",
                (int(user_id),),
            )
            row = fetchone(cur)
            return int(row["c"]) if row else 0

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT id FROM notifications WHERE id=%s AND user_id=%s",
                (int(notification_id), int(user_id)),
            )
            if not fetchone(cur):
                return False
            cur.execute("UPDATE notifications SET is_read=1 WHERE id=%s", (int(notification_id),))
            return True

    def mark_all_read(self, *, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE notifications SET is_read=1 WHERE user_id=%s AND is_read=0", (int(user_id),))
            return int(cur.rowcount)
