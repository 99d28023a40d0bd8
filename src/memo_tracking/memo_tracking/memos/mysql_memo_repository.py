from __future__ import annotations

from typing import Optional, Sequence

from ..audit.writer import insert_audit_log
from ..core.enums import ApprovalStatus, MemoPriority, MemoStatus, MemoType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import Rollback, db_cursor, fetchall, fetchone, like_pattern
from ..notifications.model import NewNotification
from ..notifications.mysql_notification_repository import insert_notifications
from .model import Attachment, AttachmentMeta, Memo, MemoApproval, MemoDraft, MemoRecipient, PlannedApproval
from .repository import MemoRepository

_MEMO_SELECT = """
    SELECT m.id, m.uuid, m.reference_number, m.title, m.content, m.department, m.category,
           m.priority, m.memo_type, m.status, m.expiry_date, m.created_by, m.created_at, m.updated_at,
           u.username AS creator_name, u.email AS creator_email
    FROM memos m
    JOIN memo_system_users u ON m.created_by = u.id
"""


def _to_memo(r: dict) -> Memo:
    return Memo(
        memo_id=int(r["id"]),
        uuid=r["uuid"],
        reference_number=r["reference_number"],
        title=r["title"],
        content=r["content"],
        department=r["department"],
        category=r.get("category"),
        priority=MemoPriority(r["priority"]),
        memo_type=MemoType(r["memo_type"]),
        status=MemoStatus(r["status"]),
        expiry_date=r.get("expiry_date"),
        created_by=int(r["created_by"]),
        created_at=r["created_at"],
        updated_at=r.get("updated_at"),
        creator_name=r.get("creator_name"),
        creator_email=r.get("creator_email"),
    )


def _fmt_dt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def _insert_approvals(cur, memo_id: int, approvals: Sequence[PlannedApproval]) -> None:
    for step in approvals:
        cur.execute(
            """
            INSERT INTO memo_approvals(memo_id, approver_id, step_order, status)
            VALUES(%s,%s,%s,%s)
            """,
            (int(memo_id), int(step.approver_id), int(step.step_order), ApprovalStatus.PENDING.value),
        )


def _list_row(r: dict) -> dict:
    return {
        "id": int(r["id"]),
        "uuid": r["uuid"],
        "reference_number": r["reference_number"],
        "title": r["title"],
        "department": r["department"],
        "category": r.get("category") or "",
        "priority": r["priority"],
        "memo_type": r["memo_type"],
        "status": r["status"],
        "created_at": _fmt_dt(r["created_at"]),
    }


class MySQLMemoRepository(MemoRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def last_reference_with_prefix(self, prefix: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT reference_number FROM memos WHERE reference_number LIKE %s ORDER BY id DESC LIMIT 1",
                (like_pattern(prefix, starts_with=True),),
            )
            row = fetchone(cur)
            return row["reference_number"] if row else None

    def create_memo(
        self,
        *,
        draft: MemoDraft,
        uuid: str,
        reference_number: str,
        status: MemoStatus,
        created_by: int,
        recipient_ids: Sequence[int],
        attachments: Sequence[AttachmentMeta],
        approvals: Sequence[PlannedApproval],
        notifications: Sequence[NewNotification],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO memos(
                    uuid, reference_number, title, content, department, category,
                    priority, memo_type, status, expiry_date, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    uuid,
                    reference_number,
                    draft.title,
                    draft.content,
                    draft.department,
                    draft.category or None,
                    draft.priority.value,
                    draft.memo_type.value,
                    status.value,
                    draft.expiry_date,
                    int(created_by),
                ),
            )
            memo_id = int(cur.lastrowid)

            for a in attachments:
                cur.execute(
                    """
                    INSERT INTO attachments(memo_id, file_name, file_path, file_type, file_size)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (memo_id, a.file_name, a.file_path, a.file_type, int(a.file_size)),
                )

            insert_audit_log(
                cur,
                user_id=int(created_by),
                action="CREATE_MEMO",
                table_name="memos",
                record_id=memo_id,
                new_value={"referenceNumber": reference_number, "status": status.value},
            )

            for recipient_id in recipient_ids:
                cur.execute(
                    "INSERT IGNORE INTO memo_recipients(memo_id, recipient_id) VALUES(%s,%s)",
                    (memo_id, int(recipient_id)),
                )

            _insert_approvals(cur, memo_id, approvals)
            insert_notifications(cur, memo_id=memo_id, notifications=notifications)
            return memo_id

    def submit_draft(
        self,
        *,
        memo_id: int,
        status: MemoStatus,
        approvals: Sequence[PlannedApproval],
        notifications: Sequence[NewNotification],
        actor_id: int,
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE memos SET status=%s WHERE id=%s AND status=%s",
                    (status.value, int(memo_id), MemoStatus.DRAFT.value),
                )
                if cur.rowcount <= 0:
                    raise Rollback()
                _insert_approvals(cur, int(memo_id), approvals)
                insert_notifications(cur, memo_id=int(memo_id), notifications=notifications)
                insert_audit_log(
                    cur,
                    user_id=int(actor_id),
                    action="SUBMIT_MEMO",
                    table_name="memos",
                    record_id=int(memo_id),
                    new_value={"status": status.value},
                )
                return True
        except Rollback:
            return False

    def get_by_id(self, memo_id: int) -> Optional[Memo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_MEMO_SELECT} WHERE m.id=%s", (int(memo_id),))
            row = fetchone(cur)
            return _to_memo(row) if row else None

    def get_by_uuid(self, memo_uuid: str) -> Optional[Memo]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_MEMO_SELECT} WHERE m.uuid=%s", (memo_uuid,))
            row = fetchone(cur)
            return _to_memo(row) if row else None

    def list_approvals(self, memo_id: int) -> Sequence[MemoApproval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.id, a.memo_id, a.approver_id, a.step_order, a.status, a.comments, a.processed_at,
                       u.username AS approver_name
                FROM memo_approvals a
                JOIN memo_system_users u ON a.approver_id = u.id
                WHERE a.memo_id = %s
                ORDER BY a.step_order ASC, a.id ASC
                """,
                (int(memo_id),),
            )
            return [
                MemoApproval(
                    approval_id=int(r["id"]),
                    memo_id=int(r["memo_id"]),
                    approver_id=int(r["approver_id"]),
                    step_order=int(r["step_order"]),
                    status=ApprovalStatus(r["status"]),
                    comments=r.get("comments"),
                    processed_at=r.get("processed_at"),
                    approver_name=r.get("approver_name"),
                )
                for r in fetchall(cur)
            ]

    def list_recipients(self, memo_id: int) -> Sequence[MemoRecipient]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT mr.memo_id, mr.recipient_id, mr.read_at, mr.acknowledged_at, mr.action_completed_at,
                       u.username AS recipient_name
                FROM memo_recipients mr
                JOIN memo_system_users u ON mr.recipient_id = u.id
                WHERE mr.memo_id = %s
                ORDER BY u.username
                """,
                (int(memo_id),),
            )
            return [
                MemoRecipient(
                    memo_id=int(r["memo_id"]),
                    recipient_id=int(r["recipient_id"]),
                    read_at=r.get("read_at"),
                    acknowledged_at=r.get("acknowledged_at"),
                    action_completed_at=r.get("action_completed_at"),
                    recipient_name=r.get("recipient_name"),
                )
                for r in fetchall(cur)
            ]

    def list_attachments(self, memo_id: int) -> Sequence[Attachment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, memo_id, file_name, file_path, file_type, file_size, uploaded_at
                FROM attachments
                WHERE memo_id = %s
                ORDER BY id
                """,
                (int(memo_id),),
            )
            return [
                Attachment(
                    attachment_id=int(r["id"]),
                    memo_id=int(r["memo_id"]),
                    file_name=r["file_name"],
                    file_path=r["file_path"],
                    file_type=r.get("file_type"),
                    file_size=int(r.get("file_size") or 0),
                    uploaded_at=r["uploaded_at"],
                )
                for r in fetchall(cur)
            ]

    def record_approval(
        self,
        *,
        approval_id: int,
        memo_id: int,
        actor_id: int,
        new_status: MemoStatus,
        notifications: Sequence[NewNotification],
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE memo_approvals
                    SET status=%s, processed_at=CURRENT_TIMESTAMP
                    WHERE id=%s AND memo_id=%s AND status=%s
                    """,
                    (
                        ApprovalStatus.APPROVED.value,
                        int(approval_id),
                        int(memo_id),
                        ApprovalStatus.PENDING.value,
                    ),
                )
                if cur.rowcount <= 0:
                    raise Rollback()

                cur.execute("UPDATE memos SET status=%s WHERE id=%s", (new_status.value, int(memo_id)))
                insert_notifications(cur, memo_id=int(memo_id), notifications=notifications)
                insert_audit_log(
                    cur,
                    user_id=int(actor_id),
                    action="APPROVE_MEMO",
                    table_name="memo_approvals",
                    record_id=int(approval_id),
                )
                return True
        except Rollback:
            return False

    def record_rejection(
        self,
        *,
        approval_id: int,
        memo_id: int,
        actor_id: int,
        comments: str,
        notifications: Sequence[NewNotification],
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE memo_approvals
                    SET status=%s, comments=%s, processed_at=CURRENT_TIMESTAMP
                    WHERE id=%s AND memo_id=%s AND status=%s
                    """,
                    (
                        ApprovalStatus.REJECTED.value,
                        comments,
                        int(approval_id),
                        int(memo_id),
                        ApprovalStatus.PENDING.value,
                    ),
                )
                if cur.rowcount <= 0:
                    raise Rollback()

                # later steps are void once the memo goes back to Draft
                cur.execute(
                    "DELETE FROM memo_approvals WHERE memo_id=%s AND status=%s",
                    (int(memo_id), ApprovalStatus.PENDING.value),
                )
                cur.execute("UPDATE memos SET status=%s WHERE id=%s", (MemoStatus.DRAFT.value, int(memo_id)))
                insert_notifications(cur, memo_id=int(memo_id), notifications=notifications)
                insert_audit_log(
                    cur,
                    user_id=int(actor_id),
                    action="REJECT_MEMO",
                    table_name="memo_approvals",
                    record_id=int(approval_id),
                    new_value={"comments": comments},
                )
                return True
        except Rollback:
            return False

    def mark_read(self, *, memo_id: int, recipient_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE memo_recipients SET read_at=CURRENT_TIMESTAMP
                WHERE memo_id=%s AND recipient_id=%s AND read_at IS NULL
                """,
                (int(memo_id), int(recipient_id)),
            )
            return cur.rowcount > 0

    def acknowledge(
        self,
        *,
        memo_id: int,
        recipient_id: int,
        notifications: Sequence[NewNotification],
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE memo_recipients
                    SET acknowledged_at=CURRENT_TIMESTAMP, read_at=COALESCE(read_at, CURRENT_TIMESTAMP)
                    WHERE memo_id=%s AND recipient_id=%s AND acknowledged_at IS NULL
                    """,
                    (int(memo_id), int(recipient_id)),
                )
                if cur.rowcount <= 0:
                    raise Rollback()
                insert_notifications(cur, memo_id=int(memo_id), notifications=notifications)
                return True
        except Rollback:
            return False

    def change_status(
        self,
        *,
        memo_id: int,
        from_status: MemoStatus,
        to_status: MemoStatus,
        actor_id: int,
        action: str,
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "UPDATE memos SET status=%s WHERE id=%s AND status=%s",
                    (to_status.value, int(memo_id), from_status.value),
                )
                if cur.rowcount <= 0:
                    raise Rollback()
                insert_audit_log(
                    cur,
                    user_id=int(actor_id),
                    action=action,
                    table_name="memos",
                    record_id=int(memo_id),
                    new_value={"status": to_status.value},
                )
                return True
        except Rollback:
            return False

    def list_by_creator(self, user_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.id, m.uuid, m.reference_number, m.title, m.department, m.category,
                       m.priority, m.memo_type, m.status, m.created_at
                FROM memos m
                WHERE m.created_by = %s
                ORDER BY m.created_at DESC, m.id DESC
                """,
                (int(user_id),),
            )
            return [_list_row(r) for r in fetchall(cur)]

    def list_pending_for_approver(self, user_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.id, m.uuid, m.reference_number, m.title, m.department, m.category,
                       m.priority, m.memo_type, m.status, m.created_at,
                       u.username AS creator_name, a.id AS approval_id, a.step_order
                FROM memos m
                JOIN memo_approvals a ON m.id = a.memo_id
                JOIN memo_system_users u ON m.created_by = u.id
                WHERE a.approver_id = %s
                  AND a.status = %s
                  AND NOT EXISTS (
                      SELECT 1 FROM memo_approvals a2
                      WHERE a2.memo_id = m.id
                        AND a2.step_order < a.step_order
                        AND a2.status = %s
                  )
                ORDER BY m.created_at DESC
                """,
                (int(user_id), ApprovalStatus.PENDING.value, ApprovalStatus.PENDING.value),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                row = _list_row(r)
                row.update(
                    {
                        "creator_name": r["creator_name"],
                        "approval_id": int(r["approval_id"]),
                        "step_order": int(r["step_order"]),
                    }
                )
                out.append(row)
            return out

    def list_distributed_for_recipient(self, user_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT m.id, m.uuid, m.reference_number, m.title, m.department, m.category,
                       m.priority, m.memo_type, m.status, m.created_at,
                       u.username AS creator_name, mr.read_at, mr.acknowledged_at
                FROM memos m
                JOIN memo_recipients mr ON m.id = mr.memo_id
                JOIN memo_system_users u ON m.created_by = u.id
                WHERE mr.recipient_id = %s AND m.status = %s
                ORDER BY m.created_at DESC
                """,
                (int(user_id), MemoStatus.DISTRIBUTED.value),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                row = _list_row(r)
                row.update(
                    {
                        "creator_name": r["creator_name"],
                        "read_at": _fmt_dt(r.get("read_at")),
                        "acknowledged_at": _fmt_dt(r.get("acknowledged_at")),
                    }
                )
                out.append(row)
            return out

    def search_visible(self, *, term: str, user_id: int, limit: int) -> Sequence[dict]:
        pattern = like_pattern(term)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT m.id, m.uuid, m.title, m.reference_number, m.status
                FROM memos m
                LEFT JOIN memo_recipients mr ON m.id = mr.memo_id
                LEFT JOIN memo_approvals ma ON m.id = ma.memo_id
                WHERE (m.title LIKE %s OR m.reference_number LIKE %s)
                  AND (m.created_by = %s OR mr.recipient_id = %s OR ma.approver_id = %s)
                LIMIT %s
                """,
                (pattern, pattern, int(user_id), int(user_id), int(user_id), int(limit)),
            )
            return [
                {
                    "id": int(r["id"]),
                    "uuid": r["uuid"],
                    "title": r["title"],
                    "reference_number": r["reference_number"],
                    "status": r["status"],
                }
                for r in fetchall(cur)
            ]
