from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import MemoStatus
from ..notifications.model import NewNotification
from .model import Attachment, AttachmentMeta, Memo, MemoApproval, MemoDraft, MemoRecipient, PlannedApproval


class MemoRepository(Protocol):
    """Persistence for memos and their approval chain.

    Every write method is one transaction: the memo/approval/recipient rows,
    the queued notifications and the audit row either all land or none do.
    """

    def last_reference_with_prefix(self, prefix: str) -> Optional[str]:
        raise NotImplementedError

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
        raise NotImplementedError

    def submit_draft(
        self,
        *,
        memo_id: int,
        status: MemoStatus,
        approvals: Sequence[PlannedApproval],
        notifications: Sequence[NewNotification],
        actor_id: int,
    ) -> bool:
        """Move a Draft memo into the chain. False if it is no longer a Draft."""

        raise NotImplementedError

    def get_by_id(self, memo_id: int) -> Optional[Memo]:
        raise NotImplementedError

    def get_by_uuid(self, memo_uuid: str) -> Optional[Memo]:
        raise NotImplementedError

    def list_approvals(self, memo_id: int) -> Sequence[MemoApproval]:
        """All steps of a memo ordered by step_order."""

        raise NotImplementedError

    def list_recipients(self, memo_id: int) -> Sequence[MemoRecipient]:
        raise NotImplementedError

    def list_attachments(self, memo_id: int) -> Sequence[Attachment]:
        raise NotImplementedError

    def record_approval(
        self,
        *,
        approval_id: int,
        memo_id: int,
        actor_id: int,
        new_status: MemoStatus,
        notifications: Sequence[NewNotification],
    ) -> bool:
        """Approve a still-Pending step and move the memo on. False if the step was already processed."""

        raise NotImplementedError

    def record_rejection(
        self,
        *,
        approval_id: int,
        memo_id: int,
        actor_id: int,
        comments: str,
        notifications: Sequence[NewNotification],
    ) -> bool:
        """Reject a still-Pending step, withdraw later pending steps and reset the memo to Draft."""

        raise NotImplementedError

    def mark_read(self, *, memo_id: int, recipient_id: int) -> bool:
        raise NotImplementedError

    def acknowledge(
        self,
        *,
        memo_id: int,
        recipient_id: int,
        notifications: Sequence[NewNotification],
    ) -> bool:
        raise NotImplementedError

    def change_status(
        self,
        *,
        memo_id: int,
        from_status: MemoStatus,
        to_status: MemoStatus,
        actor_id: int,
        action: str,
    ) -> bool:
        raise NotImplementedError

    # UI listings (joined rows)
    def list_by_creator(self, user_id: int) -> Sequence[dict]:
        raise NotImplementedError

    def list_pending_for_approver(self, user_id: int) -> Sequence[dict]:
        """Memos where `user_id` holds a Pending step and every earlier step is Approved."""

        raise NotImplementedError

    def list_distributed_for_recipient(self, user_id: int) -> Sequence[dict]:
        raise NotImplementedError

    def search_visible(self, *, term: str, user_id: int, limit: int) -> Sequence[dict]:
        raise NotImplementedError
