from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import ApprovalStage, ApprovalStatus, MemoPriority, MemoStatus, MemoType


@dataclass(frozen=True)
class MemoDraft:
    """Validated user input for a new memo."""

    title: str
    content: str
    department: str
    category: str
    priority: MemoPriority
    memo_type: MemoType
    expiry_date: Optional[date] = None


@dataclass(frozen=True)
class AttachmentMeta:
    """Metadata of a file already stored by the upload layer."""

    file_name: str
    file_path: str
    file_type: str
    file_size: int


@dataclass(frozen=True)
class Memo:
    memo_id: int
    uuid: str
    reference_number: str
    title: str
    content: str
    department: str
    category: Optional[str]
    priority: MemoPriority
    memo_type: MemoType
    status: MemoStatus
    expiry_date: Optional[date]
    created_by: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    creator_name: Optional[str] = None
    creator_email: Optional[str] = None


@dataclass(frozen=True)
class MemoApproval:
    approval_id: int
    memo_id: int
    approver_id: int
    step_order: int
    status: ApprovalStatus
    comments: Optional[str] = None
    processed_at: Optional[datetime] = None
    approver_name: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING


@dataclass(frozen=True)
class MemoRecipient:
    memo_id: int
    recipient_id: int
    read_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    action_completed_at: Optional[datetime] = None
    recipient_name: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    attachment_id: int
    memo_id: int
    file_name: str
    file_path: str
    file_type: Optional[str]
    file_size: int
    uploaded_at: datetime


@dataclass(frozen=True)
class PlannedApproval:
    approver_id: int
    step_order: int
    stage: ApprovalStage


@dataclass(frozen=True)
class CreatedMemo:
    memo_id: int
    memo_uuid: str
    reference_number: str
    status: MemoStatus


@dataclass(frozen=True)
class MemoDetail:
    memo: Memo
    approvals: list[MemoApproval] = field(default_factory=list)
    recipients: list[MemoRecipient] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)
    is_creator: bool = False
    current_approval: Optional[MemoApproval] = None
    is_pending_approver: bool = False
    is_reviewer: bool = False
    is_admin: bool = False
    recipient_record: Optional[MemoRecipient] = None

    @property
    def is_recipient(self) -> bool:
        return not self.is_creator and self.recipient_record is not None

    @property
    def can_acknowledge(self) -> bool:
        return (
            self.is_recipient
            and self.memo.status in (MemoStatus.DISTRIBUTED, MemoStatus.ARCHIVED)
            and self.recipient_record is not None
            and self.recipient_record.acknowledged_at is None
        )

    @property
    def can_submit(self) -> bool:
        return self.is_creator and self.memo.status == MemoStatus.DRAFT

    @property
    def can_archive(self) -> bool:
        return (self.is_creator or self.is_admin) and self.memo.status == MemoStatus.DISTRIBUTED
