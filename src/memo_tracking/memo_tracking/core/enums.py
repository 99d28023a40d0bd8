from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role names as stored in the `roles` table."""

    ADMINISTRATOR = "Administrator"
    LINE_MANAGER = "Line Manager"
    REVIEWER = "Reviewer"
    STAFF = "Staff"


class MemoStatus(str, Enum):
    """Workflow position of a memo."""

    DRAFT = "Draft"
    LINE_MANAGER_REVIEW = "Line Manager Review"
    REVIEWER_APPROVAL = "Reviewer Approval"
    DISTRIBUTED = "Distributed"
    ARCHIVED = "Archived"


class ApprovalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class MemoType(str, Enum):
    INFORMATIONAL = "Informational"
    APPROVAL = "Approval"
    ACTION = "Action"


class MemoPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ApprovalStage(str, Enum):
    """Which part of the chain an approval step belongs to."""

    LINE_MANAGER = "LINE_MANAGER"
    REVIEWER = "REVIEWER"
