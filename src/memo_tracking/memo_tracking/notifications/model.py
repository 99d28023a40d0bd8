from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class NewNotification:
    """A notification queued by the workflow; the memo id is filled in by the writer."""

    user_id: int
    message: str


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    memo_id: Optional[int]
    memo_uuid: Optional[str]
    message: str
    is_read: bool
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "memo_id": self.memo_id,
            "memo_uuid": self.memo_uuid,
            "message": self.message,
            "is_read": self.is_read,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M"),
        }
