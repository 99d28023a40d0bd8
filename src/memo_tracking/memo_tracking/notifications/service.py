from __future__ import annotations

from typing import Sequence

from ..core.constants import NOTIFICATION_LIST_LIMIT
from ..core.exceptions import NotFoundError
from .model import Notification
from .repository import NotificationRepository


class NotificationService:
    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def list_for_user(self, *, user_id: int) -> Sequence[Notification]:
        return self._notifications.list_for_user(user_id=int(user_id), limit=NOTIFICATION_LIST_LIMIT)

    def count_unread(self, *, user_id: int) -> int:
        return self._notifications.count_unread(user_id=int(user_id))

    def mark_as_read(self, *, user_id: int, notification_id: int) -> None:
        if not self._notifications.mark_read(notification_id=int(notification_id), user_id=int(user_id)):
            raise NotFoundError("Notification not found")

    def mark_all_as_read(self, *, user_id: int) -> int:
        return self._notifications.mark_all_read(user_id=int(user_id))
