from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence


class ReportRepository(Protocol):
    def count_pending_approvals(self, user_id: int) -> int:
        raise NotImplementedError

    def count_unacknowledged(self, user_id: int) -> int:
        raise NotImplementedError

    def count_created_by(self, user_id: int) -> int:
        raise NotImplementedError

    def count_memos(self, *, status: Optional[str] = None) -> int:
        raise NotImplementedError

    def count_users(self) -> int:
        raise NotImplementedError

    def monthly_memo_counts(self, *, since: date) -> dict[str, int]:
        """Memos created per month ("YYYY-MM" -> count) from `since` onwards."""

        raise NotImplementedError

    def list_all_memos(self) -> Sequence[dict]:
        raise NotImplementedError
