from __future__ import annotations

from typing import Optional

from ..common.datetime_utils import last_n_months, month_key, now_local
from ..core.constants import ACTIVITY_MONTHS
from ..core.enums import MemoStatus
from ..core.exceptions import AuthorizationError
from ..users.service import SessionUser
from .model import DashboardStats, ReportOverview
from .repository import ReportRepository


class ReportService:
    def __init__(self, reports: ReportRepository):
        self._reports = reports

    def dashboard_stats(self, *, actor: SessionUser, today=None) -> DashboardStats:
        today = today or now_local().date()
        months = last_n_months(today, ACTIVITY_MONTHS)
        counts = self._reports.monthly_memo_counts(since=months[0])

        activity = [
            {"month": m.strftime("%b %Y"), "key": month_key(m), "count": int(counts.get(month_key(m), 0))}
            for m in months
        ]

        return DashboardStats(
            pending_approvals=self._reports.count_pending_approvals(actor.user_id),
            unacknowledged=self._reports.count_unacknowledged(actor.user_id),
            created=self._reports.count_created_by(actor.user_id),
            distributed_total=self._reports.count_memos(status=MemoStatus.DISTRIBUTED.value),
            activity=activity,
        )

    def overview(self, *, actor: Optional[SessionUser]) -> ReportOverview:
        if not actor or not actor.is_admin:
            raise AuthorizationError("Only administrators can view reports")

        return ReportOverview(
            total_memos=self._reports.count_memos(),
            distributed_memos=self._reports.count_memos(status=MemoStatus.DISTRIBUTED.value),
            total_users=self._reports.count_users(),
            memos=list(self._reports.list_all_memos()),
        )
