from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DashboardStats:
    pending_approvals: int
    unacknowledged: int
    created: int
    distributed_total: int
    activity: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "pending_approvals": self.pending_approvals,
            "unacknowledged": self.unacknowledged,
            "created": self.created,
            "distributed_total": self.distributed_total,
            "activity": list(self.activity),
        }


@dataclass(frozen=True)
class ReportOverview:
    total_memos: int
    distributed_memos: int
    total_users: int
    memos: list[dict] = field(default_factory=list)
