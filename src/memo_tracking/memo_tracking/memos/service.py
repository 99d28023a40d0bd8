from __future__ import annotations

import uuid
from datetime import date
from typing import Iterable, Optional, Sequence, Union

from ..common.datetime_utils import now_local, parse_optional_date
from ..common.validators import require_enum, require_non_empty, unique_ids
from ..core.constants import DEFAULT_REJECTION_COMMENT, MIN_SEARCH_TERM_LENGTH, SEARCH_RESULT_LIMIT
from ..core.enums import ApprovalStage, MemoPriority, MemoStatus, MemoType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..notifications.model import NewNotification
from ..users.hr_staff_repository import HRStaffRepository
from ..users.model import User
from ..users.repository import UserRepository
from ..users.service import SessionUser
from .model import AttachmentMeta, CreatedMemo, Memo, MemoApproval, MemoDetail, MemoDraft, PlannedApproval
from .reference import next_reference_number, reference_prefix
from .repository import MemoRepository

_FIRST_STATUS = {
    ApprovalStage.LINE_MANAGER: MemoStatus.LINE_MANAGER_REVIEW,
    ApprovalStage.REVIEWER: MemoStatus.REVIEWER_APPROVAL,
}


def _review_requested(title: str) -> str:
    return f'A new memo "{title}" requires your review.'


def _distributed_messages(memo_title: str, *, creator_id: int, recipient_ids: Iterable[int]) -> list[NewNotification]:
    out = [NewNotification(user_id=creator_id, message=f'Your memo "{memo_title}" has been fully approved and distributed.')]
    out.extend(
        NewNotification(user_id=rid, message=f'New internal memo: "{memo_title}" has been distributed.')
        for rid in recipient_ids
    )
    return out


def _current_step(approvals: Sequence[MemoApproval]) -> Optional[MemoApproval]:
    pending = [a for a in approvals if a.is_pending]
    if not pending:
        return None
    return min(pending, key=lambda a: (a.step_order, a.approval_id))


class MemoService:
    """Use case: the memo lifecycle (draft, approval chain, distribution, acknowledgement)."""

    def __init__(self, memos: MemoRepository, users: UserRepository, hr_staff: HRStaffRepository):
        self._memos = memos
        self._users = users
        self._hr_staff = hr_staff

    # ---------- helpers ----------

    def _require_memo(self, memo_id: int) -> Memo:
        memo = self._memos.get_by_id(int(memo_id))
        if not memo:
            raise NotFoundError("Memo not found")
        return memo

    def _require_creator(self, actor: SessionUser) -> User:
        creator = self._users.get_by_id(actor.user_id)
        if not creator or not creator.is_active:
            raise AuthorizationError("Your account is not active")
        return creator

    def _resolve_line_manager(self, creator: User) -> Optional[User]:
        manager: Optional[User] = None
        if creator.line_manager_id:
            manager = self._users.get_by_id(int(creator.line_manager_id))
        elif creator.staff_id:
            manager_staff_id = self._hr_staff.get_line_manager_staff_id(creator.staff_id)
            if manager_staff_id:
                manager = self._users.get_by_staff_id(manager_staff_id)

        if not manager or manager.user_id == creator.user_id or not manager.is_active:
            return None
        return manager

    def _pick_reviewer(self, creator: User) -> Optional[int]:
        for reviewer_id in self._users.list_ids_with_role(Role.REVIEWER, active_only=True):
            if reviewer_id != creator.user_id:
                return reviewer_id
        return None

    def _plan_approvals(self, creator: User, memo_type: MemoType, *, start_step: int = 1) -> list[PlannedApproval]:
        steps: list[PlannedApproval] = []
        step = start_step

        if not creator.has_role(Role.LINE_MANAGER):
            manager = self._resolve_line_manager(creator)
            if manager:
                steps.append(PlannedApproval(approver_id=manager.user_id, step_order=step, stage=ApprovalStage.LINE_MANAGER))
                step += 1

        if memo_type == MemoType.APPROVAL:
            reviewer_id = self._pick_reviewer(creator)
            if reviewer_id:
                steps.append(PlannedApproval(approver_id=reviewer_id, step_order=step, stage=ApprovalStage.REVIEWER))

        return steps

    @staticmethod
    def _route(
        title: str,
        *,
        steps: Sequence[PlannedApproval],
        recipient_ids: Sequence[int],
    ) -> tuple[MemoStatus, list[NewNotification]]:
        if steps:
            first = steps[0]
            return _FIRST_STATUS[first.stage], [NewNotification(user_id=first.approver_id, message=_review_requested(title))]

        notes = [
            NewNotification(user_id=rid, message=f'New internal memo: "{title}" has been distributed.')
            for rid in recipient_ids
        ]
        return MemoStatus.DISTRIBUTED, notes

    def _validate_recipients(self, recipient_ids: Iterable, *, creator_id: int) -> list[int]:
        ids = [i for i in unique_ids(recipient_ids or ()) if i != creator_id]
        if not ids:
            return ids
        active = {int(u["id"]) for u in self._users.list_active()}
        unknown = [i for i in ids if i not in active]
        if unknown:
            raise ValidationError("Recipients must be active users")
        return ids

    @staticmethod
    def _build_draft(
        *,
        title: str,
        content: str,
        department: str,
        category: Optional[str],
        priority,
        memo_type,
        expiry_date: Union[str, date, None],
    ) -> MemoDraft:
        title = require_non_empty(title, "Title")
        department = require_non_empty(department, "Department")
        content = require_non_empty(content, "Content")
        memo_type = require_enum(MemoType, memo_type, "Memo type")
        priority = require_enum(MemoPriority, priority or MemoPriority.MEDIUM.value, "Priority")
        if not isinstance(expiry_date, date):
            expiry_date = parse_optional_date(expiry_date, "Expiry date")

        return MemoDraft(
            title=title,
            content=content,
            department=department,
            category=(category or "").strip(),
            priority=priority,
            memo_type=memo_type,
            expiry_date=expiry_date,
        )

    # ---------- workflow ----------

    def create_memo(
        self,
        *,
        actor: SessionUser,
        title: str,
        content: str,
        department: str,
        category: Optional[str] = None,
        priority=MemoPriority.MEDIUM,
        memo_type=MemoType.INFORMATIONAL,
        expiry_date: Union[str, date, None] = None,
        recipient_ids: Iterable = (),
        attachments: Sequence[AttachmentMeta] = (),
        is_draft: bool = False,
    ) -> CreatedMemo:
        creator = self._require_creator(actor)
        draft = self._build_draft(
            title=title,
            content=content,
            department=department,
            category=category,
            priority=priority,
            memo_type=memo_type,
            expiry_date=expiry_date,
        )
        recipients = self._validate_recipients(recipient_ids, creator_id=creator.user_id)

        if is_draft:
            status, steps, notifications = MemoStatus.DRAFT, [], []
        else:
            if not recipients:
                raise ValidationError("Select at least one recipient")
            steps = self._plan_approvals(creator, draft.memo_type)
            status, notifications = self._route(draft.title, steps=steps, recipient_ids=recipients)

        year = now_local().year
        prefix = reference_prefix(year=year, department=draft.department)
        reference_number = next_reference_number(
            year=year,
            department=draft.department,
            last_reference=self._memos.last_reference_with_prefix(prefix),
        )
        memo_uuid = str(uuid.uuid4())

        memo_id = self._memos.create_memo(
            draft=draft,
            uuid=memo_uuid,
            reference_number=reference_number,
            status=status,
            created_by=creator.user_id,
            recipient_ids=recipients,
            attachments=list(attachments or ()),
            approvals=steps,
            notifications=notifications,
        )
        return CreatedMemo(memo_id=memo_id, memo_uuid=memo_uuid, reference_number=reference_number, status=status)

    def submit_memo(self, *, actor: SessionUser, memo_id: int) -> MemoStatus:
        memo = self._require_memo(memo_id)
        if memo.created_by != actor.user_id:
            raise AuthorizationError("Only the author can submit this memo")
        if memo.status != MemoStatus.DRAFT:
            raise ValidationError("Only draft memos can be submitted")

        recipient_ids = [r.recipient_id for r in self._memos.list_recipients(memo.memo_id)]
        if not recipient_ids:
            raise ValidationError("Select at least one recipient")

        creator = self._require_creator(actor)
        history = self._memos.list_approvals(memo.memo_id)
        start_step = max((a.step_order for a in history), default=0) + 1
        steps = self._plan_approvals(creator, memo.memo_type, start_step=start_step)
        status, notifications = self._route(memo.title, steps=steps, recipient_ids=recipient_ids)

        ok = self._memos.submit_draft(
            memo_id=memo.memo_id,
            status=status,
            approvals=steps,
            notifications=notifications,
            actor_id=actor.user_id,
        )
        if not ok:
            raise ValidationError("Only draft memos can be submitted")
        return status

    def _require_current_step(self, *, actor: SessionUser, memo: Memo, approval_id: int) -> tuple[MemoApproval, list[MemoApproval]]:
        approvals = list(self._memos.list_approvals(memo.memo_id))
        target = next((a for a in approvals if a.approval_id == int(approval_id)), None)
        if not target:
            raise NotFoundError("Approval step not found")
        if not target.is_pending:
            raise ValidationError("This approval step has already been processed")

        current = _current_step(approvals)
        if current is None or current.approval_id != target.approval_id:
            raise ValidationError("This memo is waiting on an earlier approval step")
        if target.approver_id != actor.user_id:
            raise AuthorizationError("You are not the approver for this step")
        return target, approvals

    def approve_memo(self, *, actor: SessionUser, memo_id: int, approval_id: int) -> MemoStatus:
        memo = self._require_memo(memo_id)
        target, approvals = self._require_current_step(actor=actor, memo=memo, approval_id=approval_id)

        remaining = [a for a in approvals if a.is_pending and a.approval_id != target.approval_id]
        next_step = _current_step(remaining)

        if next_step:
            new_status = MemoStatus.REVIEWER_APPROVAL
            creator = memo.creator_name or "A colleague"
            notifications = [
                NewNotification(
                    user_id=next_step.approver_id,
                    message=f'{creator}\'s memo "{memo.title}" has been reviewed. Your final decision is required.',
                )
            ]
        else:
            new_status = MemoStatus.DISTRIBUTED
            recipient_ids = [r.recipient_id for r in self._memos.list_recipients(memo.memo_id)]
            notifications = _distributed_messages(memo.title, creator_id=memo.created_by, recipient_ids=recipient_ids)

        ok = self._memos.record_approval(
            approval_id=target.approval_id,
            memo_id=memo.memo_id,
            actor_id=actor.user_id,
            new_status=new_status,
            notifications=notifications,
        )
        if not ok:
            raise ValidationError("This approval step has already been processed")
        return new_status

    def reject_memo(self, *, actor: SessionUser, memo_id: int, approval_id: int, comments: str = "") -> None:
        memo = self._require_memo(memo_id)
        target, _ = self._require_current_step(actor=actor, memo=memo, approval_id=approval_id)

        notifications = [
            NewNotification(
                user_id=memo.created_by,
                message=f'Your memo "{memo.title}" was rejected by the review committee.',
            )
        ]
        ok = self._memos.record_rejection(
            approval_id=target.approval_id,
            memo_id=memo.memo_id,
            actor_id=actor.user_id,
            comments=(comments or "").strip() or DEFAULT_REJECTION_COMMENT,
            notifications=notifications,
        )
        if not ok:
            raise ValidationError("This approval step has already been processed")

    def acknowledge_memo(self, *, actor: SessionUser, memo_id: int) -> None:
        memo = self._require_memo(memo_id)
        record = next((r for r in self._memos.list_recipients(memo.memo_id) if r.recipient_id == actor.user_id), None)
        if not record:
            raise AuthorizationError("You are not a recipient of this memo")
        if memo.status not in (MemoStatus.DISTRIBUTED, MemoStatus.ARCHIVED):
            raise ValidationError("This memo has not been distributed yet")
        if record.acknowledged_at:
            raise ValidationError("You have already acknowledged this memo")

        ok = self._memos.acknowledge(
            memo_id=memo.memo_id,
            recipient_id=actor.user_id,
            notifications=[
                NewNotification(
                    user_id=memo.created_by,
                    message=f'{actor.username} has acknowledged your memo "{memo.title}".',
                )
            ],
        )
        if not ok:
            raise ValidationError("You have already acknowledged this memo")

    def mark_memo_as_read(self, *, actor: SessionUser, memo_id: int) -> bool:
        return self._memos.mark_read(memo_id=int(memo_id), recipient_id=actor.user_id)

    def archive_memo(self, *, actor: SessionUser, memo_id: int) -> None:
        memo = self._require_memo(memo_id)
        if memo.created_by != actor.user_id and not actor.is_admin:
            raise AuthorizationError("Only the author or an administrator can archive this memo")
        if memo.status != MemoStatus.DISTRIBUTED:
            raise ValidationError("Only distributed memos can be archived")

        ok = self._memos.change_status(
            memo_id=memo.memo_id,
            from_status=MemoStatus.DISTRIBUTED,
            to_status=MemoStatus.ARCHIVED,
            actor_id=actor.user_id,
            action="ARCHIVE_MEMO",
        )
        if not ok:
            raise ValidationError("Only distributed memos can be archived")

    # ---------- queries ----------

    def get_memo_detail(self, *, actor: SessionUser, memo_uuid: str) -> MemoDetail:
        memo = self._memos.get_by_uuid((memo_uuid or "").strip())
        if not memo:
            raise NotFoundError("Memo not found")

        approvals = list(self._memos.list_approvals(memo.memo_id))
        recipients = list(self._memos.list_recipients(memo.memo_id))

        is_creator = memo.created_by == actor.user_id
        in_chain = any(a.approver_id == actor.user_id for a in approvals)
        recipient_record = next((r for r in recipients if r.recipient_id == actor.user_id), None)
        is_reviewer = actor.has_role(Role.REVIEWER)

        if not (is_creator or in_chain or recipient_record or actor.is_admin or is_reviewer):
            raise AuthorizationError("You do not have access to this memo")

        current = _current_step(approvals)
        return MemoDetail(
            memo=memo,
            approvals=approvals,
            recipients=recipients,
            attachments=list(self._memos.list_attachments(memo.memo_id)),
            is_creator=is_creator,
            current_approval=current,
            is_pending_approver=bool(current and current.approver_id == actor.user_id),
            is_reviewer=is_reviewer,
            is_admin=actor.is_admin,
            recipient_record=recipient_record,
        )

    def list_my_memos(self, *, actor: SessionUser) -> Sequence[dict]:
        return self._memos.list_by_creator(actor.user_id)

    def list_pending_approvals(self, *, actor: SessionUser) -> Sequence[dict]:
        return self._memos.list_pending_for_approver(actor.user_id)

    def list_tasks(self, *, actor: SessionUser) -> dict:
        return {
            "approvals": list(self._memos.list_pending_for_approver(actor.user_id)),
            "distributed": list(self._memos.list_distributed_for_recipient(actor.user_id)),
        }

    def search_memos(self, *, actor: SessionUser, term: str) -> Sequence[dict]:
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_TERM_LENGTH:
            return []
        return self._memos.search_visible(term=term, user_id=actor.user_id, limit=SEARCH_RESULT_LIMIT)
