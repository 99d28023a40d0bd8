from __future__ import annotations

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from ..common.guards import api_login_required, current_actor, login_required, render_forbidden
from ..container import Container
from ..core.enums import MemoPriority, MemoStatus, MemoType
from ..core.exceptions import AuthorizationError, DomainError, NotFoundError


def register(app: Flask, container: Container) -> None:
    svc = container.memo_service

    def _unexpected(action: str):
        app.logger.exception("Unexpected error while %s", action)
        flash("Something went wrong. Please try again.", "danger")

    def _new_memo_form(form=None):
        actor = current_actor()
        return render_template(
            "memos/new.html",
            form=form or {},
            memo_types=list(MemoType),
            priorities=list(MemoPriority),
            recipients=[u for u in container.user_service.list_recipients() if u["id"] != actor.user_id],
            current_user=actor,
        )

    @app.route("/memos/new", methods=["GET", "POST"], endpoint="new_memo")
    @login_required
    def new_memo():
        if request.method == "POST":
            try:
                created = svc.create_memo(
                    actor=current_actor(),
                    title=request.form.get("title", ""),
                    content=request.form.get("content", ""),
                    department=request.form.get("department", ""),
                    category=request.form.get("category", ""),
                    priority=request.form.get("priority") or MemoPriority.MEDIUM.value,
                    memo_type=request.form.get("memo_type", ""),
                    expiry_date=request.form.get("expiry_date", ""),
                    recipient_ids=request.form.getlist("recipients"),
                    is_draft=request.form.get("action") == "draft",
                )
                if created.status == MemoStatus.DRAFT:
                    flash(f"Draft {created.reference_number} saved.", "success")
                else:
                    flash(f"Memo {created.reference_number} submitted ({created.status.value}).", "success")
                return redirect(url_for("memo_detail", memo_uuid=created.memo_uuid))
            except DomainError as e:
                flash(str(e), "danger")
            except Exception:
                _unexpected("creating the memo")
            return _new_memo_form(request.form)

        return _new_memo_form()

    @app.route("/memos", methods=["GET"], endpoint="my_memos")
    @login_required
    def my_memos():
        memos = svc.list_my_memos(actor=current_actor())
        return render_template("memos/list.html", memos=memos, current_user=current_actor())

    @app.route("/memos/<memo_uuid>", methods=["GET"], endpoint="memo_detail")
    @login_required
    def memo_detail(memo_uuid: str):
        actor = current_actor()
        try:
            detail = svc.get_memo_detail(actor=actor, memo_uuid=memo_uuid)
        except NotFoundError:
            return render_template("404.html", current_user=actor), 404
        except AuthorizationError:
            return render_forbidden()

        if detail.is_recipient and detail.memo.status == MemoStatus.DISTRIBUTED:
            if svc.mark_memo_as_read(actor=actor, memo_id=detail.memo.memo_id):
                # reload to show the new read_at
                detail = svc.get_memo_detail(actor=actor, memo_uuid=memo_uuid)

        return render_template("memos/detail.html", detail=detail, current_user=actor)

    def _memo_action(memo_uuid: str, action: str, run, success: str):
        """Resolve the memo the actor can see, run the workflow step, and come back to the detail page."""
        actor = current_actor()
        try:
            detail = svc.get_memo_detail(actor=actor, memo_uuid=memo_uuid)
            run(actor, detail.memo.memo_id)
            flash(success, "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception:
            _unexpected(action)
        return redirect(url_for("memo_detail", memo_uuid=memo_uuid))

    def _approval_id() -> int:
        value = (request.form.get("approval_id") or "").strip()
        return int(value) if value.isdigit() else 0

    @app.route("/memos/<memo_uuid>/approve", methods=["POST"], endpoint="approve_memo")
    @login_required
    def approve_memo(memo_uuid: str):
        return _memo_action(
            memo_uuid,
            "approving the memo",
            lambda actor, memo_id: svc.approve_memo(actor=actor, memo_id=memo_id, approval_id=_approval_id()),
            "Memo approved.",
        )

    @app.route("/memos/<memo_uuid>/reject", methods=["POST"], endpoint="reject_memo")
    @login_required
    def reject_memo(memo_uuid: str):
        return _memo_action(
            memo_uuid,
            "rejecting the memo",
            lambda actor, memo_id: svc.reject_memo(
                actor=actor,
                memo_id=memo_id,
                approval_id=_approval_id(),
                comments=request.form.get("comments", ""),
            ),
            "Memo rejected and returned to the author.",
        )

    @app.route("/memos/<memo_uuid>/acknowledge", methods=["POST"], endpoint="acknowledge_memo")
    @login_required
    def acknowledge_memo(memo_uuid: str):
        return _memo_action(
            memo_uuid,
            "acknowledging the memo",
            lambda actor, memo_id: svc.acknowledge_memo(actor=actor, memo_id=memo_id),
            "Memo acknowledged.",
        )

    @app.route("/memos/<memo_uuid>/read", methods=["POST"], endpoint="read_memo")
    @login_required
    def read_memo(memo_uuid: str):
        return _memo_action(
            memo_uuid,
            "marking the memo as read",
            lambda actor, memo_id: svc.mark_memo_as_read(actor=actor, memo_id=memo_id),
            "Memo marked as read.",
        )

    @app.route("/memos/<memo_uuid>/submit", methods=["POST"], endpoint="submit_memo")
    @login_required
    def submit_memo(memo_uuid: str):
        return _memo_action(
            memo_uuid,
            "submitting the memo",
            lambda actor, memo_id: svc.submit_memo(actor=actor, memo_id=memo_id),
            "Memo submitted for approval.",
        )

    @app.route("/memos/<memo_uuid>/archive", methods=["POST"], endpoint="archive_memo")
    @login_required
    def archive_memo(memo_uuid: str):
        return _memo_action(
            memo_uuid,
            "archiving the memo",
            lambda actor, memo_id: svc.archive_memo(actor=actor, memo_id=memo_id),
            "Memo archived.",
        )

    @app.route("/approvals", methods=["GET"], endpoint="approvals")
    @login_required
    def approvals():
        pending = svc.list_pending_approvals(actor=current_actor())
        return render_template("memos/approvals.html", memos=pending, current_user=current_actor())

    @app.route("/tasks", methods=["GET"], endpoint="tasks")
    @login_required
    def tasks():
        data = svc.list_tasks(actor=current_actor())
        return render_template(
            "memos/tasks.html",
            approvals=data["approvals"],
            distributed=data["distributed"],
            current_user=current_actor(),
        )

    @app.route("/api/search", methods=["GET"], endpoint="api_search")
    @api_login_required
    def api_search():
        try:
            results = svc.search_memos(actor=current_actor(), term=request.args.get("q", ""))
        except Exception:
            app.logger.exception("Search failed")
            return jsonify({"error": "Search failed"}), 500
        return jsonify(results)
