from __future__ import annotations

from flask import Flask, render_template

from ..common.guards import admin_required, current_actor, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        actor = current_actor()
        stats = container.report_service.dashboard_stats(actor=actor)
        notifications = container.notification_service.list_for_user(user_id=actor.user_id)
        return render_template(
            "dashboard.html",
            stats=stats,
            notifications=notifications,
            current_user=actor,
        )

    @app.route("/reports", endpoint="reports")
    @admin_required
    def reports():
        overview = container.report_service.overview(actor=current_actor())
        return render_template("reports/overview.html", overview=overview, current_user=current_actor())
