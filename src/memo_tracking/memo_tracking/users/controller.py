from __future__ import annotations

from flask import Flask, flash, jsonify, redirect, render_template, request, session, url_for

from ..common.guards import admin_required, api_admin_required, current_actor, login_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, DomainError


def register(app: Flask, container: Container) -> None:
    def _form_line_manager():
        value = (request.form.get("line_manager_id") or "").strip()
        return int(value) if value.isdigit() else None

    def _unexpected(action: str):
        app.logger.exception("Unexpected error while %s", action)
        if bool(app.config.get("DEBUG", False)):
            flash(f"System error while {action}", "danger")
        else:
            flash("Something went wrong. Please try again.", "danger")

    @app.route("/", methods=["GET", "POST"], endpoint="login")
    def login():
        if "user_id" in session:
            return redirect(url_for("dashboard"))

        if request.method == "POST":
            email = request.form.get("email", "")
            password = request.form.get("password", "")
            remember = request.form.get("remember_me")

            try:
                s_user = container.auth_service.authenticate(email, password)

                session.clear()
                session.permanent = bool(remember)
                session.update(s_user.to_session())

                app.logger.info("User %s signed in", s_user.user_id)
                return redirect(url_for("dashboard"))
            except AuthenticationError as e:
                flash(str(e), "danger")
            except Exception:
                _unexpected("signing in")

        return render_template("login.html")

    @app.route("/logout", endpoint="logout")
    def logout():
        session.clear()
        flash("You have been signed out.", "info")
        return redirect(url_for("login"))

    @app.route("/settings", methods=["GET", "POST"], endpoint="settings")
    @login_required
    def settings():
        actor = current_actor()
        if request.method == "POST":
            new_password = request.form.get("new_password", "")
            if new_password != request.form.get("confirm_password", ""):
                flash("New passwords do not match.", "danger")
                return render_template("settings.html", current_user=actor)
            try:
                container.user_service.change_password(
                    actor=actor,
                    current_password=request.form.get("current_password", ""),
                    new_password=new_password,
                )
                flash("Password updated successfully.", "success")
                return redirect(url_for("settings"))
            except DomainError as e:
                flash(str(e), "danger")
            except Exception:
                _unexpected("changing the password")

        return render_template("settings.html", current_user=actor)

    @app.route("/admin/users", endpoint="admin_users")
    @admin_required
    def admin_users():
        users = container.user_service.list_admin_view(actor=current_actor())
        return render_template("users/index.html", users=users, current_user=current_actor())

    @app.route("/admin/users/new", methods=["GET", "POST"], endpoint="add_user")
    @admin_required
    def add_user():
        if request.method == "POST":
            try:
                container.user_service.create_account(
                    actor=current_actor(),
                    staff_id=request.form.get("staff_id", ""),
                    username=request.form.get("username", ""),
                    email=request.form.get("email", ""),
                    password=request.form.get("password", ""),
                    department=request.form.get("department", ""),
                    roles=request.form.getlist("roles"),
                    line_manager_id=_form_line_manager(),
                )
                flash("User account created.", "success")
                return redirect(url_for("admin_users"))
            except DomainError as e:
                flash(str(e), "danger")
            except Exception:
                _unexpected("creating the account")

        return render_template(
            "users/form.html",
            user=None,
            roles=list(Role),
            managers=container.user_service.list_managers(),
            current_user=current_actor(),
        )

    @app.route("/admin/users/<int:user_id>/edit", methods=["GET", "POST"], endpoint="edit_user")
    @admin_required
    def edit_user(user_id: int):
        actor = current_actor()
        if request.method == "POST":
            try:
                container.user_service.update_account(
                    actor=actor,
                    user_id=user_id,
                    username=request.form.get("username", ""),
                    email=request.form.get("email", ""),
                    department=request.form.get("department", ""),
                    roles=request.form.getlist("roles"),
                    is_active=request.form.get("is_active") == "1",
                    line_manager_id=_form_line_manager(),
                )
                flash("User account updated.", "success")
                return redirect(url_for("admin_users"))
            except DomainError as e:
                flash(str(e), "danger")
            except Exception:
                _unexpected("updating the account")

        try:
            user = container.user_service.get_user(actor=actor, user_id=user_id)
        except DomainError as e:
            flash(str(e), "danger")
            return redirect(url_for("admin_users"))

        return render_template(
            "users/form.html",
            user=user,
            roles=list(Role),
            managers=[m for m in container.user_service.list_managers() if m["id"] != user_id],
            current_user=actor,
        )

    @app.route("/admin/users/<int:user_id>/delete", methods=["POST"], endpoint="delete_user")
    @admin_required
    def delete_user(user_id: int):
        try:
            container.user_service.delete_user(actor=current_actor(), user_id=user_id)
            flash("User deleted.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception:
            _unexpected("deleting the user")

        return redirect(url_for("admin_users"))

    @app.route("/admin/users/<int:user_id>/toggle", methods=["POST"], endpoint="toggle_user")
    @admin_required
    def toggle_user(user_id: int):
        try:
            active = container.user_service.toggle_status(actor=current_actor(), user_id=user_id)
            flash("User activated." if active else "User deactivated.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception:
            _unexpected("changing the user status")

        return redirect(url_for("admin_users"))

    @app.route("/api/users/check-duplicate", methods=["GET"], endpoint="api_check_duplicate")
    @api_admin_required
    def api_check_duplicate():
        result = container.user_service.check_duplicate(
            staff_id=request.args.get("staff_id"),
            email=request.args.get("email"),
        )
        return jsonify(result.to_dict())

    @app.route("/api/hr-staff", methods=["GET"], endpoint="api_hr_staff")
    @api_admin_required
    def api_hr_staff():
        rows = container.user_service.search_hr_staff(request.args.get("q", ""))
        return jsonify([r.to_dict() for r in rows])
