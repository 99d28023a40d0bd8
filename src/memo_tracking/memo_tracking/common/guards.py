from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import flash, jsonify, redirect, render_template, session, url_for

from ..users.service import SessionUser


def current_actor() -> Optional[SessionUser]:
    if "user_id" not in session:
        return None
    return SessionUser.from_session(session)


def render_forbidden():
    return render_template("403.html", current_user=current_actor()), 403


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("login"))
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            return redirect(url_for("login"))
        if not actor.is_admin:
            return render_forbidden()
        return view(*args, **kwargs)

    return wrapper


def api_login_required(view):
    """Same as login_required, but answers JSON 401 instead of redirecting."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


def api_admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            return jsonify({"error": "Unauthorized"}), 401
        if not actor.is_admin:
            return jsonify({"error": "Forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper
