from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.decorators import current_user_id, login_required
from ..common.responses import ok
from ..container import Container
from .service import SessionUser


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service

    def _start_session(s_user: SessionUser, *, remember: bool = True) -> None:
        session.clear()
        session.permanent = remember
        app.permanent_session_lifetime = timedelta(days=7)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

    def _today():
        return container.clock.now().date()

    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def register_account():
        data = request.get_json(silent=True) or {}
        user = auth.register(
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            date_of_birth=data.get("date_of_birth"),
            role=data.get("role") or None,
        )
        _start_session(SessionUser(user_id=user.user_id, name=user.name, role=user.role))
        return ok(user.public_profile(_today()), message="Registration successful", status=201)

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        data = request.get_json(silent=True) or {}
        s_user = auth.authenticate(data.get("email", ""), data.get("password", ""))
        _start_session(s_user, remember=bool(data.get("remember_me", True)))
        profile = auth.get_profile(s_user.user_id)
        return ok(profile.public_profile(_today()), message="Login successful")

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return ok(message="Logged out")

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def me():
        profile = auth.get_profile(current_user_id())
        return ok(profile.public_profile(_today()))
