from __future__ import annotations

from functools import wraps

from flask import session

from ..core.enums import Role
from .responses import fail


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role"))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Not authorized. Please log in.", status=401)
        return view(*args, **kwargs)

    return wrapper


def manager_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Not authorized. Please log in.", status=401)
        if session.get("role") != Role.MANAGER.value:
            return fail("Access denied. Manager privileges required.", status=403)
        return view(*args, **kwargs)

    return wrapper
