from __future__ import annotations

from typing import Any, Optional

from flask import jsonify


def ok(data: Any = None, *, message: Optional[str] = None, status: int = 200, **extra):
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def fail(message: str, *, status: int = 400, data: Any = None, error: Optional[str] = None):
    body: dict[str, Any] = {"success": False, "message": message}
    if data is not None:
        body["data"] = data
    if error:
        body["error"] = error
    return jsonify(body), status


def serialize(value: Any) -> Any:
    """Best-effort JSON shape for payloads carried by domain errors."""
    if value is None:
        return None
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value
