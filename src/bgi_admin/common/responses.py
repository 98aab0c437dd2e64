from __future__ import annotations

from typing import Any, Optional

from flask import jsonify, request

from ..core.exceptions import ValidationError


def ok(message: Optional[str] = None, status: int = 200, **payload: Any):
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body.update(payload)
    return jsonify(body), status


def error(message: str, status: int = 400, **payload: Any):
    body: dict[str, Any] = {"success": False, "message": message}
    body.update(payload)
    return jsonify(body), status


def json_body() -> dict:
    if not request.data:
        return {}
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON body")
    return payload
