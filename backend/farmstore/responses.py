# Overview: Standard JSON envelope for every API response.

"""
Every endpoint answers with the same envelope:

    {"success": bool, "message": str, "data": ..., "errors": [...]}

`data` and `errors` are omitted when empty so clients can test for presence.
"""

from __future__ import annotations

from typing import Any

from flask import abort, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from .extensions import db


def api_success(message: str, data: Any = None, status: int = 200):
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def api_error(message: str, errors: list | None = None, status: int = 400, data: Any = None):
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def json_body() -> dict:
    """The request JSON as a dict; empty when absent, 400 when not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")
    return data


def register_error_handlers(app) -> None:
    """Map framework-level errors onto the envelope."""

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return api_error(exc.description or exc.name, status=exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        current_app.logger.exception("Unhandled error")
        return api_error("Internal server error", status=500)
