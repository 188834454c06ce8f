from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from ..core.exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)

CONTAINER_KEY = "campus_portal.container"


def get_container():
    return current_app.extensions[CONTAINER_KEY]


def error_response(message: str, status: int, *, details: Optional[str] = None):
    body: dict[str, Any] = {"error": message}
    if details and current_app.config.get("DEBUG"):
        body["details"] = details
    return jsonify(body), status


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer"):
        parts = header.split(" ", 1)
        token = parts[1].strip() if len(parts) == 2 else ""
        return token or None
    return request.cookies.get("token") or None


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app: Flask) -> None:
    """All errors leave the API as {"error": ...} with the matching status."""

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return error_response(str(e), e.status_code)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e: RequestEntityTooLarge):
        return error_response("File too large", 413)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        if e.code == 404:
            return error_response("Endpoint not found", 404)
        return error_response(e.name, e.code or 500, details=e.description)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return error_response("Internal Server Error", 500, details=str(e))
