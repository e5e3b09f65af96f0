# FlagDeck/flagdeck/errors/handlers.py
"""Centralized JSON error handling for the FlagDeck API.

Registers Flask error handlers so that every failure is returned as the
standard envelope ``{"error": {"code", "message", "details"?}}`` instead of
an HTML page or a stack trace.
"""


from __future__ import annotations

from typing import Any

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from flagdeck.errors.exceptions import ApiError, InternalError
from flagdeck.logging_config import get_logger


logger = get_logger(__name__)

_OPAQUE_MESSAGE = "An unexpected error occurred"


def _code_for_status(status: int) -> str:
    """Map an HTTP status code to one of the envelope error codes."""
    if status == 401:
        return "unauthorized"
    if status == 404:
        return "not_found"
    if status == 429:
        return "rate_limit_exceeded"
    if status >= 500:
        return "internal_error"
    return "invalid_request"


def _envelope(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers on ``app``.

    Args:
        app: The Flask application instance to configure.
    """

    @app.errorhandler(InternalError)
    def _on_internal(err: InternalError) -> tuple[Any, int]:
        """Log storage/internal failures and hide their details."""
        logger.error(
            "internal_error",
            path=request.path,
            error=err.message,
            exc_info=err,
        )
        return jsonify(_envelope(err.code, _OPAQUE_MESSAGE)), err.status_code

    @app.errorhandler(ApiError)
    def _on_api_error(err: ApiError) -> tuple[Any, int]:
        """Render domain errors with their own code and status."""
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def _on_http_exception(err: HTTPException) -> tuple[Any, int]:
        """Fallback for routing-level HTTP errors (404, 405, 415...)."""
        status = err.code or 500
        message = err.description or err.name or "HTTP error"
        return jsonify(_envelope(_code_for_status(status), message)), status

    @app.errorhandler(Exception)
    def _on_unexpected(err: Exception) -> tuple[Any, int]:
        """Last-resort handler to avoid HTML stack traces."""
        logger.exception("unhandled_exception", path=request.path)
        return jsonify(_envelope("internal_error", _OPAQUE_MESSAGE)), 500
