# FlagDeck/flagdeck/errors/exceptions.py
"""Domain exceptions for FlagDeck.

Every failure surfaced to API callers is an :class:`ApiError` subclass that
carries a stable error ``code`` and an HTTP ``status_code``. Repositories and
services raise them; :mod:`flagdeck.errors.handlers` renders them.
"""


from __future__ import annotations

from typing import Any, Dict, Optional


class ApiError(Exception):
    """Base class for errors rendered as the standard JSON error envelope.

    Attributes:
        message: Human-readable description of the error.
        details: Optional structured context (field names, constraints...).
    """

    code = "invalid_request"
    status_code = 400

    def __init__(
        self, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        """Return the ``{"error": {...}}`` envelope for this error."""
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


class InvalidRequest(ApiError):
    """Malformed input (HTTP 400)."""


class InvalidEnvironment(InvalidRequest):
    """An environment key is empty or does not exist (HTTP 400)."""

    def __init__(self, environment: Optional[str]) -> None:
        if environment:
            message = f"Environment '{environment}' does not exist"
        else:
            message = "Environment is required"
        super().__init__(message, {"environment": environment or ""})
        self.environment = environment


class DuplicateKey(ApiError):
    """A uniqueness constraint on ``key`` was violated (HTTP 409)."""

    status_code = 409

    def __init__(self, message: str, field: str = "key") -> None:
        super().__init__(message, {"field": field, "constraint": "unique"})


class EnvironmentInUse(ApiError):
    """An environment is still referenced by flags or rules (HTTP 409)."""

    status_code = 409


class NotFound(ApiError):
    """Unknown flag, rule or environment id (HTTP 404)."""

    code = "not_found"
    status_code = 404


class Unauthorized(ApiError):
    """Missing or invalid API key (HTTP 401)."""

    code = "unauthorized"
    status_code = 401


class RateLimitExceeded(ApiError):
    """The caller exhausted its request budget (HTTP 429)."""

    code = "rate_limit_exceeded"
    status_code = 429


class InternalError(ApiError):
    """Unexpected failure; the message is never shown to callers (HTTP 500)."""

    code = "internal_error"
    status_code = 500


class StorageError(InternalError):
    """The storage backend failed to complete an operation."""
