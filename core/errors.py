"""
core/errors.py -- Service-layer exception taxonomy.

Every exception carries an HTTP status_code and a stable error_code so the
API layer can map it to the {"error": {code, message}} envelope without
inspecting the type. Nothing here is retried internally: every failure goes
back to the caller, who decides.

  ValidationError  400  malformed input, duplicate-style rejections
  AuthError        401  invalid credentials / invalid token, uniform messages
  NotFoundError    404  lookup misses
  ConflictError    409  constraint violation from a concurrent write; retryable

Layer rule: core/ is the kernel and imports nothing from the project.
"""

from __future__ import annotations

from enum import Enum


class ServiceError(Exception):
    """Base class for service-layer exceptions mapped to HTTP responses."""

    status_code: int = 400
    error_code: str = "validation_error"

    def __init__(self, message: str, *, detail: dict | None = None, error_code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}
        if error_code is not None:
            self.error_code = error_code


class ValidationError(ServiceError):
    """Request validation failed (400)."""

    status_code = 400
    error_code = "validation_error"


class NotFoundError(ServiceError):
    """Requested resource not found (404)."""

    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    """A uniqueness constraint lost a race with a concurrent write (409).

    The request did not mutate anything and may be retried as-is.
    """

    status_code = 409
    error_code = "conflict"
    retryable = True


class AuthFailure(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_TOKEN = "invalid_token"


# One message per reason regardless of the underlying cause, so the response
# never says which factor failed.
_AUTH_MESSAGES = {
    AuthFailure.INVALID_CREDENTIALS: "Invalid email or password.",
    AuthFailure.INVALID_TOKEN: "Invalid or expired refresh token.",
}


class AuthError(ServiceError):
    """Authentication failed (401)."""

    status_code = 401

    def __init__(self, reason: AuthFailure) -> None:
        super().__init__(_AUTH_MESSAGES[reason])
        self.reason = reason
        self.error_code = reason.value


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "AuthFailure",
    "AuthError",
]
