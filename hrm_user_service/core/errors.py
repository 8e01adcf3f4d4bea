"""Service error taxonomy.

Every error raised by the service layer derives from ``ServiceError`` and
carries the HTTP status and a stable machine-readable ``code``. The API layer
translates them in one exception handler (see ``api/main.py``).
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None) -> None:
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Malformed input that passed schema binding but fails a domain rule."""

    status_code = 422
    code = "validation_error"


class NotFoundError(ServiceError):
    status_code = 404
    code = "not_found"


class ConflictError(ServiceError):
    """Unique constraint violation (username, phone, email)."""

    status_code = 409
    code = "conflict"


class AuthorizationError(ServiceError):
    status_code = 401
    code = "unauthorized"


class InvalidCredentialsError(AuthorizationError):
    """Unknown username or wrong password. The message never says which."""

    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid username or password.") -> None:
        super().__init__(message)


class AccountInactiveError(AuthorizationError):
    status_code = 403
    code = "account_inactive"

    def __init__(self, message: str = "Account is inactive.") -> None:
        super().__init__(message)


class PermissionDeniedError(AuthorizationError):
    status_code = 403
    code = "forbidden"


class InvalidTokenError(AuthorizationError):
    code = "invalid_token"


class MalformedTokenError(InvalidTokenError):
    pass


class InvalidSignatureError(InvalidTokenError):
    pass


class TokenExpiredError(InvalidTokenError):
    """Token is past its ``exp``; clients should re-authenticate."""

    code = "token_expired"

    def __init__(self, message: str = "Token has expired.") -> None:
        super().__init__(message)


class DependencyError(ServiceError):
    """A load-bearing call to a sibling service failed."""

    status_code = 503
    code = "service_unavailable"


class InternalError(ServiceError):
    status_code = 500
    code = "internal_error"
