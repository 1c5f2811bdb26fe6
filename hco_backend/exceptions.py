"""Session errors raised by services and translated at the HTTP boundary."""

from typing import Any, Optional


class SessionError(Exception):
    """Base exception for session authority failures.

    Attributes:
        code: Stable machine-readable error code for the JSON envelope
        status_code: HTTP status the boundary should answer with
        message: Client-safe description
        detail: Optional diagnostic detail, only exposed in development
    """

    code = "error"
    status_code = 500

    def __init__(self, message: str, detail: Optional[Any] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class InvalidInputError(SessionError):
    """Missing or malformed request fields."""

    code = "invalid_input"
    status_code = 400


class InvalidCredentialsError(SessionError):
    """Login failed. The message never says which part was wrong."""

    code = "invalid_credentials"
    status_code = 401

    def __init__(self, message: str = "Invalid credentials", detail: Optional[Any] = None):
        super().__init__(message, detail)


class UnauthenticatedError(SessionError):
    """No usable credential accompanied the request."""

    code = "unauthenticated"
    status_code = 401


class InvalidTokenError(UnauthenticatedError):
    """Token signature, structure or stored-value check failed."""

    code = "invalid_token"


class TokenExpiredError(UnauthenticatedError):
    """Token was well-formed and signed but is past its expiry."""

    code = "token_expired"


class ForbiddenError(SessionError):
    """Authenticated, but the role is not allowed."""

    code = "forbidden"
    status_code = 403


class ConflictError(SessionError):
    """A unique administrator field is already taken."""

    code = "conflict"
    status_code = 409


class NotFoundError(SessionError):
    """Referenced administrator no longer exists."""

    code = "not_found"
    status_code = 404
