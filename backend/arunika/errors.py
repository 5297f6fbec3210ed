"""Error taxonomy shared by the request pipeline and the error handlers.

Every failure a handler can report is an `ApiError` carrying the HTTP
status, the short `error` string and an optional human readable
`message`. The envelope builder turns any of them into the standard
response shape.
"""

from typing import Optional

from .config import settings


class ApiError(Exception):
    """Base class for failures that map onto an error envelope."""

    status_code = 500
    default_error = "Internal server error"

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None):
        self.error = error or self.default_error
        self.message = message
        super().__init__(self.error)


class ValidationError(ApiError):
    """Missing or invalid input."""
    status_code = 400
    default_error = "Invalid request"


class MissingCredential(ApiError):
    """No `Authorization: Bearer <token>` header was supplied."""
    status_code = 401
    default_error = "No token provided"

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None):
        super().__init__(error, message or "Authorization header with Bearer token is required")


class InvalidOrExpiredCredential(ApiError):
    """The identity provider rejected the supplied token."""
    status_code = 401
    default_error = "Invalid or expired token"

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None):
        super().__init__(error, message or "Please login again")


class AccessDenied(ApiError):
    """Authenticated, but not allowed to act on the resource."""
    status_code = 403
    default_error = "Access denied"


class NotFound(ApiError):
    status_code = 404
    default_error = "Not found"


class UpstreamError(ApiError):
    """The data store or identity provider reported a failure."""
    status_code = 400
    default_error = "Upstream request failed"


class ProviderUnavailable(ApiError):
    """The identity provider could not be reached or failed unexpectedly."""
    status_code = 500
    default_error = "Authentication error"

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None):
        super().__init__(error, message if settings.is_development else "Something went wrong")


class InternalError(ApiError):
    """Unexpected exception; the detail is only exposed in development mode."""
    status_code = 500
    default_error = "Internal server error"

    @classmethod
    def from_exception(cls, exc: BaseException) -> "InternalError":
        return cls(message=public_message(exc))


def public_message(exc: BaseException) -> str:
    """Return the text a client may see for an unexpected exception."""
    if settings.is_development:
        return str(exc) or exc.__class__.__name__
    return "Something went wrong"
