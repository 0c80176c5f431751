"""Domain error taxonomy.

Services raise these; ``deficit.middleware.error_handler`` renders them as
``{"detail": ..., "code": ...}`` with the matching HTTP status.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(AppError):
    status_code = 400
    code = "bad_request"


class Unauthorized(AppError):
    status_code = 401
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"


class NotFound(AppError):
    status_code = 404
    code = "not_found"


class InvalidState(AppError):
    """A campaign action was attempted from a status that does not allow it."""

    status_code = 400
    code = "invalid_state"


class Duplicate(AppError):
    status_code = 409
    code = "duplicate"


class RateLimited(AppError):
    status_code = 429
    code = "rate_limited"


class UpstreamFailure(AppError):
    """The broadcast backend rejected a proxied call. Carries the backend's own status."""

    code = "upstream_failure"
