"""Custom exceptions for vpsdash.

All exceptions include an HTTP status_code attribute and a machine-readable
error_code for easy integration with web frameworks like FastAPI.
"""


class VpsDashError(Exception):
    """Base exception for vpsdash.

    Attributes:
        status_code: HTTP status code for API error responses.
        error_code: Machine-readable error identifier.
    """

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class APIError(VpsDashError):
    """Dashboard backend request failed.

    Raised when the backend answers with a non-success status or cannot
    be reached at all.
    """

    status_code: int = 502  # Bad Gateway (upstream failure)
    error_code: str = "api_error"

    def __init__(self, message: str, upstream_status: int | None = None) -> None:
        self.upstream_status = upstream_status
        super().__init__(message)


class AuthenticationRequiredError(APIError):
    """Backend rejected the request credentials."""

    status_code: int = 401  # Unauthorized
    error_code: str = "authentication_required"


class TargetNotFoundError(VpsDashError):
    """Target app (or its progress view) does not exist."""

    status_code: int = 404  # Not Found
    error_code: str = "target_not_found"

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"Target {target} not found")


class InvalidTransitionError(ValueError):
    """Run status change outside Pending -> Running -> Completed | Error."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition run from {current} to {target}")
