"""Custom exception classes for the CITT platform.

Every error carries a stable ``code`` so clients can branch without parsing
the human-readable message. ``main.py`` renders them as
``{"error": ..., "code": ..., **extra}``.
"""

from typing import Any, Dict, Optional


class PlatformError(Exception):
    """Base exception for the CITT platform."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(
        self,
        error: str = "An error occurred",
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        **extra: Any,
    ):
        self.message = error
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.code}
        body.update({k: v for k, v in self.extra.items() if v is not None})
        return body


class AuthenticationError(PlatformError):
    """Raised when authentication fails."""
    status_code = 401
    code = "AUTH_REQUIRED"


class AuthorizationError(PlatformError):
    """Raised when user lacks permission."""
    status_code = 403
    code = "FORBIDDEN"


class ResourceNotFoundError(PlatformError):
    """Raised when a requested resource is not found."""
    status_code = 404
    code = "NOT_FOUND"


class ResourceConflictError(PlatformError):
    """Raised when a resource already exists."""
    status_code = 409
    code = "CONFLICT"


class ValidationError(PlatformError):
    """Raised when input validation fails."""
    status_code = 400
    code = "VALIDATION_ERROR"


class InfrastructureError(PlatformError):
    """Raised when a storage lookup needed for a decision fails."""
    status_code = 500
    code = "INTERNAL_ERROR"
