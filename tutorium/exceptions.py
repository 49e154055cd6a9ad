"""
Tutorium Backend — Custom Exception Hierarchy
===============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and auth dependencies; caught by global handlers.
When:  During request processing when recoverable errors occur.

Exception Hierarchy:
    TutoriumError (base)
    ├── ValidationError          → 400 Bad Request (business rule violated)
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

Schema-level problems (missing or mistyped body fields) never reach this
module: FastAPI rejects them with 422 before the handler runs.
"""

from typing import Any, Dict, Optional


class TutoriumError(Exception):
    """
    Base exception for all Tutorium application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; returned as `details` for 4xx errors,
                  only logged for 5xx errors
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TutoriumError):
    """
    Raised when a request is well-formed but breaks a business rule.

    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Group is at maximum capacity",
            "details": {"field": "group_id", "max_students": 6}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(TutoriumError):
    """
    Raised when a request carries no usable credentials.

    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    When:    Missing token, bad signature, expired token, unknown or inactive
             user, wrong password at login.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(TutoriumError):
    """
    Raised when an authenticated user may not perform an action.

    HTTP:    403 Forbidden
    When:    Role not allowed on the endpoint, or the resource belongs to
             another teacher / another group.
    """

    def __init__(
        self,
        message: str = "Insufficient permissions",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TutoriumError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found

    SQLAlchemy returns None for missing records. Services convert
    None → NotFoundError so routes never deal with HTTP status codes.
    A custom `message` replaces the generated one where the API promises
    a specific text (e.g. "Lesson not found or access denied").
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"{resource} not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = str(resource_id)
        super().__init__(message=message, context=ctx)


class ConflictError(TutoriumError):
    """
    Raised when a write would duplicate an existing unique resource.

    HTTP:    409 Conflict
    When:    Registering a taken email, a second group with the same name
             for one teacher, enrolling a student who already has a group.
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(TutoriumError):
    """
    Raised when file system operations fail.

    HTTP:    500 Internal Server Error
    When:    Disk full, permission denied, directory not writable, I/O error.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(TutoriumError):
    """
    Raised when a database operation fails unexpectedly.

    HTTP:    500 Internal Server Error
    Context is logged server-side and never returned to the client.
    """

    def __init__(
        self,
        message: str = "A database error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(TutoriumError):
    """
    Raised when a client exceeds the per-IP rate limit.

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(
            message=f"Too many requests. Please wait {retry_after} seconds before retrying.",
            context=ctx,
        )
        self.retry_after = retry_after
