"""
HealthFinder API — Custom Exception Hierarchy
===============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and middleware; caught by global handlers.

Exception Hierarchy:
    HealthFinderError (base)
    ├── InvalidQueryError        → 400 Bad Request (malformed query parameters)
    ├── ValidationError          → 400 Bad Request (payload out of bounds)
    ├── NotFoundError            → 404 Not Found
    ├── StoreUnavailableError    → 503 Service Unavailable
    └── DatabaseError            → 500 Internal Server Error

None of these are retried automatically at request level.
"""

from typing import Any, Dict, Iterable, List, Optional


class HealthFinderError(Exception):
    """
    Base exception for all HealthFinder application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidQueryError(HealthFinderError):
    """
    Raised when query parameters are malformed.

    When:    Non-numeric or non-positive pageSize/pageNum, unknown sortField,
             avgRating outside 1-5, and similar.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Invalid query parameters",
        parameter: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if parameter:
            ctx["parameter"] = parameter
        super().__init__(message=message, context=ctx)
        self.parameter = parameter


class ValidationError(HealthFinderError):
    """
    Raised when a request payload fails validation.

    What:    One or more fields are missing, too short, too long or out of range.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Review payload is invalid: rating, title",
            "details": {"fields": ["rating", "title"], "errors": [...]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[Iterable[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        self.fields: List[str] = list(dict.fromkeys(fields or []))
        if self.fields:
            ctx["fields"] = self.fields
        super().__init__(message=message, context=ctx)


class NotFoundError(HealthFinderError):
    """
    Raised when a requested resource does not exist.

    When:    GET /clinics/{id} or POST /clinics/{id}/review with an unknown id.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StoreUnavailableError(HealthFinderError):
    """
    Raised when the backing store is not connected.

    When:    Startup connect failed, or the connection dropped mid-request.
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "Service unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(HealthFinderError):
    """
    Raised when store operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; the context is
    logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
