"""
SpeakerHub Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions, one per error class the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers registered in main.py translate them into JSON
       responses with the matching HTTP status.
Who:   Raised by services, the access-control layer and middleware.

Exception Hierarchy:
    SpeakerHubError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── AuthorizationError       → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── TicketGenerationError    → 500 (aborts the booking transaction)
    ├── DatabaseError            → 500
    └── IntegrationError         → never rendered; SMS/e-mail/calendar callers
                                   log it and carry on
"""

from typing import Any, Dict, Optional


class SpeakerHubError(Exception):
    """
    Base exception for all SpeakerHub application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only as `details`
                  by handlers that choose to)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SpeakerHubError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (missing fields, wrong types) are caught earlier by
    FastAPI and rendered by the same 400 handler.

    Example response:
        {
            "error": "validation_error",
            "message": "Invalid hour. Must be between 9 and 16 (inclusive).",
            "details": {"field": "hour"}
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


class AuthenticationError(SpeakerHubError):
    """Missing, invalid or expired credentials, or a wrong password."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(SpeakerHubError):
    """
    The caller is known but not allowed to do this.

    Covers role mismatches, access to another user's booking, and login
    attempts on an account that has not been verified yet.
    """

    def __init__(
        self,
        message: str = "Access forbidden",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SpeakerHubError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so routes never deal with HTTP status codes.
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


class ConflictError(SpeakerHubError):
    """
    The request collides with current state.

    When:  Slot already booked, booking already checked in, duplicate slot,
           email already registered, account already verified by a racing call.
    """

    def __init__(
        self,
        message: str = "The request conflicts with the current state",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(SpeakerHubError):
    """Client exceeded the per-IP limit on credential endpoints."""

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class TicketGenerationError(SpeakerHubError):
    """
    The QR ticket image could not be produced.

    Raised inside the booking transaction, so the whole unit rolls back and
    the slot stays free.
    """

    def __init__(
        self,
        message: str = "Could not generate the booking ticket. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SpeakerHubError):
    """
    Unexpected database failure.

    The message returned to the client is always generic; details stay in
    the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IntegrationError(SpeakerHubError):
    """An outbound provider (SMS, e-mail, calendar) failed after retries."""

    def __init__(
        self,
        provider: str,
        message: str = "External provider call failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["provider"] = provider
        super().__init__(message=message, context=ctx)
        self.provider = provider
