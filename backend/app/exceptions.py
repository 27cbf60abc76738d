"""
Voyage Teams Backend: Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the tech-stack voting subsystem.
How:   Each exception class carries a message, an optional context dict, and
       an explicit `ErrorKind` tag. Services raise them; the single handler
       registered in main.py maps the kind to an HTTP status code.
Who:   Raised by services and the auth dependency; caught by global handlers.

Exception Hierarchy:
    VoyageError (base)
    ├── BadRequestError    → ErrorKind.BAD_REQUEST  → 400
    ├── UnauthorizedError  → ErrorKind.UNAUTHORIZED → 401
    ├── NotFoundError      → ErrorKind.NOT_FOUND    → 404
    └── ConflictError      → ErrorKind.CONFLICT     → 409

    Services stay transport-agnostic: they only know the kind. The
    kind-to-status table lives in `STATUS_BY_KIND` and is used by the
    boundary layer alone.
"""

import enum
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Machine-readable failure category, also used as the response `error` code."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


# Boundary mapping from error kind to HTTP status
STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
}


class VoyageError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        kind:     The error category; decides the response status code
        message:  User-facing description naming the offending entity and key
        context:  Extra structured info, returned as `details` and logged
    """

    kind: ErrorKind = ErrorKind.BAD_REQUEST

    def __init__(
        self,
        message: str = "The request could not be processed",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(VoyageError):
    """
    Raised when the caller's request cannot be honoured as sent.

    When:    Caller is not a member of the team, a per-category selection cap
             is exceeded, or a referenced tech item/category is unknown.
    """

    kind = ErrorKind.BAD_REQUEST

    def __init__(
        self,
        message: str = "Bad request",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(VoyageError):
    """Raised when no authenticated caller identity reaches the boundary."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(VoyageError):
    """
    Raised when a referenced resource does not exist.

    SQLAlchemy returns None for missing rows; the service layer converts that
    into this exception so the boundary can answer 404.

    Example:
        NotFoundError(resource="team", resource_id="7")
        → "team with ID '7' was not found"
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = dict(context or {})
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(VoyageError):
    """
    Raised when a write collides with a uniqueness constraint.

    When:    A member votes twice for the same tech item, or a tech name is
             proposed twice within the same team and category.
    How:     Produced only by `app.database.unique_violation_as_conflict`.
    """

    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
