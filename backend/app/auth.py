"""
Voyage Teams Backend: Caller Identity
======================================

What:  The `AuthenticatedCaller` value type and the FastAPI dependency that
       builds it from the request.
How:   Authentication happens upstream (gateway / session layer). The
       gateway forwards the authenticated user's UUID in a header named by
       `settings.auth_user_header`. This module only parses that header.
Who:   Every tech-stack and user route depends on `get_current_caller`;
       services receive the resulting value, never the Request.
"""

import uuid
from dataclasses import dataclass

from fastapi import Request

from app.config import settings
from app.exceptions import UnauthorizedError


@dataclass(frozen=True)
class AuthenticatedCaller:
    """The resolved identity of whoever is making the request."""

    user_id: uuid.UUID


async def get_current_caller(request: Request) -> AuthenticatedCaller:
    """
    FastAPI dependency: build the caller from the forwarded identity header.

    Raises:
        UnauthorizedError: Header missing or not a UUID (→ 401)
    """
    raw = request.headers.get(settings.auth_user_header)
    if not raw:
        raise UnauthorizedError(
            message=f"Missing caller identity header '{settings.auth_user_header}'"
        )
    try:
        user_id = uuid.UUID(raw)
    except ValueError:
        raise UnauthorizedError(
            message=f"Caller identity header '{settings.auth_user_header}' is not a valid UUID",
            context={"value": raw},
        )
    return AuthenticatedCaller(user_id=user_id)
