"""
Voyage Teams Backend: User Route Handlers
==========================================

What:  The caller's profile and team memberships, and user lookups.
Who:   /me is for any caller. The list and lookup endpoints are meant for
       development and admin use; role checks belong to the gateway that
       forwards the caller identity.

Endpoints:
    GET  /api/users                  → All users with memberships
    GET  /api/users/me               → Caller's own profile
    GET  /api/users/{user_id}        → One user by id (400 on a malformed UUID)
    POST /api/users/lookup-by-email  → One user by email
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedCaller, get_current_caller
from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.user import PrivateUserResponse, UserLookupByEmailRequest
from app.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get(
    "",
    response_model=List[PrivateUserResponse],
    summary="List all users",
)
async def list_users(
    db: AsyncSession = Depends(get_db_session),
) -> List[PrivateUserResponse]:
    return await user_service.list_users(db)


@router.get(
    "/me",
    response_model=PrivateUserResponse,
    responses={
        401: {"description": "Missing caller identity", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Get the caller's own details",
)
async def get_profile(
    db: AsyncSession = Depends(get_db_session),
    caller: AuthenticatedCaller = Depends(get_current_caller),
) -> PrivateUserResponse:
    return await user_service.get_private_profile(db, caller)


@router.post(
    "/lookup-by-email",
    response_model=PrivateUserResponse,
    status_code=status.HTTP_200_OK,
    responses={
        404: {"description": "No user with that email", "model": ErrorResponse},
    },
    summary="Get a user's details by email",
)
async def lookup_user_by_email(
    body: UserLookupByEmailRequest,
    db: AsyncSession = Depends(get_db_session),
) -> PrivateUserResponse:
    return await user_service.get_user_by_email(db, body.email)


# Declared after /me so that "me" is not taken as a user id
@router.get(
    "/{user_id}",
    response_model=PrivateUserResponse,
    responses={
        400: {"description": "user_id is not a valid UUID", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Get a user's details by id",
)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> PrivateUserResponse:
    return await user_service.get_user_by_id(db, user_id)
