"""
Voyage Teams Backend: User Service
===================================

What:  The caller's own profile, plus user lookups by id and by email.
Who:   GET /api/users/me, GET /api/users, GET /api/users/{user_id},
       POST /api/users/lookup-by-email.
How:   Every lookup loads memberships with their team in the same query
       round-trip (selectinload) and builds the same profile shape.
"""

import uuid
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.auth import AuthenticatedCaller
from app.exceptions import BadRequestError, NotFoundError
from app.models.team import User, VoyageTeamMember
from app.schemas.user import PrivateUserResponse, TeamMembershipSummary


def _with_memberships():
    return select(User).options(
        selectinload(User.memberships).selectinload(VoyageTeamMember.team)
    )


def _to_profile(user: User) -> PrivateUserResponse:
    memberships = sorted(user.memberships, key=lambda m: m.voyage_team_id)
    return PrivateUserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        avatar=user.avatar,
        created_at=user.created_at,
        voyage_teams=[
            TeamMembershipSummary(
                team_id=membership.team.id,
                team_name=membership.team.name,
                member_id=membership.id,
            )
            for membership in memberships
        ],
    )


class UserService:
    async def get_private_profile(
        self,
        db: AsyncSession,
        caller: AuthenticatedCaller,
    ) -> PrivateUserResponse:
        """
        Raises:
            NotFoundError: The forwarded user id has no user row (→ 404)
        """
        result = await db.execute(_with_memberships().where(User.id == caller.user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(caller.user_id))
        return _to_profile(user)

    async def list_users(self, db: AsyncSession) -> List[PrivateUserResponse]:
        """All users, oldest account first."""
        result = await db.execute(_with_memberships().order_by(User.created_at, User.email))
        return [_to_profile(user) for user in result.scalars().all()]

    async def get_user_by_id(self, db: AsyncSession, raw_user_id: str) -> PrivateUserResponse:
        """
        Look up one user by the id taken from the URL path.

        The id arrives as a plain string so that a malformed value is a
        400 with a readable message rather than a framework validation error.

        Raises:
            BadRequestError: `raw_user_id` is not a UUID (→ 400)
            NotFoundError:   No user has that id (→ 404)
        """
        try:
            user_id = uuid.UUID(raw_user_id)
        except ValueError:
            raise BadRequestError(
                message=f"{raw_user_id} is not a valid UUID.",
                context={"user_id": raw_user_id},
            )

        result = await db.execute(_with_memberships().where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return _to_profile(user)

    async def get_user_by_email(self, db: AsyncSession, email: str) -> PrivateUserResponse:
        """
        Raises:
            NotFoundError: No user has that email, compared case-insensitively (→ 404)
        """
        result = await db.execute(
            _with_memberships().where(func.lower(User.email) == email.strip().lower())
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", message="User not found")
        return _to_profile(user)


user_service = UserService()
