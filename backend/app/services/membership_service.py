"""
Voyage Teams Backend: Membership Service (Identity Resolver + Team Validator)
==============================================================================

What:  Resolves the caller's voting identity within a team and checks that
       a team exists.
Who:   Every mutating tech-stack operation calls `require_member_identity`
       first; read operations call `assert_team_exists`.

Why identity resolution is the authorization gate:
    A VoyageTeamMember row can only exist for a real team, so resolving it
    proves both "the caller belongs here" and "the team exists". Writes
    therefore skip the separate team check.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedCaller
from app.exceptions import BadRequestError, NotFoundError
from app.models.team import VoyageTeam, VoyageTeamMember

logger = logging.getLogger(__name__)


class MembershipService:
    """Stateless lookups over teams and memberships."""

    async def resolve_member_identity(
        self,
        db: AsyncSession,
        caller: AuthenticatedCaller,
        team_id: int,
    ) -> Optional[int]:
        """
        Look up the caller's membership id in `team_id`.

        Query plan:
            SELECT id FROM voyage_team_members
            WHERE user_id = :uuid AND voyage_team_id = :team_id
            → uq_voyage_team_members_user_team, single row

        Returns:
            The membership id, or None when the caller is not on the team.
        """
        result = await db.execute(
            select(VoyageTeamMember.id).where(
                VoyageTeamMember.user_id == caller.user_id,
                VoyageTeamMember.voyage_team_id == team_id,
            )
        )
        return result.scalar_one_or_none()

    async def require_member_identity(
        self,
        db: AsyncSession,
        caller: AuthenticatedCaller,
        team_id: int,
    ) -> int:
        """
        Resolve the caller's membership id or fail the request.

        Raises:
            BadRequestError: Caller has no membership in the team (→ 400)
        """
        member_id = await self.resolve_member_identity(db, caller, team_id)
        if member_id is None:
            logger.info("User %s is not a member of team %s", caller.user_id, team_id)
            raise BadRequestError(
                message=f"Invalid user or team id (user id: {caller.user_id}, team id: {team_id})",
                context={"user_id": str(caller.user_id), "team_id": team_id},
            )
        return member_id

    async def assert_team_exists(self, db: AsyncSession, team_id: int) -> None:
        """
        Raises:
            NotFoundError: No team with that id (→ 404)
        """
        result = await db.execute(select(VoyageTeam.id).where(VoyageTeam.id == team_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(
                resource="team",
                resource_id=str(team_id),
                message=f"Team (id: {team_id}) doesn't exist.",
            )


membership_service = MembershipService()
