"""
Voyage Teams Backend: Tech Proposal Service
============================================

What:  Proposes a new technology for a team and records the proposer's vote.
Who:   POST /api/voyages/teams/{team_id}/techs.

Atomicity:
    The item insert and the first vote insert share the request transaction.
    If the vote cannot be written, the exception rolls back the item as
    well, so a proposal never leaves an item with zero votes behind.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedCaller
from app.database import unique_violation_as_conflict
from app.exceptions import BadRequestError
from app.models.tech import TeamTechStackItem, TechStackCategory
from app.schemas.tech import TechVoteResponse
from app.services.membership_service import membership_service
from app.services.vote_service import vote_service

logger = logging.getLogger(__name__)


class ProposalService:
    async def propose_tech(
        self,
        db: AsyncSession,
        team_id: int,
        caller: AuthenticatedCaller,
        tech_name: str,
        category_id: int,
    ) -> TechVoteResponse:
        """
        Create a team tech item in a category, voted for by its proposer.

        Workflow:
            1. Resolve the caller's membership; absent → 400
            2. Check the category exists; absent → 400
            3. Insert the item; same name in team+category → 409
            4. Insert the proposer's vote through the vote ledger

        Returns:
            The first vote, with the new item's id as team_tech_id.

        Raises:
            BadRequestError: Caller not a member, or unknown category
            ConflictError: Name already proposed in this team and category
        """
        member_id = await membership_service.require_member_identity(db, caller, team_id)

        category = await db.execute(
            select(TechStackCategory.id).where(TechStackCategory.id == category_id)
        )
        if category.scalar_one_or_none() is None:
            raise BadRequestError(
                message=f"Tech category (id: {category_id}) not found",
                context={"category_id": category_id},
            )

        item = TeamTechStackItem(
            name=tech_name,
            category_id=category_id,
            voyage_team_id=team_id,
        )
        db.add(item)
        with unique_violation_as_conflict(
            f"{tech_name} already exists in the available team tech stack.",
            context={"tech_name": tech_name, "category_id": category_id, "team_id": team_id},
        ):
            await db.flush()

        vote = await vote_service.cast_new_proposal_vote(db, item.id, member_id)

        logger.info(
            "Member %s proposed '%s' (item %s) in category %s of team %s",
            member_id,
            tech_name,
            item.id,
            category_id,
            team_id,
        )
        return TechVoteResponse(
            team_tech_stack_item_vote_id=vote.id,
            team_tech_id=item.id,
            team_member_id=vote.team_member_id,
            created_at=vote.created_at,
            updated_at=vote.updated_at,
        )


proposal_service = ProposalService()
