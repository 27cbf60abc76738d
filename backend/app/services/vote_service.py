"""
Voyage Teams Backend: Vote Ledger
==================================

What:  Creates and deletes member → tech item votes.
Who:   Vote routes call add_vote/remove_vote; the proposal service calls
       cast_new_proposal_vote for the creator's implicit first vote.

Invariants:
    - One vote per (item, member): enforced by uq_team_tech_votes_item_member.
      A duplicate insert raises a unique violation which is translated into
      ConflictError; concurrent duplicates resolve to exactly one winner.
    - No item without votes: remove_vote deletes the item in the same
      transaction that deletes its last vote.

Locking Protocol (per tech item row):
    add_vote     SELECT ... FOR SHARE   then INSERT vote
    remove_vote  SELECT ... FOR UPDATE  then DELETE vote, COUNT, maybe DELETE item

    FOR SHARE and FOR UPDATE conflict, so an insert and a cascade check on
    the same item never interleave:
    - remove first: the waiting add re-reads the row after commit; if the
      item was deleted it sees no row and reports "not found"
    - add first: the cascade check runs after the insert committed and
      counts the new vote, so the item survives
    Two adds only take shared locks and do not block each other; the unique
    constraint decides between duplicates.
"""

import logging
from typing import Optional

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedCaller
from app.database import unique_violation_as_conflict
from app.exceptions import BadRequestError, NotFoundError
from app.models.tech import TeamTechStackItem, TeamTechStackItemVote
from app.schemas.tech import RemoveVoteResponse, TechVoteResponse
from app.services.membership_service import membership_service

logger = logging.getLogger(__name__)

VOTE_DELETED = "This vote was deleted"
VOTE_AND_ITEM_DELETED = "The vote and tech stack item were deleted"


def locked_item_query(team_id: int, item_id: int, *, exclusive: bool) -> Select:
    """
    Select a team's tech item with a row lock.

    exclusive=False → FOR SHARE (vote insert)
    exclusive=True  → FOR UPDATE (vote removal + cascade)

    SQLite ignores row locks; its database-level write lock gives the same
    serialization.
    """
    return (
        select(TeamTechStackItem)
        .where(
            TeamTechStackItem.id == item_id,
            TeamTechStackItem.voyage_team_id == team_id,
        )
        .with_for_update(read=not exclusive)
    )


def _to_vote_response(vote: TeamTechStackItemVote) -> TechVoteResponse:
    return TechVoteResponse(
        team_tech_stack_item_vote_id=vote.id,
        team_tech_id=vote.team_tech_id,
        team_member_id=vote.team_member_id,
        created_at=vote.created_at,
        updated_at=vote.updated_at,
    )


class VoteService:
    """Business logic for individual votes."""

    async def cast_new_proposal_vote(
        self,
        db: AsyncSession,
        item_id: int,
        member_id: int,
    ) -> TeamTechStackItemVote:
        """
        Insert a vote row and flush it.

        Internal primitive: callers have already resolved the member and own
        the surrounding transaction. Errors propagate as-is so the caller's
        transaction is rolled back.
        """
        vote = TeamTechStackItemVote(team_tech_id=item_id, team_member_id=member_id)
        db.add(vote)
        await db.flush()
        return vote

    async def add_vote(
        self,
        db: AsyncSession,
        team_id: int,
        item_id: int,
        caller: AuthenticatedCaller,
    ) -> TechVoteResponse:
        """
        Record the caller's vote for an existing team tech item.

        Workflow:
            1. Lock the item row (shared) scoped to the team; absent → 400
            2. Resolve the caller's membership; absent → 400
            3. Insert the vote; unique violation → 409

        Raises:
            BadRequestError: Item not found in this team, or caller not a member
            ConflictError: Caller already voted for this item
        """
        result = await db.execute(locked_item_query(team_id, item_id, exclusive=False))
        item: Optional[TeamTechStackItem] = result.scalar_one_or_none()
        if item is None:
            raise BadRequestError(
                message=f"Team tech item (id: {item_id}) not found",
                context={"team_tech_id": item_id, "team_id": team_id},
            )

        member_id = await membership_service.require_member_identity(db, caller, team_id)

        with unique_violation_as_conflict(
            f"Member has already voted for tech item (id: {item_id})",
            context={"team_tech_id": item_id, "team_member_id": member_id},
        ):
            vote = await self.cast_new_proposal_vote(db, item_id, member_id)

        logger.info("Member %s voted for tech item %s (vote %s)", member_id, item_id, vote.id)
        return _to_vote_response(vote)

    async def remove_vote(
        self,
        db: AsyncSession,
        team_id: int,
        item_id: int,
        caller: AuthenticatedCaller,
    ) -> RemoveVoteResponse:
        """
        Remove the caller's vote; delete the item too if no votes remain.

        Workflow:
            1. Resolve the caller's membership; absent → 400
            2. Lock the item row (exclusive); blocks concurrent add_vote and
               remove_vote on the same item until this transaction ends
            3. DELETE the vote by (item, member); nothing deleted → 404
            4. COUNT the remaining votes; zero → DELETE the item

        Edge case:
            Removing an item's only vote always removes the item. A proposal
            nobody supports does not persist.

        Raises:
            BadRequestError: Caller not a member of the team
            NotFoundError: The caller has no vote on this item
        """
        member_id = await membership_service.require_member_identity(db, caller, team_id)

        await db.execute(locked_item_query(team_id, item_id, exclusive=True))

        deleted = await db.execute(
            delete(TeamTechStackItemVote).where(
                TeamTechStackItemVote.team_tech_id == item_id,
                TeamTechStackItemVote.team_member_id == member_id,
            )
        )
        if deleted.rowcount == 0:
            raise NotFoundError(
                resource="vote",
                message=(
                    f"Vote for tech item (id: {item_id}) by team member "
                    f"(id: {member_id}) not found"
                ),
                context={"team_tech_id": item_id, "team_member_id": member_id},
            )

        remaining = await db.scalar(
            select(func.count(TeamTechStackItemVote.id)).where(
                TeamTechStackItemVote.team_tech_id == item_id
            )
        )
        if remaining:
            logger.info(
                "Member %s removed vote on tech item %s (%d remaining)",
                member_id,
                item_id,
                remaining,
            )
            return RemoveVoteResponse(message=VOTE_DELETED, item_deleted=False)

        await db.execute(delete(TeamTechStackItem).where(TeamTechStackItem.id == item_id))
        logger.info(
            "Member %s removed the last vote on tech item %s; item deleted",
            member_id,
            item_id,
        )
        return RemoveVoteResponse(message=VOTE_AND_ITEM_DELETED, item_deleted=True)


vote_service = VoteService()
