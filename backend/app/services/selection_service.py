"""
Voyage Teams Backend: Selection Engine
=======================================

What:  Bulk toggling of `is_selected` across a team's tech items.
Who:   PATCH /api/voyages/teams/{team_id}/techs/selections.

Algorithm:
    1. Cap check: per category, count entries requested as selected; more
       than MAX_SELECTION_COUNT fails the whole request before any query
    2. Resolve caller identity; absent → 400
    3. Flatten every entry into one {tech_id: is_selected} batch (the last
       occurrence of a duplicated tech id wins)
    4. Load all referenced items of this team in one query; every id must
       exist and sit in the category it was listed under, else 400
    5. Set the flags and flush; the request transaction commits them
       together, so no reader sees a half-applied batch

Concurrency:
    Calls touching disjoint items interleave freely. Calls touching the same
    items race with last-writer-wins at the row level, which is accepted.
"""

import logging
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedCaller
from app.exceptions import BadRequestError
from app.models.tech import TeamTechStackItem
from app.schemas.tech import CategorySelections, TechItemResponse
from app.services.membership_service import membership_service

logger = logging.getLogger(__name__)

MAX_SELECTION_COUNT = 3


def check_selection_caps(categories: List[CategorySelections]) -> None:
    """
    Reject the batch if any category requests more than MAX_SELECTION_COUNT
    selected techs. The count is taken over the requested final state of the
    listed entries only.
    """
    for category in categories:
        selected = sum(1 for tech in category.techs if tech.is_selected)
        if selected > MAX_SELECTION_COUNT:
            raise BadRequestError(
                message=(
                    f"Only {MAX_SELECTION_COUNT} selections allowed per category "
                    f"(category id: {category.category_id})"
                ),
                context={
                    "category_id": category.category_id,
                    "selected": selected,
                    "max_selections": MAX_SELECTION_COUNT,
                },
            )


class SelectionService:
    async def update_selections(
        self,
        db: AsyncSession,
        team_id: int,
        caller: AuthenticatedCaller,
        categories: List[CategorySelections],
    ) -> List[TechItemResponse]:
        """
        Apply a batch of selection flags atomically.

        Returns:
            The updated items, in the order they were first listed.

        Raises:
            BadRequestError: Cap exceeded, caller not a member, or a tech id
                             not found in this team under the given category
        """
        check_selection_caps(categories)

        member_id = await membership_service.require_member_identity(db, caller, team_id)

        requested: Dict[int, bool] = {}
        listed_category: Dict[int, int] = {}
        for category in categories:
            for tech in category.techs:
                requested[tech.tech_id] = tech.is_selected
                listed_category[tech.tech_id] = category.category_id

        if not requested:
            return []

        result = await db.execute(
            select(TeamTechStackItem).where(
                TeamTechStackItem.id.in_(list(requested)),
                TeamTechStackItem.voyage_team_id == team_id,
            )
        )
        items = {item.id: item for item in result.scalars().all()}

        for tech_id, category_id in listed_category.items():
            item = items.get(tech_id)
            if item is None:
                raise BadRequestError(
                    message=f"Team tech item (id: {tech_id}) not found in team (id: {team_id})",
                    context={"team_tech_id": tech_id, "team_id": team_id},
                )
            if item.category_id != category_id:
                raise BadRequestError(
                    message=(
                        f"Team tech item (id: {tech_id}) does not belong to "
                        f"category (id: {category_id})"
                    ),
                    context={"team_tech_id": tech_id, "category_id": category_id},
                )

        for tech_id, is_selected in requested.items():
            items[tech_id].is_selected = is_selected
        await db.flush()

        logger.info(
            "Member %s updated %d tech selections in team %s",
            member_id,
            len(requested),
            team_id,
        )
        return [TechItemResponse.model_validate(items[tech_id]) for tech_id in requested]


selection_service = SelectionService()
