"""
Voyage Teams Backend: Tech Catalog Reader
==========================================

What:  Builds the read model categories → team items → voters.
How:   Two queries: all categories (global), then the team's items with
       votes, members and users eagerly loaded. Items are grouped under
       their category in Python.
Who:   GET /api/voyages/teams/{team_id}/techs.

Why eager loading:
    AsyncSession cannot lazy-load relationships; selectinload fetches votes,
    members and users in one extra query per level instead of one per row.
"""

from collections import defaultdict
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.team import VoyageTeamMember
from app.models.tech import TeamTechStackItem, TeamTechStackItemVote, TechStackCategory
from app.schemas.tech import CatalogCategory, CatalogItem, VoterSummary
from app.services.membership_service import membership_service


class CatalogService:
    async def list_catalog(self, db: AsyncSession, team_id: int) -> List[CatalogCategory]:
        """
        Return every category, ordered by id, each holding only this team's
        items (ordered by id) and each item's voters (in voting order).

        Raises:
            NotFoundError: The team does not exist (→ 404)
        """
        await membership_service.assert_team_exists(db, team_id)

        categories = (
            await db.execute(select(TechStackCategory).order_by(TechStackCategory.id))
        ).scalars().all()

        items = (
            await db.execute(
                select(TeamTechStackItem)
                .where(TeamTechStackItem.voyage_team_id == team_id)
                .options(
                    selectinload(TeamTechStackItem.votes)
                    .selectinload(TeamTechStackItemVote.member)
                    .selectinload(VoyageTeamMember.user)
                )
                .order_by(TeamTechStackItem.id)
                .execution_options(populate_existing=True)
            )
        ).scalars().all()

        items_by_category: Dict[int, List[CatalogItem]] = defaultdict(list)
        for item in items:
            items_by_category[item.category_id].append(
                CatalogItem(
                    id=item.id,
                    name=item.name,
                    is_selected=item.is_selected,
                    voters=[
                        VoterSummary(
                            team_member_id=vote.member.id,
                            user_id=vote.member.user.id,
                            first_name=vote.member.user.first_name,
                            last_name=vote.member.user.last_name,
                            avatar=vote.member.user.avatar,
                        )
                        for vote in item.votes
                    ],
                )
            )

        return [
            CatalogCategory(
                id=category.id,
                name=category.name,
                description=category.description,
                items=items_by_category.get(category.id, []),
            )
            for category in categories
        ]


catalog_service = CatalogService()
