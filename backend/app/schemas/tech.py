"""
Voyage Teams Backend: Tech Stack Request/Response Schemas
==========================================================

What:  Pydantic models forming the API contract of the tech-stack routes.
How:   FastAPI validates request bodies against the request models and
       serializes service results through the response models.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Catalog Read Model
# ══════════════════════════════════════════════════════════════════════════


class VoterSummary(BaseModel):
    """
    What:  Who voted for a tech item, enough to render an avatar stack.
    """
    team_member_id: int = Field(description="Voting team membership id")
    user_id: uuid.UUID = Field(description="Voting user's id")
    first_name: str
    last_name: str
    avatar: Optional[str] = None


class CatalogItem(BaseModel):
    """One team tech item and its voters."""
    id: int = Field(description="Team tech item id")
    name: str = Field(description="Technology name as proposed")
    is_selected: bool = Field(description="Whether the team chose this technology")
    voters: List[VoterSummary] = Field(default_factory=list)


class CatalogCategory(BaseModel):
    """
    What:  A global category with the requesting team's items only.
    Who:   Returned as the array body of GET /api/voyages/teams/{id}/techs.
    """
    id: int
    name: str
    description: str
    items: List[CatalogItem] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class TechSelection(BaseModel):
    tech_id: int = Field(description="Team tech item id")
    is_selected: bool = Field(description="Requested selection state")


class CategorySelections(BaseModel):
    category_id: int = Field(description="Category the listed techs belong to")
    techs: List[TechSelection] = Field(default_factory=list)


class UpdateTechSelectionsRequest(BaseModel):
    """
    What:  Body of PATCH /api/voyages/teams/{id}/techs/selections.

    Each category may list at most 3 techs with is_selected=true. The check is
    made by the selection engine against the requested state, before any
    write, so an over-cap request changes nothing.
    """
    categories: List[CategorySelections] = Field(default_factory=list)


class CreateTeamTechRequest(BaseModel):
    """Body of POST /api/voyages/teams/{id}/techs."""
    tech_name: str = Field(min_length=1, max_length=50, description="Technology name")
    tech_category_id: int = Field(description="Category to propose the technology in")


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class TechVoteResponse(BaseModel):
    """
    What:  A freshly recorded vote.
    Who:   Returned by both "propose a tech" (creator's first vote) and
           "vote for an existing tech" with HTTP 201.
    """
    team_tech_stack_item_vote_id: int
    team_tech_id: int
    team_member_id: int
    created_at: datetime
    updated_at: datetime


class RemoveVoteResponse(BaseModel):
    """Outcome of a vote removal, telling whether the item went with it."""
    message: str
    item_deleted: bool = Field(description="True when the removed vote was the item's last")


class TechItemResponse(BaseModel):
    """A team tech item after a selection update."""
    id: int
    name: str
    category_id: int
    voyage_team_id: int
    is_selected: bool

    model_config = {"from_attributes": True}
