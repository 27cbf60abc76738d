"""
Voyage Teams Backend: Team Tech Stack Route Handlers
=====================================================

What:  Catalog, proposal, vote and selection endpoints for one team.
How:   Each handler gets the per-request session and the caller from
       dependencies, delegates to exactly one service call, and write
       handlers commit before returning. A failed commit propagates as an
       error response instead of an already-sent success.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedCaller, get_current_caller
from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.tech import (
    CatalogCategory,
    CreateTeamTechRequest,
    RemoveVoteResponse,
    TechItemResponse,
    TechVoteResponse,
    UpdateTechSelectionsRequest,
)
from app.services.catalog_service import catalog_service
from app.services.proposal_service import proposal_service
from app.services.selection_service import selection_service
from app.services.vote_service import vote_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/voyages/teams/{team_id}/techs", tags=["Techs"])

_BAD_REQUEST = {400: {"description": "Invalid user, team, or reference", "model": ErrorResponse}}
_UNAUTHORIZED = {401: {"description": "Missing caller identity", "model": ErrorResponse}}


@router.get(
    "",
    response_model=List[CatalogCategory],
    responses={
        404: {"description": "Team not found", "model": ErrorResponse},
    },
    summary="List tech categories with the team's tech items and voters",
)
async def list_team_techs(
    team_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> List[CatalogCategory]:
    return await catalog_service.list_catalog(db, team_id)


@router.patch(
    "/selections",
    response_model=List[TechItemResponse],
    responses={**_BAD_REQUEST, **_UNAUTHORIZED},
    summary="Update selected techs, at most 3 per category",
)
async def update_tech_selections(
    team_id: int,
    payload: UpdateTechSelectionsRequest,
    db: AsyncSession = Depends(get_db_session),
    caller: AuthenticatedCaller = Depends(get_current_caller),
) -> List[TechItemResponse]:
    updated = await selection_service.update_selections(db, team_id, caller, payload.categories)
    await db.commit()
    return updated


@router.post(
    "",
    response_model=TechVoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_BAD_REQUEST,
        **_UNAUTHORIZED,
        409: {"description": "Tech already proposed in this category", "model": ErrorResponse},
    },
    summary="Propose a new tech and vote for it",
)
async def propose_team_tech(
    team_id: int,
    payload: CreateTeamTechRequest,
    db: AsyncSession = Depends(get_db_session),
    caller: AuthenticatedCaller = Depends(get_current_caller),
) -> TechVoteResponse:
    vote = await proposal_service.propose_tech(
        db,
        team_id,
        caller,
        tech_name=payload.tech_name,
        category_id=payload.tech_category_id,
    )
    await db.commit()
    return vote


@router.post(
    "/{tech_id}",
    response_model=TechVoteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_BAD_REQUEST,
        **_UNAUTHORIZED,
        409: {"description": "Caller already voted for this tech", "model": ErrorResponse},
    },
    summary="Vote for an existing team tech",
)
async def add_tech_vote(
    team_id: int,
    tech_id: int,
    db: AsyncSession = Depends(get_db_session),
    caller: AuthenticatedCaller = Depends(get_current_caller),
) -> TechVoteResponse:
    vote = await vote_service.add_vote(db, team_id, tech_id, caller)
    await db.commit()
    return vote


@router.delete(
    "/{tech_id}",
    response_model=RemoveVoteResponse,
    responses={
        **_BAD_REQUEST,
        **_UNAUTHORIZED,
        404: {"description": "Caller has no vote on this tech", "model": ErrorResponse},
    },
    summary="Remove a vote; the tech is deleted with its last vote",
)
async def remove_tech_vote(
    team_id: int,
    tech_id: int,
    db: AsyncSession = Depends(get_db_session),
    caller: AuthenticatedCaller = Depends(get_current_caller),
) -> RemoveVoteResponse:
    outcome = await vote_service.remove_vote(db, team_id, tech_id, caller)
    await db.commit()
    return outcome
