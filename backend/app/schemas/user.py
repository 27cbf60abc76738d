"""
Voyage Teams Backend: User Profile Schemas
===========================================

What:  Request and response models for /api/users (own profile and lookups).
Why:   The frontend needs the caller's team memberships to know which team
       catalogs it can vote in.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TeamMembershipSummary(BaseModel):
    team_id: int
    team_name: str
    member_id: int = Field(description="Voting identity within that team")


class PrivateUserResponse(BaseModel):
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    avatar: Optional[str] = None
    created_at: datetime
    voyage_teams: List[TeamMembershipSummary] = Field(default_factory=list)


class UserLookupByEmailRequest(BaseModel):
    email: str = Field(
        min_length=3,
        max_length=255,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Email address to look up (case-insensitive)",
        examples=["alice@example.com"],
    )
