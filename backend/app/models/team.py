"""
Voyage Teams Backend: User, Team and Membership Models
=======================================================

What:  ORM models for `users`, `voyage_teams` and `voyage_team_members`.
Who:   Read by the membership resolver and the catalog reader; never mutated
       by the tech-stack services.

Table Design Rationale:
    - users.id is the UUID the auth gateway forwards; it is the caller id
    - voyage_team_members is the unit of voting identity. The pair
      (user_id, voyage_team_id) is unique, so identity resolution is a
      single-row lookup on that composite key
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A person known to the platform, possibly a member of several teams."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    memberships: Mapped[List["VoyageTeamMember"]] = relationship(back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"


class VoyageTeam(Base):
    """A cohort team whose members share one tech-stack catalog."""

    __tablename__ = "voyage_teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    members: Mapped[List["VoyageTeamMember"]] = relationship(back_populates="team")

    def __repr__(self) -> str:
        return f"<VoyageTeam(id={self.id}, name='{self.name}')>"


class VoyageTeamMember(Base):
    """
    A user's membership in one team.

    Query Patterns:
        - Resolve caller identity: WHERE user_id = :uuid AND voyage_team_id = :team
          → served by uq_voyage_team_members_user_team
    """

    __tablename__ = "voyage_team_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    voyage_team_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("voyage_teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user: Mapped[User] = relationship(back_populates="memberships")
    team: Mapped[VoyageTeam] = relationship(back_populates="members")

    __table_args__ = (
        UniqueConstraint("user_id", "voyage_team_id", name="uq_voyage_team_members_user_team"),
    )

    def __repr__(self) -> str:
        return (
            f"<VoyageTeamMember(id={self.id}, user_id={self.user_id}, "
            f"voyage_team_id={self.voyage_team_id})>"
        )
