"""
Voyage Teams Backend: Tech Stack Models
========================================

What:  ORM models for tech categories, team tech items, and member votes.
Who:   Used by the catalog reader, vote ledger, selection engine, and
       proposal service; registered with Alembic through Base.metadata.

Invariants held by the schema:
    - tech_stack_categories are global reference data shared by every team
    - a team tech item name is unique per (team, category)
      → uq_team_tech_items_team_category_name, surfaced as 409 Conflict
    - a member votes at most once per item
      → uq_team_tech_votes_item_member, surfaced as 409 Conflict
    - an item with zero votes must not exist; this one is not expressible as
      a constraint and is enforced by the vote ledger on every vote removal
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    false,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.team import VoyageTeamMember


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TechStackCategory(Base):
    """A named grouping of technologies, e.g. "Frontend" or "Database"."""

    __tablename__ = "tech_stack_categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    items: Mapped[List["TeamTechStackItem"]] = relationship(back_populates="category")

    def __repr__(self) -> str:
        return f"<TechStackCategory(id={self.id}, name='{self.name}')>"


class TeamTechStackItem(Base):
    """
    A candidate technology proposed by one team within one category.

    Lifecycle:
        1. Created by the proposal service together with the creator's vote
        2. `is_selected` toggled in bulk by the selection engine
        3. Deleted by the vote ledger when its last vote is removed
    """

    __tablename__ = "team_tech_stack_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tech_stack_categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    voyage_team_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("voyage_teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    is_selected: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    category: Mapped[TechStackCategory] = relationship(back_populates="items")
    votes: Mapped[List["TeamTechStackItemVote"]] = relationship(
        back_populates="item",
        order_by="TeamTechStackItemVote.id",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint(
            "voyage_team_id",
            "category_id",
            "name",
            name="uq_team_tech_items_team_category_name",
        ),
        # Catalog reads filter by team first
        Index("idx_team_tech_items_team", "voyage_team_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TeamTechStackItem(id={self.id}, name='{self.name}', "
            f"team={self.voyage_team_id}, selected={self.is_selected})>"
        )


class TeamTechStackItemVote(Base):
    """One member's endorsement of one team tech item."""

    __tablename__ = "team_tech_stack_item_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    team_tech_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("team_tech_stack_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    team_member_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("voyage_team_members.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    item: Mapped[TeamTechStackItem] = relationship(back_populates="votes")
    member: Mapped[VoyageTeamMember] = relationship()

    __table_args__ = (
        # Composite key lookup for vote removal and the one-vote-per-member rule
        UniqueConstraint("team_tech_id", "team_member_id", name="uq_team_tech_votes_item_member"),
    )

    def __repr__(self) -> str:
        return (
            f"<TeamTechStackItemVote(id={self.id}, item={self.team_tech_id}, "
            f"member={self.team_member_id})>"
        )
