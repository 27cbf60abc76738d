"""Create team and tech stack tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates users, voyage teams, memberships, tech categories, team tech
       items and votes, with the unique constraints the vote ledger and the
       proposal service rely on for conflict detection.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("avatar", sa.String(255), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "voyage_teams",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "voyage_team_members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("voyage_team_id", sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["voyage_team_id"], ["voyage_teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "voyage_team_id", name="uq_voyage_team_members_user_team"),
    )

    op.create_table(
        "tech_stack_categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "team_tech_stack_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        sa.Column("voyage_team_id", sa.Integer(), nullable=False),
        sa.Column("is_selected", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(
            ["category_id"], ["tech_stack_categories.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["voyage_team_id"], ["voyage_teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "voyage_team_id",
            "category_id",
            "name",
            name="uq_team_tech_items_team_category_name",
        ),
    )
    op.create_index("idx_team_tech_items_team", "team_tech_stack_items", ["voyage_team_id"])

    op.create_table(
        "team_tech_stack_item_votes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("team_tech_id", sa.Integer(), nullable=False),
        sa.Column("team_member_id", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["team_tech_id"], ["team_tech_stack_items.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["team_member_id"], ["voyage_team_members.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "team_tech_id", "team_member_id", name="uq_team_tech_votes_item_member"
        ),
    )


def downgrade() -> None:
    op.drop_table("team_tech_stack_item_votes")
    op.drop_index("idx_team_tech_items_team", table_name="team_tech_stack_items")
    op.drop_table("team_tech_stack_items")
    op.drop_table("tech_stack_categories")
    op.drop_table("voyage_team_members")
    op.drop_table("voyage_teams")
    op.drop_table("users")
