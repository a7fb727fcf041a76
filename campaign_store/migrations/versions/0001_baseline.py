"""Baseline migration - Users, UserSessions, Campaigns and Members

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19

Creates the final schema revision. The Lists table and WebhookId column of
earlier revisions are not carried over; Campaigns keep MemberListId as a
plain text tag.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_baseline"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the store tables."""
    op.create_table(
        "Users",
        sa.Column("Id", sa.Integer(), nullable=False),
        sa.Column("Username", sa.Text(), nullable=False),
        sa.Column("Email", sa.Text(), nullable=False),
        sa.Column("LastSynced", sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint("Id", name="pk_Users"),
    )

    op.create_table(
        "UserSessions",
        sa.Column("Id", sa.Text(), nullable=False),
        sa.Column("UserId", sa.Integer(), nullable=False),
        sa.Column("AccessToken", sa.Text(), nullable=False),
        sa.Column("Dc", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("Id", name="pk_UserSessions"),
        sa.ForeignKeyConstraint(
            ["UserId"],
            ["Users.Id"],
            name="fk_UserSessions_UserId_Users",
            ondelete="CASCADE",
            onupdate="CASCADE",
        ),
    )
    op.create_index("ix_UserSessions_UserId", "UserSessions", ["UserId"])

    op.create_table(
        "Campaigns",
        sa.Column("Id", sa.Text(), nullable=False),
        sa.Column("Title", sa.Text(), nullable=False),
        sa.Column("MemberListId", sa.Text(), nullable=False),
        sa.Column("UserId", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("Id", name="pk_Campaigns"),
        sa.ForeignKeyConstraint(
            ["UserId"],
            ["Users.Id"],
            name="fk_Campaigns_UserId_Users",
            ondelete="CASCADE",
            onupdate="CASCADE",
        ),
    )
    op.create_index("ix_Campaigns_UserId", "Campaigns", ["UserId"])
    op.create_index("ix_Campaigns_MemberListId", "Campaigns", ["MemberListId"])

    op.create_table(
        "Members",
        sa.Column("RowId", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("EmailId", sa.Text(), nullable=False),
        sa.Column("FullName", sa.Text(), nullable=False),
        sa.Column("CampaignId", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("RowId", name="pk_Members"),
        sa.ForeignKeyConstraint(
            ["CampaignId"],
            ["Campaigns.Id"],
            name="fk_Members_CampaignId_Campaigns",
            ondelete="CASCADE",
            onupdate="CASCADE",
        ),
    )
    op.create_index("ix_Members_CampaignId", "Members", ["CampaignId"])


def downgrade() -> None:
    """Drop the store tables, dependents first."""
    op.drop_index("ix_Members_CampaignId", table_name="Members")
    op.drop_table("Members")
    op.drop_index("ix_Campaigns_MemberListId", table_name="Campaigns")
    op.drop_index("ix_Campaigns_UserId", table_name="Campaigns")
    op.drop_table("Campaigns")
    op.drop_index("ix_UserSessions_UserId", table_name="UserSessions")
    op.drop_table("UserSessions")
    op.drop_table("Users")
