"""SQLAlchemy ORM models for the campaign store schema.

Table and column names are the persisted contract shared with other
consumers of the database, so they keep their PascalCase spelling while the
Python attributes are snake_case.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from campaign_store.db.base import Base


class User(Base):
    """
    Mailchimp account that logged in through the integration.

    The primary key is the Mailchimp user id when known, otherwise
    it is generated by the database.
    """

    __tablename__ = "Users"

    id: Mapped[int] = mapped_column("Id", Integer, primary_key=True)
    username: Mapped[str] = mapped_column("Username", Text, nullable=False)
    email: Mapped[str] = mapped_column("Email", Text, nullable=False)
    last_synced: Mapped[int | None] = mapped_column("LastSynced", BigInteger, nullable=True)


class UserSession(Base):
    """
    Active OAuth session.

    Id is the opaque session handle given to the browser; AccessToken and
    Dc are what API calls against the user's data center need.
    """

    __tablename__ = "UserSessions"
    __table_args__ = (Index("ix_UserSessions_UserId", "UserId"),)

    id: Mapped[str] = mapped_column("Id", Text, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        "UserId",
        Integer,
        ForeignKey("Users.Id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )
    access_token: Mapped[str] = mapped_column("AccessToken", Text, nullable=False)
    dc: Mapped[str] = mapped_column("Dc", Text, nullable=False)


class Campaign(Base):
    """
    Email campaign owned by a user.

    MemberListId is an opaque tag for the Mailchimp audience the campaign
    targets. It is not a foreign key.
    """

    __tablename__ = "Campaigns"
    __table_args__ = (
        Index("ix_Campaigns_UserId", "UserId"),
        Index("ix_Campaigns_MemberListId", "MemberListId"),
    )

    id: Mapped[str] = mapped_column("Id", Text, primary_key=True)
    title: Mapped[str] = mapped_column("Title", Text, nullable=False)
    member_list_id: Mapped[str] = mapped_column("MemberListId", Text, nullable=False)
    user_id: Mapped[int] = mapped_column(
        "UserId",
        Integer,
        ForeignKey("Users.Id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )


class Member(Base):
    """
    Recipient of a campaign.

    The schema declares no key for members; RowId only exists because the
    ORM needs an identity and is never exposed to callers.
    """

    __tablename__ = "Members"
    __table_args__ = (Index("ix_Members_CampaignId", "CampaignId"),)

    row_id: Mapped[int] = mapped_column("RowId", Integer, primary_key=True, autoincrement=True)
    email_id: Mapped[str] = mapped_column("EmailId", Text, nullable=False)
    full_name: Mapped[str] = mapped_column("FullName", Text, nullable=False)
    campaign_id: Mapped[str] = mapped_column(
        "CampaignId",
        Text,
        ForeignKey("Campaigns.Id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
    )


__all__ = ["User", "UserSession", "Campaign", "Member"]
