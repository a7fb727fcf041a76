"""Campaign service - campaigns owned by users."""

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from campaign_store.core.errors import ConflictError, MissingReferenceError
from campaign_store.db.cascade import cascade_delete
from campaign_store.db.graph import CAMPAIGNS
from campaign_store.db.models import Campaign
from campaign_store.services.user_service import lock_user
from campaign_store.utils.normalization import require_text

logger = logging.getLogger(__name__)


def new_campaign_id() -> str:
    """Generate a campaign id in the same shape as Mailchimp's (10 hex chars)."""
    return uuid.uuid4().hex[:10]


def lock_campaign(db: Session, campaign_id: str) -> Campaign:
    """
    Load a campaign for a write that references it.

    Raises:
        MissingReferenceError if the campaign does not exist
    """
    campaign = db.execute(
        select(Campaign).where(Campaign.id == campaign_id).with_for_update()
    ).scalar_one_or_none()
    if campaign is None:
        raise MissingReferenceError(CAMPAIGNS, campaign_id)
    return campaign


def create_campaign(
    db: Session,
    title: str,
    member_list_id: str,
    user_id: int,
    campaign_id: str | None = None,
) -> Campaign:
    """
    Create a campaign for a user.

    ``member_list_id`` is stored as given; it is not checked against any
    table.

    Raises:
        ValidationError if title or member_list_id is blank
        MissingReferenceError if the user does not exist
        ConflictError if campaign_id is already taken
    """
    title = require_text("title", title)
    member_list_id = require_text("member_list_id", member_list_id)
    campaign_id = (
        require_text("campaign_id", campaign_id) if campaign_id is not None else new_campaign_id()
    )

    lock_user(db, user_id)
    if db.get(Campaign, campaign_id) is not None:
        raise ConflictError(
            f"Campaign {campaign_id} already exists", table=CAMPAIGNS, key=campaign_id
        )

    campaign = Campaign(
        id=campaign_id,
        title=title,
        member_list_id=member_list_id,
        user_id=user_id,
    )
    db.add(campaign)
    db.flush()

    logger.info("Created campaign %s for user %s (list %s)", campaign_id, user_id, member_list_id)
    return campaign


def get_campaign(db: Session, campaign_id: str) -> Campaign | None:
    """Get a single campaign by ID."""
    if not campaign_id:
        return None
    return db.get(Campaign, campaign_id)


def list_user_campaigns(db: Session, user_id: int) -> list[Campaign]:
    """List campaigns owned by a user."""
    stmt = select(Campaign).where(Campaign.user_id == user_id).order_by(Campaign.id)
    return list(db.scalars(stmt).all())


def list_campaigns_by_ids(db: Session, campaign_ids: Iterable[str]) -> list[Campaign]:
    """List the campaigns among ``campaign_ids`` that exist."""
    ids = {campaign_id for campaign_id in campaign_ids if campaign_id}
    if not ids:
        return []
    stmt = select(Campaign).where(Campaign.id.in_(ids)).order_by(Campaign.id)
    return list(db.scalars(stmt).all())


def list_campaigns_by_member_list(db: Session, member_list_id: str) -> list[Campaign]:
    """List campaigns targeting a Mailchimp audience."""
    if not member_list_id:
        return []
    stmt = (
        select(Campaign)
        .where(Campaign.member_list_id == member_list_id)
        .order_by(Campaign.id)
    )
    return list(db.scalars(stmt).all())


def delete_campaign(db: Session, campaign_id: str) -> dict[str, int]:
    """
    Delete a campaign and its members.

    Returns:
        Rows deleted per table; empty if the campaign did not exist
    """
    exists = db.execute(
        select(Campaign.id).where(Campaign.id == campaign_id).with_for_update()
    ).scalar_one_or_none()
    if exists is None:
        return {}

    counts = cascade_delete(db, CAMPAIGNS, [campaign_id])
    logger.info("Deleted campaign %s (%d members)", campaign_id, counts.get("Members", 0))
    return counts
