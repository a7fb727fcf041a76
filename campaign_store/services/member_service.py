"""Member service - campaign recipients."""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from campaign_store.core.logging import mask_email
from campaign_store.db.models import Member
from campaign_store.services.campaign_service import lock_campaign
from campaign_store.utils.normalization import normalize_email, normalize_name, require_text

logger = logging.getLogger(__name__)


def _clean_member(email_id: str, full_name: str) -> tuple[str, str]:
    return (
        require_text("email_id", email_id, normalize_email),
        require_text("full_name", full_name, normalize_name),
    )


def add_member(db: Session, email_id: str, full_name: str, campaign_id: str) -> Member:
    """
    Add a recipient to a campaign.

    Raises:
        ValidationError if email_id or full_name is blank
        MissingReferenceError if the campaign does not exist
    """
    email_id, full_name = _clean_member(email_id, full_name)
    lock_campaign(db, campaign_id)

    member = Member(email_id=email_id, full_name=full_name, campaign_id=campaign_id)
    db.add(member)
    db.flush()

    logger.info("Added member %s to campaign %s", mask_email(email_id), campaign_id)
    return member


def add_members(
    db: Session,
    campaign_id: str,
    members: Iterable[tuple[str, str]],
) -> list[Member]:
    """
    Add many ``(email_id, full_name)`` recipients to a campaign.

    Every entry is validated before anything is written, so one bad entry
    rejects the whole batch.
    """
    cleaned = [_clean_member(email_id, full_name) for email_id, full_name in members]
    lock_campaign(db, campaign_id)
    if not cleaned:
        return []

    rows = [
        Member(email_id=email_id, full_name=full_name, campaign_id=campaign_id)
        for email_id, full_name in cleaned
    ]
    db.add_all(rows)
    db.flush()

    logger.info("Added %d members to campaign %s", len(rows), campaign_id)
    return rows


def list_campaign_members(db: Session, campaign_id: str) -> list[Member]:
    """List members of a campaign in insertion order."""
    stmt = select(Member).where(Member.campaign_id == campaign_id).order_by(Member.row_id)
    return list(db.scalars(stmt).all())


def update_member_name(db: Session, campaign_id: str, email_id: str, full_name: str) -> int:
    """
    Rename a campaign member.

    Returns:
        Number of member rows changed (0 when absent or already named so)
    """
    email_id, full_name = _clean_member(email_id, full_name)
    stmt = (
        update(Member)
        .where(
            Member.campaign_id == campaign_id,
            Member.email_id == email_id,
            Member.full_name != full_name,
        )
        .values(full_name=full_name)
    )
    count = db.execute(stmt).rowcount
    if count:
        logger.info("Renamed member %s in campaign %s", mask_email(email_id), campaign_id)
    return count


def remove_member(db: Session, campaign_id: str, email_id: str) -> int:
    """
    Remove a recipient from a campaign.

    Returns:
        Number of member rows deleted
    """
    email = normalize_email(email_id)
    if not email:
        return 0
    stmt = (
        delete(Member)
        .where(Member.campaign_id == campaign_id, Member.email_id == email)
    )
    count = db.execute(stmt).rowcount
    if count:
        logger.info("Removed member %s from campaign %s", mask_email(email), campaign_id)
    return count
