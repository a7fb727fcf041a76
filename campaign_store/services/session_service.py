"""Session service - OAuth session rows for logged-in users."""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from campaign_store.core.errors import ConflictError
from campaign_store.db.graph import USER_SESSIONS
from campaign_store.db.models import Campaign, UserSession
from campaign_store.services.user_service import lock_user
from campaign_store.utils.normalization import require_text

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Generate an opaque session id."""
    return str(uuid.uuid4())


def create_session(
    db: Session,
    user_id: int,
    access_token: str,
    dc: str,
    session_id: str | None = None,
) -> UserSession:
    """
    Create a new session record when a user logs in.

    Args:
        db: Database session
        user_id: The owning user's ID
        access_token: OAuth access token for the user's account
        dc: Mailchimp data center of the account (e.g. "us6")
        session_id: Explicit session id; a uuid4 is generated when None

    Returns:
        The created UserSession record

    Raises:
        ValidationError if access_token or dc is blank
        MissingReferenceError if the user does not exist
        ConflictError if session_id is already taken
    """
    access_token = require_text("access_token", access_token)
    dc = require_text("dc", dc)
    session_id = require_text("session_id", session_id) if session_id is not None else new_session_id()

    lock_user(db, user_id)
    if db.get(UserSession, session_id) is not None:
        raise ConflictError(
            f"Session {session_id[:8]}... already exists", table=USER_SESSIONS, key=session_id
        )

    session_record = UserSession(
        id=session_id,
        user_id=user_id,
        access_token=access_token,
        dc=dc,
    )
    db.add(session_record)
    db.flush()

    logger.info("Created session %s... for user %s (dc: %s)", session_id[:8], user_id, dc)
    return session_record


def get_session(db: Session, session_id: str) -> UserSession | None:
    """Find a session by id."""
    if not session_id:
        return None
    return db.get(UserSession, session_id)


def list_user_sessions(db: Session, user_id: int) -> list[UserSession]:
    """List all sessions owned by a user."""
    stmt = select(UserSession).where(UserSession.user_id == user_id).order_by(UserSession.id)
    return list(db.scalars(stmt).all())


def get_session_for_member_list(db: Session, member_list_id: str) -> UserSession | None:
    """
    Find a session of the user who owns a campaign targeting ``member_list_id``.

    Used to act on behalf of a list owner when only the list is known
    (e.g. a Mailchimp webhook for that list).
    """
    if not member_list_id:
        return None
    owners = select(Campaign.user_id).where(Campaign.member_list_id == member_list_id)
    stmt = (
        select(UserSession)
        .where(UserSession.user_id.in_(owners))
        .order_by(UserSession.id)
        .limit(1)
    )
    return db.scalars(stmt).first()


def delete_session(db: Session, session_id: str) -> bool:
    """
    Delete a session (used during logout).

    Returns:
        True if session was found and deleted, False otherwise
    """
    result = db.execute(delete(UserSession).where(UserSession.id == session_id))
    deleted = result.rowcount > 0
    if deleted:
        logger.info("Deleted session %s...", session_id[:8])
    return deleted


def delete_user_sessions(db: Session, user_id: int) -> int:
    """
    Delete all sessions for a user (logout everywhere).

    Returns:
        Number of sessions deleted
    """
    result = db.execute(delete(UserSession).where(UserSession.user_id == user_id))
    count = result.rowcount
    logger.info("Deleted %d sessions for user %s", count, user_id)
    return count
