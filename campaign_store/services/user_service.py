"""User service - user rows, key renames and cascading removal."""

import logging
import time

from sqlalchemy import select
from sqlalchemy.orm import Session

from campaign_store.core.errors import ConflictError, MissingReferenceError, ValidationError
from campaign_store.core.logging import mask_email
from campaign_store.db.cascade import cascade_delete, cascade_rename
from campaign_store.db.graph import USERS
from campaign_store.db.models import User
from campaign_store.utils.normalization import normalize_email, normalize_name, require_text

logger = logging.getLogger(__name__)


def get_user_by_id(db: Session, user_id: int) -> User | None:
    """Get user by ID."""
    return db.get(User, user_id)


def lock_user(db: Session, user_id: int) -> User:
    """
    Load a user for a write that references it.

    Row-locks where the dialect supports it; on SQLite the write
    transaction already holds the database write lock.

    Raises:
        ValidationError if user_id is not an integer
        MissingReferenceError if the user does not exist
    """
    _validate_user_id(user_id)
    user = db.execute(
        select(User).where(User.id == user_id).with_for_update()
    ).scalar_one_or_none()
    if user is None:
        raise MissingReferenceError(USERS, user_id)
    return user


def _validate_user_id(user_id: int | None) -> None:
    if user_id is None:
        return
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise ValidationError("user_id", "user_id must be an integer")


def create_user(
    db: Session,
    username: str,
    email: str,
    user_id: int | None = None,
) -> User:
    """
    Create a user.

    Args:
        db: Database session
        username: Display name, must not be blank
        email: Email address, must not be blank
        user_id: Explicit id (the Mailchimp user id); generated when None

    Returns:
        The created User

    Raises:
        ValidationError if username or email is blank
        ConflictError if user_id is already taken
    """
    username = require_text("username", username, normalize_name)
    email = require_text("email", email, normalize_email)
    _validate_user_id(user_id)

    if user_id is not None and db.get(User, user_id) is not None:
        raise ConflictError(f"User {user_id} already exists", table=USERS, key=user_id)

    user = User(id=user_id, username=username, email=email)
    db.add(user)
    db.flush()

    logger.info("Created user %s (%s)", user.id, mask_email(email))
    return user


def get_or_create_user(db: Session, user_id: int, username: str, email: str) -> User:
    """Return the user with ``user_id``, creating it on first login."""
    _validate_user_id(user_id)
    if user_id is None:
        raise ValidationError("user_id", "user_id is required")
    existing = db.get(User, user_id)
    if existing is not None:
        return existing
    return create_user(db, username, email, user_id=user_id)


def mark_synced(db: Session, user_id: int, synced_at: int | None = None) -> User | None:
    """
    Record the time of the user's last sync.

    Returns:
        Updated user or None if not found
    """
    user = db.get(User, user_id)
    if user is None:
        return None
    user.last_synced = int(time.time()) if synced_at is None else int(synced_at)
    db.flush()
    return user


def rename_user(db: Session, old_id: int, new_id: int) -> User | None:
    """
    Change a user's id and retarget its sessions and campaigns.

    Returns:
        The renamed user, or None if ``old_id`` does not exist

    Raises:
        ConflictError if ``new_id`` is already taken
    """
    _validate_user_id(old_id)
    _validate_user_id(new_id)
    if old_id is None or new_id is None:
        raise ValidationError("user_id", "user ids are required for a rename")

    user = db.execute(
        select(User).where(User.id == old_id).with_for_update()
    ).scalar_one_or_none()
    if user is None:
        return None
    if old_id == new_id:
        return user
    if db.get(User, new_id) is not None:
        raise ConflictError(f"User {new_id} already exists", table=USERS, key=new_id)

    counts = cascade_rename(db, USERS, old_id, new_id)
    renamed = db.get(User, new_id)

    logger.info("Renamed user %s to %s (%s)", old_id, new_id, _format_counts(counts))
    return renamed


def delete_user(db: Session, user_id: int) -> dict[str, int]:
    """
    Delete a user with its sessions, campaigns and their members.

    Returns:
        Rows deleted per table; empty if the user did not exist
    """
    exists = db.execute(
        select(User.id).where(User.id == user_id).with_for_update()
    ).scalar_one_or_none()
    if exists is None:
        return {}

    counts = cascade_delete(db, USERS, [user_id])
    logger.info("Deleted user %s (%s)", user_id, _format_counts(counts))
    return counts


def _format_counts(counts: dict[str, int]) -> str:
    return ", ".join(f"{table}={count}" for table, count in counts.items()) or "nothing"
