"""Write transaction boundary with bounded retry on commit-time conflicts."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from campaign_store.core.config import settings
from campaign_store.core.errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL SQLSTATEs for serialization failure and deadlock.
RETRYABLE_SQLSTATES = {"40001", "40P01"}
SQLITE_BUSY_MARKERS = ("database is locked", "database is busy", "database table is locked")


def is_retryable(exc: DBAPIError) -> bool:
    """True when ``exc`` is a transient conflict with a concurrent writer."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    if isinstance(exc, OperationalError):
        message = str(orig).lower()
        return any(marker in message for marker in SQLITE_BUSY_MARKERS)
    return False


def run_in_transaction(
    session_factory: sessionmaker,
    operation: Callable[[Session], T],
    *,
    name: str = "write",
    attempts: int | None = None,
    backoff_seconds: float | None = None,
) -> T:
    """
    Run ``operation`` inside one write transaction and commit it.

    The operation performs all of its validation reads and writes on the
    session it is given. Any exception rolls the transaction back. Transient
    conflicts are retried up to ``attempts`` times, after which a
    ConflictError is raised. An IntegrityError at flush or commit means a
    concurrent writer inserted a conflicting key and is reported as a
    ConflictError without retry.

    Args:
        session_factory: Factory producing write sessions
        operation: Callable receiving the open session
        name: Operation name for logs
        attempts: Maximum attempts (defaults to WRITE_RETRY_ATTEMPTS)
        backoff_seconds: Base delay between attempts, grows linearly

    Returns:
        Whatever ``operation`` returns
    """
    max_attempts = max(1, attempts if attempts is not None else settings.WRITE_RETRY_ATTEMPTS)
    delay = settings.WRITE_RETRY_BACKOFF_SECONDS if backoff_seconds is None else backoff_seconds

    last_error: DBAPIError | None = None
    for attempt in range(1, max_attempts + 1):
        try:
            with session_factory() as db:
                with db.begin():
                    return operation(db)
        except IntegrityError as exc:
            raise ConflictError(f"{name} conflicts with an existing row: {exc.orig}") from exc
        except DBAPIError as exc:
            if not is_retryable(exc):
                raise
            last_error = exc
            logger.warning(
                "Transient conflict in %s (attempt %d/%d): %s",
                name,
                attempt,
                max_attempts,
                exc.orig,
            )
            if attempt < max_attempts and delay > 0:
                time.sleep(delay * attempt)

    raise ConflictError(
        f"{name} failed after {max_attempts} attempts due to concurrent writes"
    ) from last_error
