"""
Tests for the write transaction boundary: atomicity and bounded retry.
"""

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from campaign_store.core.errors import ConflictError
from campaign_store.db.transactions import is_retryable, run_in_transaction
from campaign_store.services import user_service


def _locked() -> OperationalError:
    return OperationalError("BEGIN IMMEDIATE", None, sqlite3.OperationalError("database is locked"))


class _PgError(Exception):
    def __init__(self, sqlstate: str):
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


# =============================================================================
# Retry classification
# =============================================================================

def test_sqlite_busy_is_retryable():
    assert is_retryable(_locked())


def test_postgres_serialization_failure_is_retryable():
    assert is_retryable(OperationalError("COMMIT", None, _PgError("40001")))
    assert is_retryable(OperationalError("COMMIT", None, _PgError("40P01")))


def test_other_database_errors_are_not_retryable():
    assert not is_retryable(OperationalError("SELECT", None, sqlite3.OperationalError("no such table: X")))
    assert not is_retryable(ProgrammingError("SELECT", None, Exception("syntax error")))


# =============================================================================
# run_in_transaction
# =============================================================================

def test_retries_then_succeeds(store):
    calls = []

    def operation(db):
        calls.append(1)
        if len(calls) < 3:
            raise _locked()
        return user_service.create_user(db, "alice", "a@x.com", user_id=1).id

    result = run_in_transaction(store._write_session, operation, attempts=5, backoff_seconds=0)

    assert result == 1
    assert len(calls) == 3
    assert store.get_user(1) is not None


def test_retry_exhaustion_raises_conflict(store):
    calls = []

    def operation(db):
        calls.append(1)
        user_service.create_user(db, "alice", "a@x.com", user_id=1)
        raise _locked()

    with pytest.raises(ConflictError, match="after 3 attempts"):
        run_in_transaction(store._write_session, operation, attempts=3, backoff_seconds=0)

    assert len(calls) == 3
    assert store.get_user(1) is None


def test_non_retryable_error_propagates_without_retry(store):
    calls = []

    def operation(db):
        calls.append(1)
        raise OperationalError("SELECT", None, sqlite3.OperationalError("disk I/O error"))

    with pytest.raises(OperationalError):
        run_in_transaction(store._write_session, operation, attempts=5, backoff_seconds=0)

    assert len(calls) == 1


def test_integrity_error_becomes_conflict(store):
    def operation(db):
        raise IntegrityError("INSERT", None, sqlite3.IntegrityError("UNIQUE constraint failed"))

    with pytest.raises(ConflictError):
        run_in_transaction(store._write_session, operation, backoff_seconds=0)


def test_failed_operation_rolls_back_everything(store, seeded):
    def operation(db):
        user_service.delete_user(db, seeded.user.id)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        run_in_transaction(store._write_session, operation)

    assert store.get_user(seeded.user.id) is not None
    assert store.get_session("S1") is not None
    assert len(store.list_members_by_campaign(seeded.campaign.id)) == 2


def test_store_retry_attempts_setting(engine):
    from campaign_store.store import RelationalStore

    store = RelationalStore(engine, retry_attempts=1)
    calls = []

    def operation(db):
        calls.append(1)
        raise _locked()

    with pytest.raises(ConflictError):
        store._write("flaky", operation)

    assert len(calls) == 1
