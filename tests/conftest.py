"""
Test configuration and fixtures.

Provides:
- A fresh file-backed SQLite database per test (threads can share it)
- RelationalStore bound to that database
- Write session with rollback after each test for service-level tests
- Seeded user/campaign/session fixtures
"""
from typing import Generator
from dataclasses import dataclass

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from campaign_store.db.session import create_store_engine, init_db, make_session_factories
from campaign_store.schemas import CampaignRecord, SessionRecord, UserRecord
from campaign_store.store import RelationalStore


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'store.db'}"


@pytest.fixture(scope="function")
def engine(database_url: str) -> Generator[Engine, None, None]:
    """Engine with the schema created from model metadata."""
    engine = create_store_engine(database_url, busy_timeout_ms=10000)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def store(engine: Engine) -> RelationalStore:
    return RelationalStore(engine)


@pytest.fixture(scope="function")
def db(engine: Engine) -> Generator[Session, None, None]:
    """
    Write session inside one transaction that is rolled back at the end.

    Service functions only flush, so everything they do stays visible
    to the test and disappears afterwards.
    """
    _, write_factory = make_session_factories(engine)
    session = write_factory()
    transaction = session.begin()
    yield session
    if transaction.is_active:
        transaction.rollback()
    session.close()


# =============================================================================
# Seed Fixtures
# =============================================================================

@dataclass
class Seeded:
    """A user with one session and one campaign that has two members."""
    user: UserRecord
    session: SessionRecord
    campaign: CampaignRecord


@pytest.fixture(scope="function")
def test_user(store: RelationalStore) -> UserRecord:
    """Create user 1 (alice)."""
    return store.create_user("alice", "a@x.com", user_id=1)


@pytest.fixture(scope="function")
def test_campaign(store: RelationalStore, test_user: UserRecord) -> CampaignRecord:
    """Create campaign C1 owned by alice."""
    return store.create_campaign("Launch", "L1", test_user.id, campaign_id="C1")


@pytest.fixture(scope="function")
def seeded(store: RelationalStore, test_user: UserRecord, test_campaign: CampaignRecord) -> Seeded:
    session = store.create_session(test_user.id, "token-alice", "us6", session_id="S1")
    store.add_member("r@x.com", "Bob", test_campaign.id)
    store.add_member("s@x.com", "Sue", test_campaign.id)
    return Seeded(user=test_user, session=session, campaign=test_campaign)
