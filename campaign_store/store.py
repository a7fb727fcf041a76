"""Relational store facade.

This module is the interface other components use. Each mutating method is
one atomic write transaction (see ``db.transactions``); each read runs in its
own short read transaction. Every method returns immutable record copies,
never ORM instances.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from campaign_store.db.session import create_store_engine, init_db, make_session_factories
from campaign_store.db.transactions import run_in_transaction
from campaign_store.schemas import (
    AccessToken,
    CampaignRecord,
    IntegrityReport,
    MemberRecord,
    SessionRecord,
    UserRecord,
)
from campaign_store.services import (
    campaign_service,
    integrity_service,
    member_service,
    session_service,
    user_service,
)

T = TypeVar("T")


def _copy(record_type, row):
    return None if row is None else record_type.model_validate(row)


def _copies(record_type, rows) -> list:
    return [record_type.model_validate(row) for row in rows]


class RelationalStore:
    """Users, sessions, campaigns and members with enforced referential integrity."""

    def __init__(self, engine: Engine | None = None, *, retry_attempts: int | None = None):
        self.engine = engine if engine is not None else create_store_engine()
        self._read_session, self._write_session = make_session_factories(self.engine)
        self._retry_attempts = retry_attempts

    @classmethod
    def from_url(cls, database_url: str, *, create_schema: bool = True, **kwargs) -> "RelationalStore":
        """Open a store on ``database_url``, creating missing tables by default."""
        store = cls(create_store_engine(database_url), **kwargs)
        if create_schema:
            store.create_schema()
        return store

    def create_schema(self) -> None:
        init_db(self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self) -> "RelationalStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # =========================================================================
    # Transaction plumbing
    # =========================================================================

    def _write(self, name: str, operation: Callable[[Session], T]) -> T:
        return run_in_transaction(
            self._write_session, operation, name=name, attempts=self._retry_attempts
        )

    def _read(self, operation: Callable[[Session], T]) -> T:
        with self._read_session() as db:
            with db.begin():
                return operation(db)

    # =========================================================================
    # Users
    # =========================================================================

    def create_user(self, username: str, email: str, user_id: int | None = None) -> UserRecord:
        return self._write(
            "create_user",
            lambda db: _copy(UserRecord, user_service.create_user(db, username, email, user_id)),
        )

    def get_or_create_user(self, user_id: int, username: str, email: str) -> UserRecord:
        return self._write(
            "get_or_create_user",
            lambda db: _copy(
                UserRecord, user_service.get_or_create_user(db, user_id, username, email)
            ),
        )

    def get_user(self, user_id: int) -> UserRecord | None:
        return self._read(lambda db: _copy(UserRecord, user_service.get_user_by_id(db, user_id)))

    def update_user_id(self, old_id: int, new_id: int) -> UserRecord | None:
        """Rename a user's key; sessions and campaigns follow it."""
        return self._write(
            "update_user_id",
            lambda db: _copy(UserRecord, user_service.rename_user(db, old_id, new_id)),
        )

    def mark_user_synced(self, user_id: int, synced_at: int | None = None) -> UserRecord | None:
        return self._write(
            "mark_user_synced",
            lambda db: _copy(UserRecord, user_service.mark_synced(db, user_id, synced_at)),
        )

    def delete_user(self, user_id: int) -> dict[str, int]:
        """Delete a user and everything it owns. Deleting an absent user is a no-op."""
        return self._write("delete_user", lambda db: user_service.delete_user(db, user_id))

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(
        self,
        user_id: int,
        access_token: str,
        dc: str,
        session_id: str | None = None,
    ) -> SessionRecord:
        return self._write(
            "create_session",
            lambda db: _copy(
                SessionRecord,
                session_service.create_session(db, user_id, access_token, dc, session_id),
            ),
        )

    def get_session(self, session_id: str) -> SessionRecord | None:
        return self._read(
            lambda db: _copy(SessionRecord, session_service.get_session(db, session_id))
        )

    def validate_session(self, session_id: str) -> bool:
        return self.get_session(session_id) is not None

    def get_access_token(self, session_id: str) -> AccessToken | None:
        return self._read(
            lambda db: _copy(AccessToken, session_service.get_session(db, session_id))
        )

    def get_access_token_for_member_list(self, member_list_id: str) -> AccessToken | None:
        return self._read(
            lambda db: _copy(
                AccessToken, session_service.get_session_for_member_list(db, member_list_id)
            )
        )

    def list_sessions_by_user(self, user_id: int) -> list[SessionRecord]:
        return self._read(
            lambda db: _copies(SessionRecord, session_service.list_user_sessions(db, user_id))
        )

    def delete_session(self, session_id: str) -> bool:
        return self._write(
            "delete_session", lambda db: session_service.delete_session(db, session_id)
        )

    def delete_user_sessions(self, user_id: int) -> int:
        return self._write(
            "delete_user_sessions", lambda db: session_service.delete_user_sessions(db, user_id)
        )

    # =========================================================================
    # Campaigns
    # =========================================================================

    def create_campaign(
        self,
        title: str,
        member_list_id: str,
        user_id: int,
        campaign_id: str | None = None,
    ) -> CampaignRecord:
        return self._write(
            "create_campaign",
            lambda db: _copy(
                CampaignRecord,
                campaign_service.create_campaign(db, title, member_list_id, user_id, campaign_id),
            ),
        )

    def get_campaign(self, campaign_id: str) -> CampaignRecord | None:
        return self._read(
            lambda db: _copy(CampaignRecord, campaign_service.get_campaign(db, campaign_id))
        )

    def list_campaigns_by_user(self, user_id: int) -> list[CampaignRecord]:
        return self._read(
            lambda db: _copies(CampaignRecord, campaign_service.list_user_campaigns(db, user_id))
        )

    def list_campaigns_by_ids(self, campaign_ids: Iterable[str]) -> list[CampaignRecord]:
        ids = list(campaign_ids)
        return self._read(
            lambda db: _copies(CampaignRecord, campaign_service.list_campaigns_by_ids(db, ids))
        )

    def list_campaigns_by_member_list(self, member_list_id: str) -> list[CampaignRecord]:
        return self._read(
            lambda db: _copies(
                CampaignRecord, campaign_service.list_campaigns_by_member_list(db, member_list_id)
            )
        )

    def delete_campaign(self, campaign_id: str) -> dict[str, int]:
        """Delete a campaign and its members. Deleting an absent campaign is a no-op."""
        return self._write(
            "delete_campaign", lambda db: campaign_service.delete_campaign(db, campaign_id)
        )

    # =========================================================================
    # Members
    # =========================================================================

    def add_member(self, email_id: str, full_name: str, campaign_id: str) -> MemberRecord:
        return self._write(
            "add_member",
            lambda db: _copy(
                MemberRecord, member_service.add_member(db, email_id, full_name, campaign_id)
            ),
        )

    def add_members(
        self, campaign_id: str, members: Iterable[tuple[str, str]]
    ) -> list[MemberRecord]:
        entries = list(members)
        return self._write(
            "add_members",
            lambda db: _copies(MemberRecord, member_service.add_members(db, campaign_id, entries)),
        )

    def list_members_by_campaign(self, campaign_id: str) -> list[MemberRecord]:
        return self._read(
            lambda db: _copies(MemberRecord, member_service.list_campaign_members(db, campaign_id))
        )

    def update_member_name(self, campaign_id: str, email_id: str, full_name: str) -> int:
        return self._write(
            "update_member_name",
            lambda db: member_service.update_member_name(db, campaign_id, email_id, full_name),
        )

    def remove_member(self, campaign_id: str, email_id: str) -> int:
        return self._write(
            "remove_member", lambda db: member_service.remove_member(db, campaign_id, email_id)
        )

    # =========================================================================
    # Maintenance
    # =========================================================================

    def check_integrity(self) -> IntegrityReport:
        return self._read(integrity_service.check_integrity)
