"""Embedded relational store for Mailchimp users, sessions, campaigns and members."""

from campaign_store.core.errors import (
    ConflictError,
    MissingReferenceError,
    StoreError,
    ValidationError,
)
from campaign_store.store import RelationalStore

__all__ = [
    "ConflictError",
    "MissingReferenceError",
    "RelationalStore",
    "StoreError",
    "ValidationError",
]
