"""Integrity service - orphan scan over every foreign key."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from campaign_store.db.base import Base
from campaign_store.db.cascade import find_orphans
from campaign_store.db.graph import topological_order
from campaign_store.schemas import IntegrityReport


def check_integrity(db: Session) -> IntegrityReport:
    """Count rows per table and foreign keys that reference missing rows."""
    row_counts = {
        name: db.execute(select(func.count()).select_from(Base.metadata.tables[name])).scalar_one()
        for name in topological_order()
    }
    return IntegrityReport(orphans=find_orphans(db), row_counts=row_counts)
