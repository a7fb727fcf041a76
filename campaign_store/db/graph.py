"""Foreign-key graph of the schema and cascade ordering.

The graph is read from the model metadata, so it always matches the DDL.
Edges point from a referenced table to the tables that reference it
(``Users -> UserSessions``, ``Users -> Campaigns``, ``Campaigns -> Members``).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy import Column, Table

from campaign_store.db import models
from campaign_store.db.base import Base


@dataclass(frozen=True)
class ForeignKeyEdge:
    """One foreign key: ``child.child_column -> parent.parent_column``."""

    parent: str
    parent_column: str
    child: str
    child_column: str

    @property
    def child_table(self) -> Table:
        return Base.metadata.tables[self.child]

    @property
    def fk_column(self) -> Column:
        return self.child_table.c[self.child_column]


@lru_cache(maxsize=1)
def foreign_key_edges() -> tuple[ForeignKeyEdge, ...]:
    """All foreign keys declared in the schema, in a stable order."""
    edges = []
    for table in Base.metadata.sorted_tables:
        for fk in sorted(table.foreign_keys, key=lambda f: f.parent.name):
            edges.append(
                ForeignKeyEdge(
                    parent=fk.column.table.name,
                    parent_column=fk.column.name,
                    child=table.name,
                    child_column=fk.parent.name,
                )
            )
    return tuple(edges)


def dependents(table_name: str) -> list[ForeignKeyEdge]:
    """Edges whose parent is ``table_name``."""
    return [edge for edge in foreign_key_edges() if edge.parent == table_name]


def topological_order() -> list[str]:
    """Table names ordered roots first (every parent before its children)."""
    return [table.name for table in Base.metadata.sorted_tables]


def cascade_delete_order(root: str) -> list[str]:
    """Tables reachable from ``root``, ordered leaves first for deletion."""
    reachable = {root}
    frontier = [root]
    while frontier:
        current = frontier.pop()
        for edge in dependents(current):
            if edge.child not in reachable:
                reachable.add(edge.child)
                frontier.append(edge.child)
    return [name for name in reversed(topological_order()) if name in reachable]


# Referenced by name in the services; checked here so a schema change fails early.
USERS = models.User.__tablename__
USER_SESSIONS = models.UserSession.__tablename__
CAMPAIGNS = models.Campaign.__tablename__
MEMBERS = models.Member.__tablename__

__all__ = [
    "ForeignKeyEdge",
    "foreign_key_edges",
    "dependents",
    "topological_order",
    "cascade_delete_order",
    "USERS",
    "USER_SESSIONS",
    "CAMPAIGNS",
    "MEMBERS",
]
