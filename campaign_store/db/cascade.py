"""Explicit cascading delete and key rename over the foreign-key graph.

Both walks run on the caller's open session and never commit; the caller's
transaction boundary makes the whole cascade atomic.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import Column, Table, delete, func, inspect, select, update
from sqlalchemy.orm import Session

from campaign_store.db.base import Base
from campaign_store.db.graph import cascade_delete_order, dependents, topological_order

logger = logging.getLogger(__name__)


def _table(name: str) -> Table:
    return Base.metadata.tables[name]


def primary_key_column(table: Table) -> Column:
    """The single-column primary key of ``table``."""
    columns = list(table.primary_key.columns)
    if len(columns) != 1:
        raise RuntimeError(f"{table.name} must have a single-column primary key")
    return columns[0]


def _loaded_rows(db: Session):
    """Yield (table name, primary key, instance) for ORM objects held by ``db``."""
    for instance in list(db.identity_map.values()):
        state = inspect(instance)
        identity = state.identity
        if identity is None or len(identity) != 1:
            continue
        yield state.mapper.local_table.name, identity[0], instance


def collect_dependents(db: Session, root: str, keys: Iterable[object]) -> dict[str, set]:
    """
    Walk the graph from ``root`` and collect the primary keys of every row
    that a delete of ``keys`` would remove, per table.
    """
    doomed: dict[str, set] = {root: set(keys)}
    for name in topological_order():
        parent_keys = doomed.get(name)
        if not parent_keys:
            continue
        for edge in dependents(name):
            child = edge.child_table
            child_pk = primary_key_column(child)
            rows = db.execute(select(child_pk).where(edge.fk_column.in_(parent_keys)))
            doomed.setdefault(edge.child, set()).update(rows.scalars())
    return doomed


def cascade_delete(db: Session, root: str, keys: Iterable[object]) -> dict[str, int]:
    """
    Delete rows of ``root`` with the given primary keys and everything that
    references them, leaves first.

    Returns:
        Rows deleted per table (tables with nothing to delete are omitted)
    """
    doomed = collect_dependents(db, root, keys)
    counts: dict[str, int] = {}
    for name in cascade_delete_order(root):
        table_keys = doomed.get(name)
        if not table_keys:
            continue
        table = _table(name)
        result = db.execute(delete(table).where(primary_key_column(table).in_(table_keys)))
        if result.rowcount:
            counts[name] = result.rowcount

    for name, key, instance in _loaded_rows(db):
        if key in doomed.get(name, ()):
            db.expunge(instance)
    return counts


def cascade_rename(db: Session, root: str, old_key: object, new_key: object) -> dict[str, int]:
    """
    Change a primary key and retarget every foreign key that references it.

    The referenced row is updated first, then each dependent column. Where the
    database already cascaded the update itself, the dependent updates match
    nothing and the counts come from the pre-rename scan.

    Returns:
        Rows updated per table, including ``root``
    """
    table = _table(root)
    pk = primary_key_column(table)

    pending: dict[str, int] = {}
    for edge in dependents(root):
        count = db.execute(
            select(func.count()).select_from(edge.child_table).where(edge.fk_column == old_key)
        ).scalar_one()
        if count:
            pending[edge.child] = pending.get(edge.child, 0) + count

    result = db.execute(update(table).where(pk == old_key).values({pk.name: new_key}))
    counts = {root: result.rowcount}
    if not result.rowcount:
        return counts

    for edge in dependents(root):
        db.execute(
            update(edge.child_table)
            .where(edge.fk_column == old_key)
            .values({edge.child_column: new_key})
        )

    children = {edge.child for edge in dependents(root)}
    for name, key, instance in _loaded_rows(db):
        if name == root and key == old_key:
            db.expunge(instance)
        elif name in children:
            db.expire(instance)
    counts.update(pending)
    return counts


def find_orphans(db: Session) -> dict[str, int]:
    """
    Count rows whose foreign key has no matching referenced row.

    Returns:
        Orphan count per ``"Child.Column"`` (only non-zero entries)
    """
    orphans: dict[str, int] = {}
    for name in topological_order():
        for edge in dependents(name):
            parent = _table(edge.parent)
            parent_col = parent.c[edge.parent_column]
            stmt = (
                select(func.count())
                .select_from(edge.child_table)
                .where(edge.fk_column.is_not(None))
                .where(~select(parent_col).where(parent_col == edge.fk_column).exists())
            )
            count = db.execute(stmt).scalar_one()
            if count:
                orphans[f"{edge.child}.{edge.child_column}"] = count
                logger.warning(
                    "Found %d orphaned rows in %s.%s", count, edge.child, edge.child_column
                )
    return orphans
