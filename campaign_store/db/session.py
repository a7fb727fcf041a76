"""Engine and session factories.

Reads and writes go through different views of the same engine. On SQLite,
write transactions open with ``BEGIN IMMEDIATE`` so a writer holds the
database write lock from its first validation read to commit; other
dialects run writes at SERIALIZABLE isolation.
"""

import logging
import threading
import weakref

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campaign_store.core.config import settings
from campaign_store.db.base import Base

logger = logging.getLogger(__name__)

# Execution option carried by the write view of an engine.
WRITE_OPTION = "campaign_store_write"

# Engines that already carry the SQLite hooks.
_configured_engines: "weakref.WeakSet[Engine]" = weakref.WeakSet()


def _is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name == "sqlite"


def is_memory_url(url: URL) -> bool:
    """True for SQLite URLs whose database lives only in memory."""
    database = url.database or ""
    return (
        database in ("", ":memory:")
        or database.startswith("file::memory:")
        or url.query.get("mode") == "memory"
    )


def _prepare_connection(dbapi_connection, busy_timeout_ms: int, wal: bool) -> None:
    # Let SQLAlchemy's "begin" hook decide how transactions open.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")
        if wal:
            cursor.execute("PRAGMA journal_mode = WAL")
    finally:
        cursor.close()


def _serialize_checkouts(engine: Engine) -> None:
    """Hand the single shared connection of a StaticPool to one caller at a time."""
    lock = threading.RLock()

    @event.listens_for(engine, "checkout")
    def _on_checkout(dbapi_connection, connection_record, connection_proxy):
        lock.acquire()

    @event.listens_for(engine, "checkin")
    def _on_checkin(dbapi_connection, connection_record):
        lock.release()


def _install_sqlite_hooks(engine: Engine, busy_timeout_ms: int, wal: bool) -> None:
    use_wal = wal and not is_memory_url(engine.url)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        _prepare_connection(dbapi_connection, busy_timeout_ms, use_wal)

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Connection):
        if conn.get_execution_options().get(WRITE_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    if isinstance(engine.pool, StaticPool):
        _serialize_checkouts(engine)


def configure_engine(
    engine: Engine,
    *,
    busy_timeout_ms: int | None = None,
    wal: bool | None = None,
) -> Engine:
    """
    Install the store's SQLite connection hooks on ``engine``, once.

    Engines built elsewhere get foreign-key enforcement, the busy timeout and
    ``BEGIN IMMEDIATE`` writes the same as engines from ``create_store_engine``.
    Other dialects are returned unchanged.
    """
    if not _is_sqlite(engine) or engine in _configured_engines:
        return engine

    busy_timeout_ms = settings.SQLITE_BUSY_TIMEOUT_MS if busy_timeout_ms is None else busy_timeout_ms
    wal = settings.SQLITE_WAL if wal is None else wal
    _install_sqlite_hooks(engine, busy_timeout_ms, wal)
    _configured_engines.add(engine)

    if is_memory_url(engine.url):
        if not isinstance(engine.pool, StaticPool):
            logger.warning(
                "In-memory SQLite engine uses %s; each thread sees its own database",
                type(engine.pool).__name__,
            )
        # Disposing would drop the database, so prepare the live connection.
        raw = engine.raw_connection()
        try:
            _prepare_connection(raw.dbapi_connection, busy_timeout_ms, False)
        finally:
            raw.close()
    else:
        # Pooled connections opened before the hooks lack the pragmas.
        engine.dispose()
    return engine


def create_store_engine(
    database_url: str | None = None,
    *,
    echo: bool | None = None,
    busy_timeout_ms: int | None = None,
    wal: bool | None = None,
) -> Engine:
    """Create an engine configured for the store's transaction discipline."""
    url = make_url(database_url or settings.DATABASE_URL)
    engine_args = {}
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        # Sessions are opened per operation from any thread.
        connect_args["check_same_thread"] = False
        if is_memory_url(url):
            # One connection, so every thread sees the same database.
            engine_args["poolclass"] = StaticPool
    elif url.get_backend_name().startswith("postgresql"):
        connect_args["options"] = "-c timezone=utc"

    engine = create_engine(
        url,
        echo=settings.DB_ECHO if echo is None else echo,
        pool_pre_ping=not url.get_backend_name() == "sqlite",
        connect_args=connect_args,
        **engine_args,
    )
    configure_engine(engine, busy_timeout_ms=busy_timeout_ms, wal=wal)
    logger.debug("Created engine for %s", url.render_as_string(hide_password=True))
    return engine


def write_engine(engine: Engine) -> Engine:
    """Return the view of ``engine`` used for write transactions."""
    if _is_sqlite(engine):
        return engine.execution_options(**{WRITE_OPTION: True})
    return engine.execution_options(isolation_level="SERIALIZABLE", **{WRITE_OPTION: True})


def make_session_factories(engine: Engine) -> tuple[sessionmaker, sessionmaker]:
    """Return ``(read_factory, write_factory)`` bound to ``engine``."""
    configure_engine(engine)
    read_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    write_factory = sessionmaker(
        bind=write_engine(engine), autoflush=False, expire_on_commit=False
    )
    return read_factory, write_factory


def init_db(engine: Engine) -> None:
    """Create all tables directly from the model metadata."""
    import campaign_store.db.models  # noqa: F401

    Base.metadata.create_all(engine)
