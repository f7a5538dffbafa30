"""
HealthFinder API — Store Engine, Sessions and Readiness
=========================================================

What:  Async SQLAlchemy engine, session factory, FastAPI session dependency
       and the connection state consulted by the readiness gate.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
       The startup ping is retried with tenacity (exponential backoff + jitter).
Who:   Used by route handlers via FastAPI's dependency injection system,
       by the lifespan handler and by the seeding command.

SQLite:
    Writers are serialized with BEGIN IMMEDIATE, which gives the same
    per-clinic exclusion SELECT ... FOR UPDATE gives on PostgreSQL.
    Foreign keys are switched on per connection, and lower() is replaced
    with a Unicode-aware version so case-insensitive search folds Å/Ä/Ö.
"""

import logging
import time
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.exc import DBAPIError, InterfaceError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from healthfinder.config import settings
from healthfinder.exceptions import (
    DatabaseError,
    HealthFinderError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────

def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def _enable_sqlite_pragmas(async_engine: AsyncEngine) -> None:
    """Foreign keys on, and BEGIN IMMEDIATE for every transaction."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Stop the driver from emitting its own deferred BEGIN
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        # SQLite lower() folds ASCII only; ilike must also match Å/Ä/Ö
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)

    @event.listens_for(async_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine; pool sizing applies to server databases only."""
    if database_url.startswith("sqlite"):
        async_engine = create_async_engine(
            database_url,
            connect_args={"timeout": 30},
            echo=settings.log_level == "DEBUG",
        )
        _enable_sqlite_pragmas(async_engine)
        return async_engine

    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=settings.log_level == "DEBUG",
    )


engine = build_engine(settings.database_url)

# expire_on_commit=False: attributes stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


# ── Connection State ──────────────────────────────────────────────────────

class StoreState:
    """
    Tracks whether the store connection is established.

    Set by connect_store() at startup, cleared on shutdown and when a
    request hits a connection-level failure. While cleared, the readiness
    gate probes the store at most once per `probe_interval` seconds.
    """

    probe_interval = 5.0

    def __init__(self) -> None:
        self.connected = False
        self._last_probe = 0.0

    def mark_connected(self) -> None:
        if not self.connected:
            logger.info("Store connection established")
        self.connected = True

    def mark_disconnected(self) -> None:
        if self.connected:
            logger.warning("Store connection lost")
        self.connected = False

    def probe_due(self) -> bool:
        now = time.monotonic()
        if now - self._last_probe < self.probe_interval:
            return False
        self._last_probe = now
        return True


store_state = StoreState()


async def ping_store() -> None:
    """Run SELECT 1 against the store. Raises on any failure."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


@retry(
    retry=retry_if_exception_type((OSError, SQLAlchemyError)),
    stop=stop_after_attempt(settings.connect_retry_attempts),
    wait=wait_exponential_jitter(
        initial=settings.connect_retry_min_wait,
        max=settings.connect_retry_max_wait,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _ping_with_retry() -> None:
    await ping_store()


async def connect_store() -> None:
    """
    Establish the store connection, retrying transient failures.

    Raises:
        StoreUnavailableError: the store stayed unreachable after all retries.
    """
    try:
        await _ping_with_retry()
    except (OSError, SQLAlchemyError) as e:
        store_state.mark_disconnected()
        logger.error("Could not connect to store: %s", str(e))
        raise StoreUnavailableError(context={"error_type": type(e).__name__}) from e
    store_state.mark_connected()


async def ensure_store_connected() -> bool:
    """Single, throttled reconnection attempt used by the readiness gate."""
    if store_state.connected:
        return True
    if not store_state.probe_due():
        return False
    try:
        await ping_store()
        # The store may have been unreachable at startup, before create_tables ran
        await create_tables()
    except (OSError, SQLAlchemyError) as e:
        logger.warning("Store still unreachable: %s", str(e))
        return False
    store_state.mark_connected()
    return True


async def create_tables() -> None:
    """Create any missing tables. Existing tables are left untouched."""
    # Models must be imported so their tables are registered on Base.metadata
    from healthfinder.models import Clinic, Review  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def translate_store_error(exc: Exception, message: str, **context) -> HealthFinderError:
    """
    Map a driver/ORM failure onto the application error taxonomy.

    Connection-level failures become StoreUnavailableError (and clear the
    connection state); everything else becomes a generic DatabaseError.
    """
    ctx = {"error_type": type(exc).__name__, **context}
    lost = isinstance(exc, (OSError, InterfaceError)) or (
        isinstance(exc, DBAPIError) and exc.connection_invalidated
    )
    if lost:
        store_state.mark_disconnected()
        return StoreUnavailableError(context=ctx)
    return DatabaseError(message=message, context=ctx)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections and marks the store disconnected."""
    store_state.mark_disconnected()
    await engine.dispose()
