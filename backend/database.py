"""
Database configuration and connection management.

This module sets up SQLAlchemy with async SQLite support and provides the
explicit store handle that every repository is bound to. A Store only exists
once the schema has been migrated successfully.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from config import settings
from utils.logging import get_logger

logger = get_logger("database")

# Create declarative base for models
Base = declarative_base()


def create_engine(database_url: str) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    For SQLite the driver's implicit transaction handling is disabled and an
    explicit BEGIN is emitted instead, so that DDL (ALTER TABLE, CREATE TABLE,
    DROP TABLE) participates in the surrounding transaction.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        AsyncEngine: Configured engine
    """
    engine = create_async_engine(
        database_url,
        echo=False,  # Use LOG_LEVEL=DEBUG for SQLAlchemy logs if needed
        poolclass=NullPool,
    )

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Disable implicit transactions and enable foreign keys."""
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)


class Store:
    """
    Handle to a migrated server store.

    Constructed only by open_store() after a successful schema migration and
    passed explicitly to ServerRepository. There is no module-level handle.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_maker = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Open a database session.

        Yields:
            AsyncSession: Database session instance
        """
        async with self.session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self) -> None:
        """Dispose of the underlying engine."""
        await self.engine.dispose()


async def open_store(database_url: Optional[str] = None) -> Store:
    """
    Migrate the store to the current schema and return a handle to it.

    Args:
        database_url: Database URL (defaults to settings.resolved_database_url)

    Returns:
        Store: Handle bound to the migrated database

    Raises:
        MigrationError: If the schema could not be brought up to date
    """
    # Import here to keep models registered on Base before migration
    from migrations.server_schema import ensure_schema
    from modules.catalog.exceptions import MigrationError

    database_url = database_url or settings.resolved_database_url
    logger.info("Opening server store", database_url=database_url)

    try:
        _ensure_sqlite_directory(database_url)
        engine = create_engine(database_url)
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}", exc_info=True)
        raise MigrationError(f"Cannot open store at {database_url}: {e}") from e

    try:
        async with engine.begin() as conn:
            outcome = await conn.run_sync(ensure_schema)
    except Exception as e:
        await engine.dispose()
        logger.error(f"Store initialization failed: {e}", exc_info=True)
        if isinstance(e, MigrationError):
            raise
        raise MigrationError(f"Schema migration failed: {e}") from e

    logger.info("Server store ready", outcome=outcome.value)
    return Store(engine)


async def check_database_health(store: Store) -> bool:
    """
    Check if database connection is healthy.

    Args:
        store: Store to probe

    Returns:
        bool: True if database is accessible, False otherwise
    """
    try:
        async with store.session() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
