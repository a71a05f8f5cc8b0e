# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

Uses SQLAlchemy 2.0 async API with the asyncpg driver in deployments and
aiosqlite for local runs and tests.

Example:
    from src.infrastructure.database.connection import (
        init_database,
        get_session,
    )

    # Initialize at application startup
    await init_database(settings)

    # Use in background jobs and scripts
    async with get_session() as session:
        result = await session.execute(select(Term))
        terms = result.scalars().all()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from src.core.config.settings import Settings

# Module-level state for the database connection
_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


def configure_sqlite_engine(engine: AsyncEngine, busy_timeout_ms: int = 5000) -> None:
    """Make SQLite honour foreign keys and SAVEPOINTs and queue writers.

    pysqlite manages transactions itself and breaks begin_nested(); the
    driver's implicit BEGIN is disabled and SQLAlchemy emits its own.
    Transactions start with BEGIN IMMEDIATE so the write lock is taken up
    front: a deferred transaction that has read cannot wait for the lock
    and fails with "database is locked" instead. Concurrent transactions
    wait up to busy_timeout_ms for the lock.

    Args:
        engine: Async engine bound to a SQLite URL.
        busy_timeout_ms: Lock wait in milliseconds.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the sessionmaker used by request handlers and jobs.

    Args:
        engine: Async engine to bind sessions to.

    Returns:
        Sessionmaker producing non-expiring, non-autoflushing sessions.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_database(settings: "Settings") -> None:
    """Initialize the database connection pool.

    Called once at application startup.

    Args:
        settings: Application settings containing database configuration.

    Raises:
        DatabaseError: If connection pool creation fails.
    """
    global _engine, _sessionmaker

    engine_kwargs: dict = {"echo": settings.debug and settings.log_level == "DEBUG"}
    if not settings.db.is_sqlite:
        engine_kwargs.update(
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
        )

    try:
        _engine = create_async_engine(settings.db.url, **engine_kwargs)
        if settings.db.is_sqlite:
            configure_sqlite_engine(_engine, settings.db.sqlite_busy_timeout_ms)
        _sessionmaker = create_sessionmaker(_engine)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e


async def create_schema() -> None:
    """Create all tables from the ORM metadata.

    Used for SQLite local runs where migrations are not applied.

    Raises:
        DatabaseError: If the database has not been initialized or
            table creation fails.
    """
    from src.infrastructure.database.models import Base

    engine = get_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create database schema", e) from e


async def close_database() -> None:
    """Close the database connection pool.

    Called at application shutdown.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None


def get_engine() -> AsyncEngine:
    """Get the database async engine.

    Returns:
        The SQLAlchemy async engine.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _engine is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the database sessionmaker.

    Returns:
        The SQLAlchemy async sessionmaker.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Get an async session.

    The session is committed on success and rolled back on exception.

    Yields:
        AsyncSession for database operations.

    Raises:
        DatabaseError: If the database has not been initialized or
            if a database operation fails.
    """
    sessionmaker = get_sessionmaker()

    async with sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError("Database operation failed", e) from e
        except Exception:
            await session.rollback()
            raise


async def check_database_connection() -> bool:
    """Check if the database is reachable.

    Returns:
        True if the database is reachable, False otherwise.
    """
    if _engine is None:
        return False

    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
