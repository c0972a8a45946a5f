# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

This module provides async database connections for the scheduling store
and the TransactionRunner that applies every mutating engine operation as a
single atomic unit.

Uses SQLAlchemy 2.0 async API with asyncpg driver.

Example:
    from src.infrastructure.database.connection import (
        init_database,
        get_transaction_runner,
    )

    # Initialize at application startup
    await init_database(settings)

    # Run an operation atomically, retrying lost ledger races
    runner = get_transaction_runner()
    result = await runner.run(lambda db: ledger.adjust(db, ...))
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm.exc import StaleDataError

from src.core.exceptions import ConcurrencyConflictError, SchedulingError, StoreTimeoutError

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Module-level state for the database connection
_engine: Optional[AsyncEngine] = None
_sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
_runner: Optional["TransactionRunner"] = None


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class TransactionRunner:
    """Runs an operation inside one database transaction.

    Each attempt opens a fresh session, begins a transaction, awaits the
    operation and commits. Any exception rolls the whole attempt back, so
    a ledger append and the balance update it implies are never visible
    half-applied.

    Enrollment rows are version-checked. When a concurrent writer commits
    first, the flush raises StaleDataError; the attempt is discarded and the
    operation runs again from scratch against fresh state.

    Attributes:
        max_attempts: Attempts before a lost race is surfaced to the caller.
        timeout_seconds: Upper bound for a single attempt.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        max_attempts: int = 3,
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize the runner.

        Args:
            sessionmaker: Factory for new async sessions.
            max_attempts: Attempts for operations that lose a race.
            timeout_seconds: Time limit per attempt.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._sessionmaker = sessionmaker
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds

    async def run(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run an operation atomically.

        Args:
            operation: Coroutine function receiving the session to work in.
                It must not commit; the runner commits when it returns.

        Returns:
            Whatever the operation returns.

        Raises:
            ConcurrencyConflictError: If every attempt lost a ledger race.
            StoreTimeoutError: If an attempt exceeded the time limit.
            DatabaseError: If the database failed for another reason.
            SchedulingError: Domain errors raised by the operation, after
                the transaction has been rolled back.
        """
        last_conflict: StaleDataError | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                async with asyncio.timeout(self.timeout_seconds):
                    return await self._run_once(operation)
            except StaleDataError as e:
                last_conflict = e
                logger.warning(
                    "Concurrent update detected, retrying: attempt=%d/%d",
                    attempt,
                    self.max_attempts,
                )
            except TimeoutError as e:
                logger.error("Store operation timed out after %.1fs", self.timeout_seconds)
                raise StoreTimeoutError(
                    "The data store did not respond in time, please retry",
                    {"timeout_seconds": self.timeout_seconds},
                ) from e

        raise ConcurrencyConflictError(
            "The record was modified concurrently, please retry",
            {"attempts": self.max_attempts},
        ) from last_conflict

    async def _run_once(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async with self._sessionmaker() as session:
            try:
                async with session.begin():
                    return await operation(session)
            except (StaleDataError, SchedulingError):
                raise
            except SQLAlchemyError as e:
                raise DatabaseError("Database operation failed", e) from e


async def init_database(settings: "Settings") -> None:
    """Initialize the database connection pool.

    This should be called once at application startup.

    Args:
        settings: Application settings containing database configuration.

    Raises:
        DatabaseError: If connection pool creation fails.
    """
    global _engine, _sessionmaker, _runner

    try:
        _engine = create_async_engine(
            settings.db.url,
            pool_size=settings.db.pool_size,
            max_overflow=settings.db.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
            echo=settings.debug,
        )

        _sessionmaker = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        _runner = TransactionRunner(
            _sessionmaker,
            max_attempts=settings.db.ledger_max_retries,
            timeout_seconds=settings.db.operation_timeout_seconds,
        )
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize database connection", e) from e


async def close_database() -> None:
    """Close the database connection pool.

    This should be called at application shutdown.
    """
    global _engine, _sessionmaker, _runner

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _sessionmaker = None
        _runner = None


def get_engine() -> AsyncEngine:
    """Get the database async engine.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _engine is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the database sessionmaker.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _sessionmaker is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _sessionmaker


def get_transaction_runner() -> TransactionRunner:
    """Get the shared transaction runner.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _runner is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _runner


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """Get an async session for read-only queries.

    The session is committed on success and rolled back on exception.
    Mutations should go through TransactionRunner instead.

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
