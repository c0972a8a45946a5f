# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for TransactionRunner retry and timeout handling."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from src.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientCreditsError,
    StoreTimeoutError,
)
from src.infrastructure.database.connection import DatabaseError, TransactionRunner


def _async_context(value=None):
    """Build a mock async context manager yielding value."""
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=value)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return ctx


@pytest.fixture
def mock_session():
    """Create mock session whose begin() is an async context manager."""
    session = MagicMock()
    session.begin = MagicMock(side_effect=lambda: _async_context())
    return session


@pytest.fixture
def sessionmaker(mock_session):
    """Create mock sessionmaker returning the mock session."""
    return MagicMock(side_effect=lambda: _async_context(mock_session))


class TestTransactionRunner:
    """Tests for TransactionRunner.run."""

    @pytest.mark.asyncio
    async def test_returns_operation_result(self, sessionmaker, mock_session):
        """Test the operation receives the session and its result is returned."""
        operation = AsyncMock(return_value="done")
        runner = TransactionRunner(sessionmaker)

        assert await runner.run(operation) == "done"
        operation.assert_awaited_once_with(mock_session)

    @pytest.mark.asyncio
    async def test_retries_lost_race_then_succeeds(self, sessionmaker):
        """Test a stale write is retried with a fresh session."""
        operation = AsyncMock(side_effect=[StaleDataError("stale"), "ok"])
        runner = TransactionRunner(sessionmaker, max_attempts=3)

        assert await runner.run(operation) == "ok"
        assert operation.await_count == 2
        assert sessionmaker.call_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, sessionmaker):
        """Test repeated races surface as a retryable conflict."""
        operation = AsyncMock(side_effect=StaleDataError("stale"))
        runner = TransactionRunner(sessionmaker, max_attempts=3)

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await runner.run(operation)

        assert exc_info.value.retryable is True
        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_domain_errors_are_not_retried(self, sessionmaker):
        """Test a rejected operation propagates unchanged."""
        error = InsufficientCreditsError("no credits", available=0, required=1)
        operation = AsyncMock(side_effect=error)
        runner = TransactionRunner(sessionmaker)

        with pytest.raises(InsufficientCreditsError):
            await runner.run(operation)

        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_timeout_raises_store_timeout(self, sessionmaker):
        """Test a slow store is reported as a retryable timeout."""

        async def slow(_db):
            await asyncio.sleep(1)

        runner = TransactionRunner(sessionmaker, timeout_seconds=0.01)

        with pytest.raises(StoreTimeoutError) as exc_info:
            await runner.run(slow)

        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_wraps_database_errors(self, sessionmaker):
        """Test SQLAlchemy failures are wrapped in DatabaseError."""
        operation = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("down")))
        runner = TransactionRunner(sessionmaker)

        with pytest.raises(DatabaseError):
            await runner.run(operation)

    def test_rejects_zero_attempts(self, sessionmaker):
        """Test at least one attempt is required."""
        with pytest.raises(ValueError):
            TransactionRunner(sessionmaker, max_attempts=0)
