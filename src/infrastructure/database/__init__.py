# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

This package provides SQLAlchemy async database connections, the ORM models
and the TransactionRunner used for atomic engine operations.

Example:
    from src.infrastructure.database import get_transaction_runner

    runner = get_transaction_runner()
    balance = await runner.run(lambda db: CreditLedger(db).get_balance(enrollment_id))
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    TransactionRunner,
    check_database_connection,
    close_database,
    get_engine,
    get_session,
    get_sessionmaker,
    get_transaction_runner,
    init_database,
)

__all__ = [
    "DatabaseError",
    "TransactionRunner",
    "check_database_connection",
    "close_database",
    "get_engine",
    "get_session",
    "get_sessionmaker",
    "get_transaction_runner",
    "init_database",
]
