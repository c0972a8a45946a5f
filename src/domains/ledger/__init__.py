# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credit ledger domain package.

This package provides the append-only credit ledger behind enrollment
balances.
"""

from src.domains.ledger.service import CreditLedger, LedgerAudit, LedgerEntry, SYSTEM_ACTOR

__all__ = [
    "CreditLedger",
    "LedgerAudit",
    "LedgerEntry",
    "SYSTEM_ACTOR",
]
