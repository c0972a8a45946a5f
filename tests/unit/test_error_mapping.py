# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the exception hierarchy and its HTTP mapping."""

import pytest

from src.api.dependencies import get_actor, to_http_exception
from src.core.exceptions import (
    CancellationRequestNotFoundError,
    ConcurrencyConflictError,
    InsufficientCreditsError,
    InvalidTransitionError,
    PreconditionFailedError,
    SchedulingError,
    SessionNotFoundError,
    StoreTimeoutError,
    ValidationError,
)
from src.domains.ledger import SYSTEM_ACTOR


class TestExceptions:
    """Tests for SchedulingError and its subclasses."""

    def test_str_includes_details(self):
        """Test details are appended to the message."""
        error = SchedulingError("Something failed", {"id": "x"})

        assert str(error) == "Something failed - Details: {'id': 'x'}"

    def test_insufficient_credits_carries_amounts(self):
        """Test the available and required credits are kept."""
        error = InsufficientCreditsError("Not enough", available=2, required=4)

        assert isinstance(error, PreconditionFailedError)
        assert error.details == {"available": 2, "required": 4}

    def test_only_store_errors_are_retryable(self):
        """Test retryable is set on conflicts and timeouts only."""
        assert ConcurrencyConflictError("x").retryable is True
        assert StoreTimeoutError("x").retryable is True
        assert ValidationError("x").retryable is False
        assert InvalidTransitionError("x").retryable is False


class TestHttpMapping:
    """Tests for to_http_exception."""

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (ValidationError("bad"), 422),
            (SessionNotFoundError("missing"), 404),
            (CancellationRequestNotFoundError("missing"), 404),
            (InsufficientCreditsError("poor", available=0, required=1), 400),
            (InvalidTransitionError("done"), 400),
            (ConcurrencyConflictError("race"), 409),
            (StoreTimeoutError("slow"), 503),
            (SchedulingError("other"), 500),
        ],
    )
    def test_status_codes(self, error, status_code):
        """Test each error family maps to its status code."""
        assert to_http_exception(error).status_code == status_code

    def test_retryable_errors_set_retry_after(self):
        """Test retryable errors tell the client when to retry."""
        exc = to_http_exception(ConcurrencyConflictError("race", {"attempts": 3}))

        assert exc.headers == {"Retry-After": "1"}
        assert exc.detail == {"message": "race", "retryable": True, "details": {"attempts": 3}}

    def test_detail_omits_empty_details(self):
        """Test details are only included when present."""
        exc = to_http_exception(ValidationError("bad"))

        assert exc.detail == {"message": "bad", "retryable": False}
        assert exc.headers is None


class TestActor:
    """Tests for get_actor."""

    def test_uses_header(self):
        """Test the header value is trimmed and used."""
        assert get_actor("  Alice Admin ") == "Alice Admin"

    @pytest.mark.parametrize("header", [None, "", "   "])
    def test_defaults_to_system(self, header):
        """Test a missing header falls back to the system actor."""
        assert get_actor(header) == SYSTEM_ACTOR
