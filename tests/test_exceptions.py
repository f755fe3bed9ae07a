#!/usr/bin/env python3
"""Tests for the register client exception hierarchy."""
from datetime import datetime, timezone

import pytest

from src.darb.api.exceptions import (
    APIError,
    AuthenticationError,
    CircuitOpenError,
    ConfigurationError,
    ConnectionError,
    ForbiddenError,
    LoginError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RegisterError,
    ServerError,
    TimeoutError,
    UnauthorizedError,
    ValidationError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "error,parent",
        [
            (LoginError(), AuthenticationError),
            (UnauthorizedError(), AuthenticationError),
            (ForbiddenError(), AuthenticationError),
            (RateLimitError(), APIError),
            (NotFoundError("Station"), APIError),
            (ValidationError("bad"), APIError),
            (ServerError(), APIError),
            (ConnectionError(), NetworkError),
            (TimeoutError(), NetworkError),
            (CircuitOpenError(), RegisterError),
            (ConfigurationError("missing"), RegisterError),
        ],
    )
    def test_parents(self, error, parent):
        assert isinstance(error, parent)
        assert isinstance(error, RegisterError)

    def test_network_names_do_not_catch_builtins(self):
        assert not issubclass(ConnectionError, OSError)
        assert not issubclass(TimeoutError, OSError)


class TestRecoverability:
    @pytest.mark.parametrize(
        "error,recoverable",
        [
            (ServerError(status_code=502), True),
            (RateLimitError(), True),
            (ConnectionError(), True),
            (CircuitOpenError(), True),
            (UnauthorizedError(), True),
            (NotFoundError("Asset", "3"), False),
            (ValidationError("bad"), False),
            (ForbiddenError(), False),
            (LoginError(), False),
            (ConfigurationError("missing"), False),
        ],
    )
    def test_flags(self, error, recoverable):
        assert error.recoverable is recoverable


class TestDetails:
    def test_not_found_message(self):
        error = NotFoundError("Station", "99")

        assert error.message == "Station '99' not found"
        assert error.status_code == 404
        assert error.details["resource_type"] == "Station"

    def test_api_error_truncates_body(self):
        error = APIError("boom", status_code=409, response_body="x" * 600)

        assert len(error.details["response_body"]) == 500
        assert error.code == "API_ERROR_409"
        assert error.recoverable is False

    def test_rate_limit_default_retry(self):
        assert RateLimitError().retry_after == 5
        assert RateLimitError(retry_after=9).details["retry_after_seconds"] == 9

    def test_forbidden_role_context(self):
        error = ForbiddenError(role="viewing_user", permission="assign")
        assert error.details == {"role": "viewing_user", "permission": "assign"}

    def test_circuit_open_reset_at(self):
        reset_at = datetime(2024, 6, 1, 12, 0)
        error = CircuitOpenError(reset_at=reset_at, failure_count=4)

        assert error.details["reset_at"] == "2024-06-01T12:00:00"
        assert error.failure_count == 4

    def test_cause_is_chained(self):
        cause = OSError("refused")
        error = ConnectionError("down", host="backend", cause=cause)

        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "refused"


class TestSerialization:
    def test_to_dict(self):
        error = ValidationError("Quantity must be at least 1", field="quantity")

        data = error.to_dict()

        assert data["error_type"] == "ValidationError"
        assert data["code"] == "VALIDATION_ERROR"
        assert data["details"] == {"status_code": 400, "method": "GET", "field": "quantity"}
        assert data["recoverable"] is False
        assert data["cause"] is None
        datetime.fromisoformat(data["timestamp"])

    def test_timestamp_is_utc_aware(self):
        assert ServerError().timestamp.tzinfo is timezone.utc

    def test_str_includes_code_and_details(self):
        text = str(NotFoundError("Asset", "7"))

        assert text.startswith("[NOT_FOUND] Asset '7' not found")
        assert "resource_id=7" in text
