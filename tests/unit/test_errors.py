"""Tests for creative_design.core.errors — error taxonomy and Outcome."""

from __future__ import annotations

import pytest

from creative_design.core.errors import (
    DesignError,
    DesignErrorType,
    Outcome,
    RateLimitExceeded,
    storage_error,
)


class TestDesignError:
    """DesignError is a read-only structured exception."""

    def test_fields(self):
        err = DesignError(
            DesignErrorType.NETWORK_ERROR, "offline", retryable=True, details={"a": 1}
        )
        assert err.kind == DesignErrorType.NETWORK_ERROR
        assert err.message == "offline"
        assert err.retryable is True
        assert err.details == {"a": 1}
        assert str(err) == "offline"

    def test_fields_are_read_only(self):
        err = DesignError(DesignErrorType.API_ERROR, "boom", retryable=True)
        with pytest.raises(AttributeError):
            err.retryable = False  # type: ignore[misc]

    def test_kind_accepts_string_value(self):
        err = DesignError("QUOTA_EXCEEDED", "quota", retryable=True)
        assert err.kind is DesignErrorType.QUOTA_EXCEEDED

    def test_to_dict(self):
        err = DesignError(DesignErrorType.INVALID_PROMPT, "empty", retryable=False)
        assert err.to_dict() == {
            "kind": "INVALID_PROMPT",
            "message": "empty",
            "retryable": False,
            "details": None,
        }

    def test_taxonomy_is_closed(self):
        assert len(DesignErrorType) == 10


class TestRateLimitExceeded:
    def test_wait_time_rounded_up_to_seconds(self):
        err = RateLimitExceeded(1500)
        assert "2 seconds" in err.message
        assert err.wait_time_ms == 1500

    def test_is_not_retryable(self):
        assert RateLimitExceeded(10).retryable is False


class TestStorageError:
    def test_wraps_original_error(self):
        err = storage_error("disk full", OSError("no space"))
        assert err.kind == DesignErrorType.STORAGE_ERROR
        assert err.retryable is False
        assert err.details == {"original_error": "no space"}

    def test_without_cause(self):
        assert storage_error("too big").details is None


class TestOutcome:
    """Outcome carries either a value or an error."""

    def test_success(self):
        outcome = Outcome.success(42)
        assert outcome.ok
        assert outcome.unwrap() == 42
        assert outcome.retryable is False

    def test_failure_unwrap_raises(self):
        err = DesignError(DesignErrorType.API_ERROR, "boom", retryable=True)
        outcome = Outcome.failure(err)
        assert not outcome.ok
        with pytest.raises(DesignError):
            outcome.unwrap()

    def test_retryable_follows_design_error(self):
        permanent = DesignError(DesignErrorType.AUTHENTICATION_ERROR, "no", retryable=False)
        assert Outcome.failure(permanent).retryable is False

    def test_unclassified_failure_is_retryable(self):
        assert Outcome.failure(RuntimeError("x")).retryable is True
