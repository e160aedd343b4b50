"""Structured error taxonomy for design generation.

Every failure that leaves the generation subsystem is a :class:`DesignError`:
a closed ``kind``, a message ready to show to the user, an explicit
``retryable`` flag and optional opaque ``details``.  Callers decide whether
to offer a retry from ``retryable`` alone, never from ``kind``, because the
same kind can be produced by both transient and permanent conditions
(``API_ERROR`` covers retryable 5xx responses and non-retryable invalid-model
responses alike).

:class:`DesignError` is an exception so it can be raised out of the public
async operations, but its fields are read-only and it is also the error
half of :class:`Outcome`, which lets internal code branch on data instead of
matching exception types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class DesignErrorType(str, Enum):
    """Closed set of failure kinds for the generation subsystem."""

    SCREENSHOT_FAILED = "SCREENSHOT_FAILED"
    API_ERROR = "API_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INVALID_PROMPT = "INVALID_PROMPT"
    STORAGE_ERROR = "STORAGE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    CONTENT_POLICY_ERROR = "CONTENT_POLICY_ERROR"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"


class DesignError(Exception):
    """User-presentable structured failure.

    Attributes:
        kind: Failure category.
        message: Human-readable message intended for display.
        retryable: Whether resubmitting the same request may succeed.
        details: Optional diagnostic payload (original error text, context).
    """

    def __init__(
        self,
        kind: DesignErrorType,
        message: str,
        retryable: bool,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self._kind = DesignErrorType(kind)
        self._message = message
        self._retryable = retryable
        self._details = dict(details) if details else None

    @property
    def kind(self) -> DesignErrorType:
        return self._kind

    @property
    def message(self) -> str:
        return self._message

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def details(self) -> dict[str, Any] | None:
        return self._details

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON shape returned by the API."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value}, "
            f"message={self.message!r}, retryable={self.retryable})"
        )


class RateLimitExceeded(DesignError):
    """Admission rejected by the rate limiter.

    Never retryable from the orchestrator's point of view: the caller waits
    ``wait_time_ms`` and resubmits.
    """

    def __init__(self, wait_time_ms: float) -> None:
        wait_seconds = max(1, -(-int(wait_time_ms) // 1000))
        super().__init__(
            DesignErrorType.RATE_LIMIT_EXCEEDED,
            f"Too many generation requests. Please wait {wait_seconds} seconds and try again.",
            retryable=False,
            details={"wait_time_ms": wait_time_ms},
        )
        self._wait_time_ms = wait_time_ms

    @property
    def wait_time_ms(self) -> float:
        return self._wait_time_ms


def storage_error(message: str, exc: BaseException | None = None) -> DesignError:
    """Build a non-retryable ``STORAGE_ERROR`` wrapping an optional cause."""
    details = {"original_error": str(exc)} if exc is not None else None
    return DesignError(DesignErrorType.STORAGE_ERROR, message, retryable=False, details=details)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or an error, never both.

    The error is a :class:`DesignError` once it has been classified; raw
    exceptions only appear when no classifier was applied.

    Example:
        >>> outcome = Outcome.success(42)
        >>> outcome.ok
        True
        >>> Outcome.failure(err).unwrap()  # raises err
    """

    value: T | None = None
    error: Exception | None = None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> Outcome[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def retryable(self) -> bool:
        """False only for a classified, permanent failure."""
        if isinstance(self.error, DesignError):
            return self.error.retryable
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
