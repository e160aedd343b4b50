"""Retry with exponential backoff and per-attempt timeouts.

:class:`RetryExecutor` wraps an arbitrary async operation.  Each attempt
races the operation against ``per_attempt_timeout_ms``; a timed-out attempt
is cancelled and its result discarded.  Every attempt produces an
:class:`~creative_design.core.errors.Outcome`, so the retry decision is a
check of ``outcome.retryable`` rather than exception matching.

Backoff is pure exponential without jitter::

    attempt 1 fails -> wait base_delay_ms
    attempt 2 fails -> wait base_delay_ms * 2
    attempt 3 fails -> propagate

There is no external cancellation token: delays end only when they elapse.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from creative_design.core.config import RetryPolicy
from creative_design.core.errors import DesignError, DesignErrorType, Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")

Classify = Callable[[Exception], Exception]


def backoff_delay_ms(policy: RetryPolicy, attempt: int) -> int:
    """Delay after the given failed attempt (1-based)."""
    return policy.base_delay_ms * (2 ** (attempt - 1))


class RetryExecutor:
    """Run async operations under a :class:`RetryPolicy`.

    Args:
        sleep: Awaitable delay in seconds.  Tests inject a recorder.
    """

    def __init__(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> None:
        self._sleep = sleep

    async def attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy,
        classify: Classify | None = None,
    ) -> Outcome[T]:
        """Run one attempt under the per-attempt timeout."""
        timeout_s = policy.per_attempt_timeout_ms / 1000.0
        try:
            return Outcome.success(await asyncio.wait_for(operation(), timeout=timeout_s))
        except asyncio.TimeoutError:
            failure: Exception = DesignError(
                DesignErrorType.TIMEOUT_ERROR,
                f"Operation timed out after {policy.per_attempt_timeout_ms}ms",
                retryable=True,
                details={"timeout_ms": policy.per_attempt_timeout_ms},
            )
        except Exception as e:
            failure = e

        if classify is not None:
            failure = classify(failure)
        return Outcome.failure(failure)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        classify: Classify | None = None,
    ) -> T:
        """Invoke ``operation`` until it succeeds or the budget is spent.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            policy: Attempt budget, backoff base and per-attempt timeout.
            classify: Optional translation applied to every failure before
                the retry decision.

        Returns:
            The first successful result.

        Raises:
            DesignError: Immediately when a failure is non-retryable, or the
                last failure once attempts are exhausted.
            Exception: The last failure unchanged when no classifier is given
                and the operation raised something other than a DesignError.
        """
        policy = policy or RetryPolicy()

        for attempt in range(1, policy.max_attempts + 1):
            outcome = await self.attempt(operation, policy, classify)
            error = outcome.error
            if error is None:
                if attempt > 1:
                    logger.info(f"Operation succeeded on attempt {attempt}")
                return outcome.value  # type: ignore[return-value]

            if not outcome.retryable:
                logger.warning(f"Attempt {attempt} failed with non-retryable error: {error!r}")
                raise error

            if attempt == policy.max_attempts:
                logger.error(f"All {policy.max_attempts} attempts failed: {error!r}")
                raise error

            delay_ms = backoff_delay_ms(policy, attempt)
            logger.warning(
                f"Attempt {attempt}/{policy.max_attempts} failed ({error!r}), "
                f"retrying in {delay_ms}ms"
            )
            await self._sleep(delay_ms / 1000.0)

        raise RuntimeError("retry loop exited without an outcome")
