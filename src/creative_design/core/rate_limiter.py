"""Sliding-window rate limiting for generation calls.

One :class:`RateLimiter` instance guards one external quota and must be
shared by every caller that consumes it.  State lives in memory only and is
lost on restart; this is a soft guard in front of the external API, not a
security boundary.

The admitted timestamps are held in a deque ordered oldest-first.  Entries
older than the window are pruned lazily on every check.  At the configured
scale (a handful of requests per minute) the deque stays tiny.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable

from creative_design.core.config import RateLimitConfig
from creative_design.core.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class RateLimiter:
    """Admit at most ``max_requests`` calls in any trailing ``window_ms``.

    Args:
        config: Window size and request budget.
        clock: Returns "now" in milliseconds.  Defaults to a monotonic clock;
            tests inject a controllable one.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._requests: deque[float] = deque()

    def _prune(self, now: float) -> None:
        window = self.config.window_ms
        while self._requests and now - self._requests[0] >= window:
            self._requests.popleft()

    def admit(self) -> None:
        """Record a request or reject it.

        Raises:
            RateLimitExceeded: If the window is full.  ``wait_time_ms`` is the
                time until the oldest admitted request leaves the window.
        """
        now = self._clock()
        self._prune(now)

        if len(self._requests) >= self.config.max_requests:
            wait_time_ms = self.config.window_ms - (now - self._requests[0])
            logger.warning(f"Rate limit reached, next slot in {wait_time_ms:.0f}ms")
            raise RateLimitExceeded(wait_time_ms)

        self._requests.append(now)
        logger.debug(f"Request admitted ({len(self._requests)}/{self.config.max_requests})")

    def remaining(self) -> int:
        """Number of requests still admissible in the current window."""
        self._prune(self._clock())
        return self.config.max_requests - len(self._requests)

    def reset_time(self) -> float:
        """Clock time at which the oldest entry expires, or 0 when idle."""
        self._prune(self._clock())
        if not self._requests:
            return 0
        return self._requests[0] + self.config.window_ms

    def time_until_reset(self) -> float:
        """Milliseconds until the oldest active entry leaves the window."""
        reset_at = self.reset_time()
        if reset_at == 0:
            return 0
        return max(0, reset_at - self._clock())

    def reset(self) -> None:
        """Forget every admitted request.  Administrative and test use only."""
        self._requests.clear()
        logger.info("Rate limiter reset")
