# SPDX-License-Identifier: MIT
"""Retry backoff policy for failed background flushes."""

from dataclasses import dataclass

from .constants import (
    DEFAULT_FLUSH_BACKOFF_BASE,
    DEFAULT_FLUSH_INITIAL_BACKOFF,
    DEFAULT_FLUSH_MAX_ATTEMPTS,
    DEFAULT_FLUSH_MAX_BACKOFF,
)


@dataclass(frozen=True)
class RetryBackoff:
    """Bounded exponential backoff.

    Attributes:
        max_attempts: Consecutive failures after which retrying stops
        initial_delay: Delay in seconds after the first failure
        max_delay: Upper bound for any single delay
        exponential_base: Growth factor between consecutive delays

    Example:
        >>> backoff = RetryBackoff(max_attempts=3, initial_delay=1.0)
        >>> [backoff.delay_for(n) for n in (1, 2, 3)]
        [1.0, 2.0, 4.0]
        >>> backoff.should_retry(3)
        False
    """

    max_attempts: int = DEFAULT_FLUSH_MAX_ATTEMPTS
    initial_delay: float = DEFAULT_FLUSH_INITIAL_BACKOFF
    max_delay: float = DEFAULT_FLUSH_MAX_BACKOFF
    exponential_base: float = DEFAULT_FLUSH_BACKOFF_BASE

    def delay_for(self, failures: int) -> float:
        """Delay to wait after ``failures`` consecutive failures (1-based)."""
        if failures < 1:
            return 0.0
        delay = self.initial_delay * self.exponential_base ** (failures - 1)
        return float(min(delay, self.max_delay))

    def should_retry(self, failures: int) -> bool:
        """Whether another attempt is allowed after ``failures`` failures."""
        return failures < self.max_attempts
