"""Delay computation between retry attempts."""

from __future__ import annotations

import random
from typing import Callable, Optional

from sonora.domain.config.retry import RetryConfig
from sonora.domain.models.errors import ClassifiedError

JITTER_RATIO = 0.1  # +/-10%


class BackoffPolicy:
    """Exponential backoff with additive jitter and Retry-After support.

    The policy is stateless apart from its configuration and may be shared
    between executors.
    """

    def __init__(self, config: RetryConfig, uniform: Optional[Callable[[float, float], float]] = None):
        """Initialize policy

        Args:
            config: Retry configuration
            uniform: Random source for jitter (defaults to random.uniform)
        """
        self.config = config
        self._uniform = uniform or random.uniform

    def hinted_delay_ms(self, error: ClassifiedError) -> Optional[float]:
        """Server-directed delay, if the error carries one and hints are honored."""
        if not (self.config.respect_retry_after and error.is_rate_limited):
            return None
        retry_after = error.retry_after_seconds()
        if retry_after is None:
            return None
        return float(min(retry_after * 1000, self.config.max_delay_ms))

    def delay_ms(self, error: ClassifiedError, attempt_number: int) -> float:
        """Delay before the attempt following ``attempt_number``.

        Args:
            error: Classified failure of the attempt
            attempt_number: 1-based number of the failed attempt

        Returns:
            Delay in milliseconds, between 0 and max_delay_ms
        """
        hinted = self.hinted_delay_ms(error)
        if hinted is not None:
            return hinted

        delay = self.config.base_delay_ms * (2 ** (attempt_number - 1))
        if self.config.use_jitter:
            jitter_range = delay * JITTER_RATIO
            delay += self._uniform(-jitter_range, jitter_range)

        return float(min(max(delay, 0), self.config.max_delay_ms))

    def delay_seconds(self, error: ClassifiedError, attempt_number: int) -> float:
        return self.delay_ms(error, attempt_number) / 1000.0
