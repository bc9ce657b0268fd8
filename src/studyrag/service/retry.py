"""Exponential-backoff retry policy for hosted service calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from studyrag.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
)
from studyrag.exceptions import ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Retries retryable ServiceErrors with exponential backoff.

    Only errors whose ``retryable`` flag is set (rate limits, 5xx, timeouts,
    connection failures) are retried. Quota exhaustion, other 4xx responses
    and every non-service exception are raised immediately.

    Attributes:
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay, in seconds
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_RETRY_BASE_DELAY
    max_delay: float = DEFAULT_RETRY_MAX_DELAY

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (0-based)."""
        return min(self.base_delay * (2**attempt), self.max_delay)

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "call") -> T:
        """Await ``operation`` until it succeeds or the policy gives up.

        Args:
            operation: Zero-argument factory returning a fresh awaitable
            description: Label used in log messages

        Returns:
            The operation's result

        Raises:
            ServiceError: The last error once retries are exhausted, or the
                first non-retryable one
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except ServiceError as e:
                if not e.retryable:
                    logger.warning(f"⚠️ {description} failed with non-retryable error: {e}")
                    raise
                if attempt >= self.max_retries:
                    logger.error(f"❌ {description} failed after {attempt + 1} attempts: {e}")
                    raise
                delay = self.delay_for(attempt)
                attempt += 1
                logger.warning(
                    f"🔁 {description} failed ({e}); retry {attempt}/{self.max_retries} "
                    f"in {delay:.1f}s"
                )
                await asyncio.sleep(delay)
