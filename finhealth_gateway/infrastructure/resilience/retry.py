"""Exponential backoff retry for model calls"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from finhealth_gateway.domain.exceptions import ModelCallError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Bounded retry with exponential backoff between attempts"""

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.max_retries = max_retries
        self.initial_delay_seconds = initial_delay_seconds
        self._sleep = sleep

    async def run(self, fn: Callable[[], Awaitable[T]], label: str = "model call") -> T:
        """
        Call fn until it succeeds or attempts run out.

        Retry strategy:
        - max_retries is the total number of attempts
        - Exponential backoff: initial, 2x, 4x ... (initial * 2^(attempt-1))
        - Retries only errors flagged retryable (5xx/429, timeouts, network)
        - Rate limit, content block and malformed responses propagate at once

        Raises:
            ModelCallError: the non-retryable error, or the last error after exhaustion
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await fn()

            except ModelCallError as e:
                if not e.retryable:
                    raise

                if attempt >= self.max_retries:
                    logger.error(
                        f"{label} failed after {attempt} attempts: {e}",
                        extra={"attempts": attempt, "error_type": type(e).__name__},
                    )
                    raise

                backoff = self.initial_delay_seconds * (2 ** (attempt - 1))
                logger.warning(
                    f"{label} attempt {attempt}/{self.max_retries} failed, retrying in {backoff:.1f}s: {e}",
                    extra={"attempt": attempt, "backoff_seconds": backoff, "error_type": type(e).__name__},
                )
                await self._sleep(backoff)
