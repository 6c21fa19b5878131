"""Sliding-window admission gate for outbound model calls"""

import math
import time
from collections import deque
from typing import Callable, Deque

from finhealth_gateway.domain.exceptions import RateLimitExceeded


class RateLimiter:
    """
    Rejects calls once max_requests were recorded within the trailing window.

    Calls are rejected, never queued. Old timestamps are discarded on every
    check; there is no background timer. check_and_record contains no await,
    so concurrent coroutines on one event loop cannot interleave inside it.
    """

    def __init__(
        self,
        max_requests: int = 45,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._timestamps: Deque[float] = deque()

    def check_and_record(self) -> None:
        """
        Raises:
            RateLimitExceeded: window is full; retry_after_ms tells when a slot frees up
        """
        now = self._clock()
        while self._timestamps and now - self._timestamps[0] >= self.window_seconds:
            self._timestamps.popleft()

        if len(self._timestamps) >= self.max_requests:
            oldest = self._timestamps[0] if self._timestamps else now
            wait_seconds = self.window_seconds - (now - oldest)
            raise RateLimitExceeded(retry_after_ms=max(0, math.ceil(wait_seconds * 1000)))

        self._timestamps.append(now)

    @property
    def in_window(self) -> int:
        return len(self._timestamps)
