"""Unit tests for the sliding-window rate limiter"""

import pytest
from finhealth_gateway.domain.exceptions import RateLimitExceeded
from finhealth_gateway.infrastructure.resilience.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_third_call_in_window_is_rejected():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=1.0, clock=clock)

    limiter.check_and_record()
    clock.advance(0.0625)
    limiter.check_and_record()
    clock.advance(0.0625)

    with pytest.raises(RateLimitExceeded) as exc_info:
        limiter.check_and_record()

    # first slot frees 1.0s after the first call, 0.125s have passed
    assert exc_info.value.retry_after_ms == 875
    assert exc_info.value.retryable is False


def test_call_succeeds_after_window_passes():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=1.0, clock=clock)
    limiter.check_and_record()
    limiter.check_and_record()
    with pytest.raises(RateLimitExceeded):
        limiter.check_and_record()

    clock.advance(1.01)

    limiter.check_and_record()
    assert limiter.in_window == 1


def test_rejected_call_is_not_recorded():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=1, window_seconds=10.0, clock=clock)
    limiter.check_and_record()

    for _ in range(5):
        with pytest.raises(RateLimitExceeded):
            limiter.check_and_record()

    assert limiter.in_window == 1


def test_window_slides_one_slot_at_a_time():
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=1.0, clock=clock)
    limiter.check_and_record()
    clock.advance(0.6)
    limiter.check_and_record()

    clock.advance(0.5)  # first call now 1.1s old, second 0.5s old
    limiter.check_and_record()
    assert limiter.in_window == 2

    with pytest.raises(RateLimitExceeded):
        limiter.check_and_record()
