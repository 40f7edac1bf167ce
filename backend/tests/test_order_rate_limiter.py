import pytest

from orderform.core.rate_limit import OrderRateLimiter


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


def test_sixth_call_in_window_is_rejected():
    clock = FakeClock()
    limiter = OrderRateLimiter(limit=5, window_seconds=3600, clock=clock)

    results = []
    for _ in range(6):
        results.append(limiter.allow("email:alex@example.org"))
        clock.now += 60

    assert results == [True, True, True, True, True, False]


def test_new_window_after_reset():
    clock = FakeClock()
    limiter = OrderRateLimiter(limit=5, window_seconds=3600, clock=clock)
    for _ in range(5):
        assert limiter.allow("k")
    assert not limiter.allow("k")

    clock.now += 3601

    assert limiter.allow("k")
    for _ in range(4):
        assert limiter.allow("k")
    assert not limiter.allow("k")


def test_keys_are_independent():
    limiter = OrderRateLimiter(limit=1, window_seconds=60, clock=FakeClock())

    assert limiter.allow("email:a@example.org")
    assert not limiter.allow("email:a@example.org")
    assert limiter.allow("email:b@example.org")


def test_retry_after_counts_down():
    clock = FakeClock()
    limiter = OrderRateLimiter(limit=1, window_seconds=3600, clock=clock)
    assert limiter.retry_after("k") == 0

    limiter.allow("k")
    clock.now += 600.5

    assert limiter.retry_after("k") == 3000


def test_reset_clears_counts():
    limiter = OrderRateLimiter(limit=1, window_seconds=60, clock=FakeClock())
    limiter.allow("k")
    limiter.reset()

    assert limiter.allow("k")


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        OrderRateLimiter(limit=0)
