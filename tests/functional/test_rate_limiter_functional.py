"""Functional tests for the in-process rate limiter."""

from __future__ import annotations

import threading

from intake.logic.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_limit_then_blocks() -> None:
    clock = FakeClock()
    limiter = RateLimiter(max_requests=2, window_seconds=60, clock=clock)

    first, second, third = (limiter.hit("1.2.3.4") for _ in range(3))

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert third.allowed is False
    assert third.retry_after == 60


def test_addresses_are_counted_separately() -> None:
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())

    assert limiter.hit("a").allowed
    assert limiter.hit("b").allowed
    assert not limiter.hit("a").allowed


def test_window_expiry_resets_count() -> None:
    clock = FakeClock()
    limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
    limiter.hit("a")

    clock.now += 59
    assert limiter.hit("a").retry_after == 1
    clock.now += 1
    assert limiter.hit("a").allowed


def test_sweep_evicts_expired_windows() -> None:
    clock = FakeClock()
    limiter = RateLimiter(max_requests=5, window_seconds=10, clock=clock)
    limiter.hit("a")
    limiter.hit("b")
    clock.now += 5
    limiter.hit("c")
    clock.now += 6

    assert limiter.sweep() == 2
    assert len(limiter) == 1


def test_periodic_sweep_on_access() -> None:
    clock = FakeClock()
    limiter = RateLimiter(max_requests=5, window_seconds=10, clock=clock, sweep_every=3)
    limiter.hit("a")
    limiter.hit("b")
    clock.now += 20

    limiter.hit("c")

    assert len(limiter) == 1


def test_concurrent_hits_never_exceed_limit() -> None:
    limiter = RateLimiter(max_requests=50, window_seconds=60)
    allowed = []

    def worker() -> None:
        for _ in range(20):
            allowed.append(limiter.hit("shared").allowed)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(allowed) == 50
