"""In-process fixed-window rate limiter keyed by client address.

State lives in this process only: it resets on restart and is not shared
between instances, so it offers no guarantee under horizontal scaling.
Expired windows are evicted on access and by `sweep`.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class _Window:
    count: int
    started_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: float


class RateLimiter:
    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 256,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._sweep_every = max(1, sweep_every)
        self._calls = 0

    def hit(self, address: str) -> RateLimitDecision:
        """Count one request from `address` and decide whether it may proceed."""
        key = address or "unknown"
        now = self._clock()
        with self._lock:
            self._calls += 1
            if self._calls % self._sweep_every == 0:
                self._sweep_locked(now)
            window = self._windows.get(key)
            if window is None or now - window.started_at >= self.window_seconds:
                window = _Window(count=0, started_at=now)
                self._windows[key] = window
            if window.count >= self.max_requests:
                retry_after = max(0.0, self.window_seconds - (now - window.started_at))
                return RateLimitDecision(allowed=False, remaining=0, retry_after=retry_after)
            window.count += 1
            return RateLimitDecision(allowed=True, remaining=self.max_requests - window.count, retry_after=0.0)

    def _sweep_locked(self, now: float) -> int:
        expired = [k for k, w in self._windows.items() if now - w.started_at >= self.window_seconds]
        for k in expired:
            del self._windows[k]
        return len(expired)

    def sweep(self) -> int:
        """Evict expired windows; returns how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)


__all__ = ["RateLimiter", "RateLimitDecision"]
