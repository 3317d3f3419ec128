"""In-process fixed-window request limiter."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
import time
from typing import Callable


@dataclass(slots=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: int


@dataclass(slots=True)
class _Window:
    started_at: float
    count: int


class FixedWindowRateLimiter:
    """Counts hits per key inside a fixed time window.

    A ``max_requests`` of 0 turns the limiter into a pass-through. Once more
    than ``sweep_threshold`` keys are tracked, expired windows are dropped on
    the next hit.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
        sweep_threshold: int = 10_000,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._sweep_threshold = sweep_threshold
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()

    @property
    def enabled(self) -> bool:
        return self._max_requests > 0

    @property
    def tracked_keys(self) -> int:
        return len(self._windows)

    def _expired(self, window: _Window, now: float) -> bool:
        return now - window.started_at >= self._window_seconds

    def _sweep(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if self._expired(window, now)]
        for key in expired:
            del self._windows[key]

    def hit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        wall_now = int(time.time())
        if not self.enabled:
            return RateLimitDecision(allowed=True, limit=0, remaining=0, reset_at=wall_now)

        with self._lock:
            if len(self._windows) >= self._sweep_threshold:
                self._sweep(now)
            window = self._windows.get(key)
            if window is None or self._expired(window, now):
                window = _Window(started_at=now, count=0)
                self._windows[key] = window
            window.count += 1
            count = window.count
            elapsed = now - window.started_at

        reset_at = wall_now + max(0, int(self._window_seconds - elapsed))
        return RateLimitDecision(
            allowed=count <= self._max_requests,
            limit=self._max_requests,
            remaining=max(0, self._max_requests - count),
            reset_at=reset_at,
        )
