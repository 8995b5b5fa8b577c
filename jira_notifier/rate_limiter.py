"""
Client-side rate limiting for outbound webhook calls.

A limiter is consulted once per delivery, before any network I/O.  A denied
call fails fast with ``ErrorKind.RATE_LIMITED``; nothing waits or retries.
"""

import math
import threading
import time
from typing import Callable, Protocol, Tuple, runtime_checkable


@runtime_checkable
class RateLimiter(Protocol):
    """Anything that can grant or deny one outbound call."""

    def consume(self, tokens: int = 1) -> Tuple[bool, float, float]:
        """Return ``(allowed, remaining, retry_after_seconds)``."""


class TokenBucket:
    """Outbound delivery allowance shared by every call through one client.

    The bucket holds up to ``burst`` deliveries and regains ``rate`` of them
    per second.  ``clock`` must be monotonic; tests pass a fake one.
    """

    def __init__(self, rate: float, burst: int, clock: Callable[[], float] = time.monotonic) -> None:
        if rate < 0:
            raise ValueError("rate must be >= 0")
        if burst < 1:
            raise ValueError("burst must be >= 1")
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._level = float(burst)
        self._stamp = clock()
        self._lock = threading.Lock()

    @classmethod
    def per_minute(cls, requests_per_minute: int, burst: int) -> "TokenBucket":
        return cls(rate=requests_per_minute / 60.0, burst=burst)

    def _level_now(self) -> float:
        now = self._clock()
        self._level = min(float(self.burst), self._level + (now - self._stamp) * self.rate)
        self._stamp = now
        return self._level

    def consume(self, tokens: int = 1) -> Tuple[bool, float, float]:
        """Take ``tokens`` deliveries from the bucket if they are available.

        ``retry_after_seconds`` is 0 when allowed and ``math.inf`` when the
        bucket never refills.
        """
        with self._lock:
            level = self._level_now()
            if level >= tokens:
                self._level = level - tokens
                return True, self._level, 0.0
            if self.rate == 0:
                return False, level, math.inf
            return False, level, (tokens - level) / self.rate

    @property
    def tokens(self) -> float:
        with self._lock:
            return self._level_now()

    def reset(self) -> None:
        with self._lock:
            self._level = float(self.burst)
            self._stamp = self._clock()
