import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    retry_after: int = 0


class SlidingWindowRateLimiter:
    """In-memory sliding window limiter keyed on an identifier (user id, IP).

    State is per process; instances behind a load balancer limit independently.
    """

    def __init__(self, limit: int, window_seconds: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: Dict[str, Deque[float]] = {}
        self._next_sweep = clock() + window_seconds

    def check(self, key: str) -> RateLimitResult:
        now = self._clock()
        window_start = now - self.window_seconds
        if now >= self._next_sweep:
            self._sweep(window_start)
            self._next_sweep = now + self.window_seconds

        bucket = self._buckets.setdefault(key, deque())
        while bucket and bucket[0] <= window_start:
            bucket.popleft()
        if len(bucket) >= self.limit:
            retry_after = int(self.window_seconds - (now - bucket[0]))
            return RateLimitResult(allowed=False, remaining=0, retry_after=max(retry_after, 1))
        bucket.append(now)
        return RateLimitResult(allowed=True, remaining=self.limit - len(bucket))

    def _sweep(self, window_start: float) -> None:
        # A bucket whose newest hit is outside the window holds nothing live.
        stale = [key for key, bucket in self._buckets.items() if not bucket or bucket[-1] <= window_start]
        for key in stale:
            del self._buckets[key]

    def reset(self) -> None:
        self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)


# 5 invitations per 10 minutes per staff user
invite_limiter = SlidingWindowRateLimiter(limit=5, window_seconds=10 * 60)
