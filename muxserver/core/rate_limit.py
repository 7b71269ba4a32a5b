import time
from typing import Optional


class InMemoryRateLimiter:
    """Fixed-window counter per identity, kept in process memory.

    Buckets whose window has passed are dropped on the next ``allow`` call,
    so the map only holds identities seen within the last window.
    """

    def __init__(self, limit: int, window_seconds: float = 10):
        self.limit = limit
        self.window = window_seconds
        self.buckets = {}  # identity -> [window_start, count]
        self._last_sweep = time.monotonic()

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window:
            return
        self._last_sweep = now
        expired = [k for k, (start, _) in self.buckets.items() if now - start >= self.window]
        for identity in expired:
            del self.buckets[identity]

    async def allow(self, identity: str) -> tuple[bool, Optional[int]]:
        now = time.monotonic()
        self._sweep(now)
        bucket = self.buckets.get(identity)

        if not bucket or now - bucket[0] >= self.window:
            self.buckets[identity] = [now, 1]
            return True, None

        if bucket[1] < self.limit:
            bucket[1] += 1
            return True, None

        return False, self.retry_after(identity)

    def retry_after(self, identity: str) -> int:
        bucket = self.buckets.get(identity)
        if not bucket:
            return 0
        return max(0, int(self.window - (time.monotonic() - bucket[0])))

    async def remaining(self, identity: str) -> int:
        bucket = self.buckets.get(identity)
        if not bucket or time.monotonic() - bucket[0] >= self.window:
            return self.limit
        return max(0, self.limit - bucket[1])
