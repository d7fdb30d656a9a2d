"""
Rate limiting: per-client sliding windows for inbound requests and a shared
async throttle for outbound upstream calls.
"""
import asyncio
import logging
import math
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, List

logger = logging.getLogger(__name__)


class RateLimiter:
    """In-memory sliding-window limiter keyed by client id."""

    def __init__(self, window_seconds: int = 60, max_requests: int = 10, clock: Callable[[], float] = time.time):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._rate_limits: Dict[str, List[float]] = {}

    def _active(self, client_id: str, now: float) -> List[float]:
        active = [t for t in self._rate_limits.get(client_id, []) if now - t < self.window_seconds]
        if active:
            self._rate_limits[client_id] = active
        else:
            self._rate_limits.pop(client_id, None)
        return active

    def check_rate_limit(self, client_id: str) -> bool:
        """Record a request and return False if the client is over its limit."""
        now = self._clock()
        active = self._active(client_id, now)
        if len(active) >= self.max_requests:
            logger.warning(f"Rate limit exceeded for client: {client_id}")
            return False
        active.append(now)
        self._rate_limits[client_id] = active
        return True

    def get_retry_after(self, client_id: str) -> int:
        """Seconds until the oldest request in the window expires."""
        now = self._clock()
        active = self._active(client_id, now)
        if len(active) < self.max_requests:
            return 0
        return max(1, math.ceil(self.window_seconds - (now - active[0])))

    def get_remaining_requests(self, client_id: str) -> int:
        return max(0, self.max_requests - len(self._active(client_id, self._clock())))

    def get_stats(self) -> Dict[str, Any]:
        now = self._clock()
        active_clients = 0
        total_requests = 0
        for client_id in list(self._rate_limits):
            active = self._active(client_id, now)
            if active:
                active_clients += 1
                total_requests += len(active)
        return {
            "active_clients": active_clients,
            "total_requests": total_requests,
            "window_seconds": self.window_seconds,
            "max_requests_per_window": self.max_requests,
        }


class OutboundThrottle:
    """
    Shared ceiling on upstream calls per window.

    Callers over the ceiling wait in FIFO order (asyncio.Lock is fair)
    until the oldest call leaves the window, so demand queues instead of
    bursting.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._stamps: Deque[float] = deque()
        self._lock = asyncio.Lock()
        self.granted = 0
        self.waits = 0

    async def acquire(self) -> None:
        async with self._lock:
            while True:
                now = self._clock()
                while self._stamps and now - self._stamps[0] >= self.window_seconds:
                    self._stamps.popleft()
                if len(self._stamps) < self.max_requests:
                    self._stamps.append(now)
                    self.granted += 1
                    return
                wait = self.window_seconds - (now - self._stamps[0])
                self.waits += 1
                logger.debug(f"Outbound throttle full ({self.max_requests}/{self.window_seconds}s); waiting {wait:.2f}s")
                await self._sleep(wait)

    def in_window(self) -> int:
        now = self._clock()
        return sum(1 for t in self._stamps if now - t < self.window_seconds)
