"""
Cache Service - in-process TTL cache for upstream responses.

Keys are namespaced per source; values are plain JSON-like data so cached
payloads are interchangeable with fresh ones.
"""
import json
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """
    Expired entries are swept every ``sweep_every`` writes and whenever the
    cache is full; at ``max_entries`` the oldest write is evicted.
    """

    def __init__(
        self,
        ttl_seconds: float = 3600,
        max_entries: int = 10000,
        sweep_every: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.sweep_every = max(1, sweep_every)
        self._clock = clock
        self._store: Dict[str, Tuple[float, Any]] = {}
        self._writes = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str, default: Any = None) -> Any:
        item = self._store.get(key)
        if item is None:
            self.misses += 1
            return default
        expires_at, value = item
        if self._clock() >= expires_at:
            del self._store[key]
            self.misses += 1
            return default
        self.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        self._writes += 1
        if self._writes % self.sweep_every == 0 or len(self._store) >= self.max_entries:
            self.purge_expired()
        # re-inserting moves the key to the end of the eviction order
        self._store.pop(key, None)
        while len(self._store) >= self.max_entries:
            del self._store[next(iter(self._store))]
            self.evictions += 1
        self._store[key] = (self._clock() + (ttl if ttl is not None else self.ttl_seconds), value)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._store.items() if now >= expires_at]
        for key in expired:
            del self._store[key]
        return len(expired)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def get_stats(self) -> Dict[str, int]:
        return {"entries": len(self._store), "hits": self.hits, "misses": self.misses, "evictions": self.evictions}


def request_cache_key(source: str, method: str, url: str, params: Optional[dict] = None, body: Any = None) -> str:
    """Stable key for an upstream request."""
    parts = [source, method.upper(), url]
    if params:
        parts.append(json.dumps(params, sort_keys=True))
    if body is not None:
        parts.append(json.dumps(body, sort_keys=True))
    return "|".join(parts)
