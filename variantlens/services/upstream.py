"""
Upstream HTTP client shared by every live source.

Features:
- httpx.AsyncClient with a per-request timeout
- One bounded retry for timeouts, network errors and 5xx
- Per-source circuit breaker (429 opens it immediately)
- Optional shared outbound throttle, applied only to real network calls
- In-process TTL cache for successful responses
"""
import logging
from typing import Any, Dict, Iterable, Optional

import httpx

from ..config import UPSTREAM_MAX_RETRIES, UPSTREAM_TIMEOUT_SECONDS
from ..errors import UpstreamUnavailableError
from .cache import TTLCache, request_cache_key
from .circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from .rate_limiter import OutboundThrottle

logger = logging.getLogger(__name__)

USER_AGENT = "variantlens/2 (research use)"

_RETRYABLE_REASONS = ("timeout", "network_error", "upstream_5xx")
_MISSING = object()


def _is_rate_limited(exc: Exception) -> bool:
    return isinstance(exc, UpstreamUnavailableError) and exc.reason == "rate_limited"


class UpstreamClient:
    def __init__(
        self,
        timeout: float = UPSTREAM_TIMEOUT_SECONDS,
        max_retries: int = UPSTREAM_MAX_RETRIES,
        cache: Optional[TTLCache] = None,
        throttle: Optional[OutboundThrottle] = None,
        breakers: Optional[Dict[str, CircuitBreaker]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.max_retries = max_retries
        self.cache = cache
        self.throttle = throttle
        self.breakers: Dict[str, CircuitBreaker] = breakers if breakers is not None else {}
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            follow_redirects=True,
        )
        self.requests_sent = 0

    def breaker(self, source: str) -> CircuitBreaker:
        if source not in self.breakers:
            self.breakers[source] = CircuitBreaker(source, is_rate_limited=_is_rate_limited)
        return self.breakers[source]

    async def request_json(
        self,
        source: str,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        empty_statuses: Iterable[int] = (404,),
        use_cache: bool = True,
    ) -> Optional[Any]:
        """
        Send a request and decode its JSON body.

        Returns None when the upstream answers with one of ``empty_statuses``
        (no record, as opposed to failure).

        Raises:
            UpstreamUnavailableError: timeout, network failure, 429, 5xx,
                malformed body, or open circuit
        """
        key = request_cache_key(source, method, url, params, json)
        if use_cache and self.cache is not None:
            cached = self.cache.get(key, _MISSING)
            if cached is not _MISSING:
                return cached

        try:
            data = await self.breaker(source).call_async(
                self._send_with_retry, source, method, url, params, json, tuple(empty_statuses)
            )
        except CircuitBreakerOpenError as e:
            raise UpstreamUnavailableError(source, "circuit_open", str(e)) from e

        if use_cache and self.cache is not None:
            self.cache.set(key, data)
        return data

    async def _send_with_retry(self, source, method, url, params, body, empty_statuses):
        last_error: Optional[UpstreamUnavailableError] = None
        for attempt in range(self.max_retries + 1):
            try:
                return await self._send_once(source, method, url, params, body, empty_statuses)
            except UpstreamUnavailableError as e:
                if e.reason not in _RETRYABLE_REASONS:
                    raise
                last_error = e
                if attempt < self.max_retries:
                    logger.warning(f"{source} request failed ({e.reason}); retrying {method} {url}")
        raise last_error

    async def _send_once(self, source, method, url, params, body, empty_statuses):
        if self.throttle is not None:
            await self.throttle.acquire()
        self.requests_sent += 1
        try:
            response = await self._client.request(method, url, params=params, json=body)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError(source, "timeout", str(e) or type(e).__name__) from e
        except httpx.TransportError as e:
            raise UpstreamUnavailableError(source, "network_error", str(e) or type(e).__name__) from e

        status = response.status_code
        if status in empty_statuses:
            return None
        if status == 429:
            raise UpstreamUnavailableError(source, "rate_limited", "HTTP 429")
        if status >= 500:
            raise UpstreamUnavailableError(source, "upstream_5xx", f"HTTP {status}")
        if status >= 400:
            raise UpstreamUnavailableError(source, "bad_response", f"HTTP {status}")
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(source, "bad_response", "invalid JSON body") from e

    async def is_reachable(self, url: str, timeout: float = 5.0) -> bool:
        """Reachability check used by /ready. Never raises."""
        try:
            response = await self._client.get(url, timeout=timeout)
        except httpx.HTTPError as e:
            logger.warning(f"Readiness check failed for {url}: {e}")
            return False
        return response.status_code < 500

    def get_stats(self) -> Dict[str, Any]:
        return {
            "requests_sent": self.requests_sent,
            "breakers": {name: b.get_state() for name, b in self.breakers.items()},
            "cache": self.cache.get_stats() if self.cache is not None else None,
        }

    async def aclose(self) -> None:
        await self._client.aclose()
