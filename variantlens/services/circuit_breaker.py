"""
Circuit Breaker for upstream sources.

One breaker per upstream (RCSB, AlphaFold, PDBe, NCBI). After repeated
failures the source is short-circuited for a cooldown instead of being
hammered; a rate-limit response opens it immediately with a longer cooldown.
"""
import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreakerOpenError(Exception):
    """Raised when circuit breaker is OPEN."""

    def __init__(self, name: str, retry_in: float):
        super().__init__(f"Circuit breaker '{name}' is OPEN; retry in {retry_in:.0f}s")
        self.name = name
        self.retry_in = retry_in


class CircuitBreaker:
    """
    Args:
        name: Upstream label used in logs and errors
        failure_threshold: Consecutive failures before opening
        timeout: Cooldown seconds before a half-open trial call
        rate_limit_timeout: Cooldown seconds after an upstream 429
        is_rate_limited: Predicate telling whether an exception is a 429
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        timeout: float = 30.0,
        rate_limit_timeout: float = 60.0,
        is_rate_limited: Optional[Callable[[Exception], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.rate_limit_timeout = rate_limit_timeout
        self._is_rate_limited = is_rate_limited or (lambda exc: False)
        self._clock = clock
        self.failure_count = 0
        self.state = CircuitState.CLOSED
        self.opened_at: Optional[float] = None
        self.current_timeout = timeout

    def _before_call(self) -> None:
        if self.state != CircuitState.OPEN:
            return
        elapsed = self._clock() - (self.opened_at or 0.0)
        if elapsed >= self.current_timeout:
            logger.info(f"Circuit breaker {self.name} HALF_OPEN after {self.current_timeout}s cooldown")
            self.state = CircuitState.HALF_OPEN
            return
        raise CircuitBreakerOpenError(self.name, self.current_timeout - elapsed)

    def _on_success(self) -> None:
        if self.state == CircuitState.HALF_OPEN:
            logger.info(f"Circuit breaker {self.name} CLOSED after successful trial call")
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at = None

    def _open(self, timeout: float) -> None:
        self.state = CircuitState.OPEN
        self.opened_at = self._clock()
        self.current_timeout = timeout

    def _on_failure(self, exc: Exception) -> None:
        self.failure_count += 1
        if self._is_rate_limited(exc):
            logger.warning(f"Circuit breaker {self.name} OPEN for {self.rate_limit_timeout}s after rate limit")
            self._open(self.rate_limit_timeout)
        elif self.state == CircuitState.HALF_OPEN:
            logger.warning(f"Circuit breaker {self.name} back to OPEN after failed trial call")
            self._open(self.timeout)
        elif self.failure_count >= self.failure_threshold:
            logger.error(
                f"Circuit breaker {self.name} OPENED after {self.failure_count} failures "
                f"(threshold: {self.failure_threshold})"
            )
            self._open(self.timeout)

    async def call_async(self, func: Callable, *args, **kwargs) -> Any:
        """
        Execute an async function with circuit breaker protection.

        Raises:
            CircuitBreakerOpenError: If circuit is OPEN
            Exception: whatever func raises
        """
        self._before_call()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self._on_failure(e)
            raise
        self._on_success()
        return result

    def reset(self) -> None:
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at = None
        self.current_timeout = self.timeout

    def get_state(self) -> dict:
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "failure_threshold": self.failure_threshold,
            "timeout": self.current_timeout,
        }
