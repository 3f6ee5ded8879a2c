"""
Circuit Breaker for Workflow Triggers

Stops calling a failing downstream workflow endpoint for a while after
repeated failures, so a dead CRM or webhook cannot slow down every
processing tick.
"""

import asyncio
from enum import Enum
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Callable, Dict, Optional, TypeVar, Awaitable
from intent_engine.config import get_settings
from intent_engine.utils.observability import logger

T = TypeVar("T")


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Calls flow through
    OPEN = "open"          # Calls rejected immediately
    HALF_OPEN = "half_open"  # Probing for recovery


@dataclass
class CircuitStats:
    consecutive_failures: int = 0
    total_failures: int = 0
    total_successes: int = 0
    total_rejections: int = 0
    last_failure_time: Optional[datetime] = None
    opened_at: Optional[datetime] = None


class CircuitOpenError(Exception):
    """Raised when the circuit rejects a call without attempting it."""

    def __init__(self, name: str):
        super().__init__(f"Circuit '{name}' is open")
        self.name = name


class CircuitBreaker:
    """
    Async circuit breaker.

    States:
    - CLOSED: Normal operation. Consecutive failures are counted.
    - OPEN: Calls raise CircuitOpenError until the recovery timeout passes.
    - HALF_OPEN: A limited number of probe calls decide whether to close.

    Usage:
        breaker = CircuitBreaker(name="workflow:high_intent")
        try:
            await breaker.call(lambda: trigger.trigger_high_intent(score))
        except CircuitOpenError:
            logger.warning("skipped")
    """

    def __init__(
        self,
        name: str,
        failure_threshold: Optional[int] = None,
        recovery_timeout: Optional[float] = None,
        half_open_max_calls: Optional[int] = None,
    ):
        settings = get_settings()
        self.name = name
        self._failure_threshold = failure_threshold or settings.circuit_breaker_failure_threshold
        self._recovery_timeout = (
            recovery_timeout if recovery_timeout is not None else settings.circuit_breaker_recovery_timeout
        )
        self._half_open_max_calls = half_open_max_calls or settings.circuit_breaker_half_open_max_calls

        self._state = CircuitState.CLOSED
        self._stats = CircuitStats()
        self._half_open_calls = 0
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def stats(self) -> CircuitStats:
        return self._stats

    async def call(self, func: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``func`` through the breaker.

        Raises:
            CircuitOpenError: When the circuit is open (func is not called)
            Exception: Whatever ``func`` raised, after recording the failure
        """
        async with self._lock:
            self._check_state_transition()

            if self._state == CircuitState.OPEN:
                self._stats.total_rejections += 1
                raise CircuitOpenError(self.name)

            if self._state == CircuitState.HALF_OPEN:
                if self._half_open_calls >= self._half_open_max_calls:
                    self._stats.total_rejections += 1
                    raise CircuitOpenError(self.name)
                self._half_open_calls += 1

        # Execute outside lock to allow concurrency
        try:
            result = await func()
        except Exception as e:
            await self._record_failure(e)
            raise
        await self._record_success()
        return result

    def _check_state_transition(self) -> None:
        if self._state != CircuitState.OPEN or not self._stats.opened_at:
            return

        elapsed = (datetime.now(timezone.utc) - self._stats.opened_at).total_seconds()
        if elapsed >= self._recovery_timeout:
            self._transition_to(CircuitState.HALF_OPEN)
            self._half_open_calls = 0

    async def _record_success(self) -> None:
        async with self._lock:
            self._stats.consecutive_failures = 0
            self._stats.total_successes += 1

            if self._state == CircuitState.HALF_OPEN:
                logger.info(f"Circuit '{self.name}' recovered, closing")
                self._transition_to(CircuitState.CLOSED)

    async def _record_failure(self, error: BaseException) -> None:
        async with self._lock:
            self._stats.consecutive_failures += 1
            self._stats.total_failures += 1
            self._stats.last_failure_time = datetime.now(timezone.utc)

            logger.warning(
                f"Circuit '{self.name}' failure {self._stats.consecutive_failures}/{self._failure_threshold}: {error!r}"
            )

            if self._state == CircuitState.HALF_OPEN:
                self._transition_to(CircuitState.OPEN)
            elif self._stats.consecutive_failures >= self._failure_threshold:
                logger.error(f"Circuit '{self.name}' threshold reached, opening")
                self._transition_to(CircuitState.OPEN)

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state

        if new_state == CircuitState.OPEN:
            self._stats.opened_at = datetime.now(timezone.utc)

        logger.info(f"Circuit '{self.name}' state: {old_state.value} -> {new_state.value}")

    async def reset(self) -> None:
        """Manually reset circuit to closed state."""
        async with self._lock:
            self._transition_to(CircuitState.CLOSED)
            self._stats.consecutive_failures = 0
            self._half_open_calls = 0

    def get_status(self) -> dict:
        """Circuit status for the readiness endpoint."""
        return {
            "name": self.name,
            "state": self._state.value,
            "consecutive_failures": self._stats.consecutive_failures,
            "total_failures": self._stats.total_failures,
            "total_successes": self._stats.total_successes,
            "total_rejections": self._stats.total_rejections,
            "opened_at": self._stats.opened_at.isoformat() if self._stats.opened_at else None,
        }


class CircuitBreakerGroup:
    """One lazily created breaker per key (e.g. per workflow tier)."""

    def __init__(self, prefix: str, **breaker_kwargs):
        self.prefix = prefix
        self._breaker_kwargs = breaker_kwargs
        self._breakers: Dict[str, CircuitBreaker] = {}

    def get(self, key: str) -> CircuitBreaker:
        if key not in self._breakers:
            self._breakers[key] = CircuitBreaker(name=f"{self.prefix}:{key}", **self._breaker_kwargs)
        return self._breakers[key]

    def get_status(self) -> list[dict]:
        return [breaker.get_status() for breaker in self._breakers.values()]
