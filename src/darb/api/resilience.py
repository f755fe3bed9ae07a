#!/usr/bin/env python3
"""Resilience patterns for the Asset Register backend client.

    - Circuit breaker guarding the shared backend session
    - Bounded concurrent fan-out for per-record follow-up requests

Example:
    circuit = CircuitBreaker(failure_threshold=5, timeout=60)
    result = await circuit.call(fetch_stations)

    assignments = await process_concurrent(employees, fetch_assignments, max_concurrent=5)
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .exceptions import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================
# Circuit Breaker
# ============================================

class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation, requests pass through
    OPEN = "open"          # Failing, requests rejected immediately
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker:
    """Circuit breaker to stop hammering a backend that is down.

    State Transitions:
        CLOSED -> OPEN: When failure_count >= failure_threshold
        OPEN -> HALF_OPEN: When timeout expires
        HALF_OPEN -> CLOSED: When success_threshold test requests succeed
        HALF_OPEN -> OPEN: When a test request fails

    Attributes:
        failure_threshold: Number of failures before opening circuit
        timeout: Seconds to wait before attempting recovery (OPEN -> HALF_OPEN)
        success_threshold: Successes needed in HALF_OPEN to close circuit
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        timeout: float = 60.0,
        success_threshold: int = 2,
        name: str = "default",
    ):
        self.failure_threshold = failure_threshold
        self.timeout = timeout
        self.success_threshold = success_threshold
        self.name = name

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time: Optional[datetime] = None
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        return self._state

    @property
    def is_open(self) -> bool:
        """Check if circuit is open (rejecting requests)."""
        return self._state == CircuitState.OPEN

    @property
    def failure_count(self) -> int:
        """Get current failure count."""
        return self._failure_count

    def should_attempt(self) -> bool:
        """Check if a request should be attempted based on current state."""
        if self._state == CircuitState.CLOSED:
            return True

        if self._state == CircuitState.OPEN:
            if self._last_failure_time:
                elapsed = (datetime.now(timezone.utc) - self._last_failure_time).total_seconds()
                if elapsed >= self.timeout:
                    return True
            return False

        return True

    def open_error(self) -> CircuitOpenError:
        """Build the error raised while the circuit rejects requests."""
        reset_at = None
        if self._last_failure_time:
            reset_at = self._last_failure_time + timedelta(seconds=self.timeout)
        return CircuitOpenError(
            f"Circuit breaker '{self.name}' is open",
            reset_at=reset_at,
            failure_count=self._failure_count,
        )

    async def call(
        self,
        func: Callable[..., Awaitable[T]],
        *args,
        **kwargs,
    ) -> T:
        """Execute function through the circuit breaker.

        Raises:
            CircuitOpenError: If circuit is open and timeout hasn't passed
            Any exception from func (after updating circuit state)
        """
        await self.before_call()

        try:
            result = await func(*args, **kwargs)
            await self.record_success()
            return result

        except Exception as e:
            await self.record_failure(e)
            raise

    async def before_call(self):
        """Reject while OPEN; once the timeout passes, let a probe through as HALF_OPEN.

        Raises:
            CircuitOpenError: If circuit is open and timeout hasn't passed
        """
        async with self._lock:
            if not self.should_attempt():
                raise self.open_error()

            if self._state == CircuitState.OPEN:
                logger.info(f"Circuit '{self.name}' transitioning to HALF_OPEN")
                self._state = CircuitState.HALF_OPEN
                self._success_count = 0

    async def record_success(self):
        """Handle successful request."""
        async with self._lock:
            self._failure_count = 0

            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    logger.info(
                        f"Circuit '{self.name}' closing after "
                        f"{self._success_count} successes"
                    )
                    self._state = CircuitState.CLOSED
                    self._success_count = 0

    async def record_failure(self, exception: Exception):
        """Handle failed request."""
        async with self._lock:
            self._failure_count += 1
            self._last_failure_time = datetime.now(timezone.utc)

            if self._state == CircuitState.HALF_OPEN:
                logger.warning(
                    f"Circuit '{self.name}' reopening after test failure: {exception}"
                )
                self._state = CircuitState.OPEN

            elif self._state == CircuitState.CLOSED:
                if self._failure_count >= self.failure_threshold:
                    logger.warning(
                        f"Circuit '{self.name}' opening after "
                        f"{self._failure_count} failures"
                    )
                    self._state = CircuitState.OPEN

    def reset(self):
        """Manually reset the circuit breaker to closed state."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._last_failure_time = None
        logger.info(f"Circuit '{self.name}' manually reset")

    def get_status(self) -> dict[str, Any]:
        """Get circuit breaker status for monitoring."""
        return {
            "name": self.name,
            "state": self._state.value,
            "failure_count": self._failure_count,
            "success_count": self._success_count,
            "failure_threshold": self.failure_threshold,
            "timeout_seconds": self.timeout,
            "last_failure_at": (
                self._last_failure_time.isoformat()
                if self._last_failure_time
                else None
            ),
        }


# ============================================
# Concurrent Processing
# ============================================

async def process_concurrent(
    items: list[T],
    processor: Callable[[T], Awaitable[Any]],
    max_concurrent: int = 10,
    return_exceptions: bool = False,
) -> list[Any]:
    """Process items concurrently with bounded concurrency.

    Args:
        items: List of items to process
        processor: Async function to apply to each item
        max_concurrent: Maximum concurrent operations (default: 10)
        return_exceptions: If True, return exceptions instead of raising

    Returns:
        List of results in the same order as input items
    """
    semaphore = asyncio.Semaphore(max_concurrent)

    async def bounded_processor(item: T) -> Any:
        async with semaphore:
            return await processor(item)

    tasks = [bounded_processor(item) for item in items]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)
