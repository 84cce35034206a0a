"""Failure gate in front of a routing provider.

Only exceptions accepted by ``is_fault`` move the breaker towards OPEN. Any
other exception (an unroutable destination, a missing key) is a reply about
one request: it is re-raised and resets the fault count like a success.
"""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

FaultPredicate = Callable[[Exception], bool]


class CircuitStatus(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    def __init__(self, provider: str, retry_after_seconds: float) -> None:
        super().__init__(f"{provider} circuit is open, retry after {retry_after_seconds:.1f}s")
        self.provider = provider
        self.retry_after_seconds = retry_after_seconds


def _every_exception(_: Exception) -> bool:
    return True


class CircuitBreaker:
    def __init__(
        self,
        provider: str = "directions",
        failure_threshold: int = 3,
        recovery_timeout_seconds: float = 30,
        clock: Callable[[], float] = time.monotonic,
        is_fault: FaultPredicate = _every_exception,
    ) -> None:
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be >= 1")
        self._provider = provider
        self._failure_threshold = failure_threshold
        self._recovery_timeout_seconds = recovery_timeout_seconds
        self._clock = clock
        self._is_fault = is_fault
        self._consecutive_faults = 0
        self._opened_at: float | None = None

    @property
    def status(self) -> CircuitStatus:
        if self._opened_at is None:
            return CircuitStatus.CLOSED
        if self._clock() - self._opened_at >= self._recovery_timeout_seconds:
            return CircuitStatus.HALF_OPEN
        return CircuitStatus.OPEN

    async def call(self, operation: Callable[[], Awaitable[T]]) -> T:
        status = self.status
        if status is CircuitStatus.OPEN:
            retry_after = self._recovery_timeout_seconds - (self._clock() - (self._opened_at or 0.0))
            logger.warning(
                "circuit_rejected",
                extra={"provider": self._provider, "retry_after_seconds": retry_after},
            )
            raise CircuitOpenError(self._provider, retry_after)
        if status is CircuitStatus.HALF_OPEN:
            logger.info("circuit_trial_call", extra={"provider": self._provider})

        try:
            result = await operation()
        except Exception as exc:
            if self._is_fault(exc):
                self._trip(status)
            else:
                self._close()
            raise
        self._close()
        return result

    def _trip(self, status: CircuitStatus) -> None:
        self._consecutive_faults += 1
        if status is CircuitStatus.HALF_OPEN or self._consecutive_faults >= self._failure_threshold:
            self._opened_at = self._clock()
            logger.error(
                "circuit_opened",
                extra={"provider": self._provider, "consecutive_faults": self._consecutive_faults},
            )

    def _close(self) -> None:
        if self._opened_at is not None:
            logger.info("circuit_closed", extra={"provider": self._provider})
        self._consecutive_faults = 0
        self._opened_at = None
