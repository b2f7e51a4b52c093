from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from newsdesk.core.logger import get_logger

log = get_logger("circuit_breaker")

T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitOpenError(Exception):
    """Raised when a circuit breaker is open."""
    pass


@dataclass
class CircuitBreaker:
    """Circuit breaker for an async upstream service.

    States:
        CLOSED: Normal operation. Consecutive failures are counted.
        OPEN: Circuit is tripped. Calls fail immediately (or use the fallback).
        HALF_OPEN: Recovery timeout elapsed. One probe call is let through.

    All state changes happen between awaits on the event loop thread, so no
    lock is needed.

    Usage:
        breaker = CircuitBreaker(name="huggingface")
        result = await breaker.call(lambda: client.summarize(text), fallback=truncate)
    """

    name: str
    failure_threshold: int = 5  # Consecutive failures before opening
    recovery_timeout: float = 60.0  # Seconds before half-open
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _last_failure_time: float = field(default=0.0, init=False)
    _probe_in_flight: bool = field(default=False, init=False)

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN and self._should_try_reset():
            self._transition_to(CircuitState.HALF_OPEN)
        return self._state

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    def _should_try_reset(self) -> bool:
        return self.clock() - self._last_failure_time >= self.recovery_timeout

    def _transition_to(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        if new_state == CircuitState.HALF_OPEN:
            self._probe_in_flight = False
        if old_state != new_state:
            log.info(f"Circuit '{self.name}': {old_state.value} -> {new_state.value}")

    def allow(self) -> bool:
        """Return True if a call may go through right now."""
        state = self.state
        if state == CircuitState.CLOSED:
            return True
        if state == CircuitState.HALF_OPEN and not self._probe_in_flight:
            self._probe_in_flight = True
            return True
        return False

    def record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.CLOSED)
        self._failure_count = 0

    def record_failure(self, error: Optional[BaseException] = None) -> None:
        self._failure_count += 1
        self._last_failure_time = self.clock()

        if self._state == CircuitState.HALF_OPEN:
            self._transition_to(CircuitState.OPEN)
            log.warning(f"Circuit '{self.name}' reopened after failed recovery: {error}")
        elif self._state == CircuitState.CLOSED and self._failure_count >= self.failure_threshold:
            self._transition_to(CircuitState.OPEN)
            log.warning(
                f"Circuit '{self.name}' opened after {self._failure_count} failures: {error}"
            )

    async def call(
        self,
        func: Callable[[], Awaitable[T]],
        fallback: Optional[Callable[[], T]] = None,
    ) -> T:
        """Await ``func()`` with circuit breaker protection.

        Raises:
            CircuitOpenError: If the circuit rejects the call and no fallback is given
        """
        if not self.allow():
            if fallback is not None:
                return fallback()
            raise CircuitOpenError(f"Circuit '{self.name}' is {self._state.value}")

        try:
            result = await func()
        except asyncio.CancelledError:
            # Cancellation frees the probe slot without counting a failure
            self._probe_in_flight = False
            raise
        except Exception as e:
            self.record_failure(e)
            raise
        self.record_success()
        return result

    def reset(self) -> None:
        """Manually reset the circuit to closed state."""
        self._transition_to(CircuitState.CLOSED)
        self._failure_count = 0
        self._probe_in_flight = False
        log.info(f"Circuit '{self.name}' manually reset")

    def get_stats(self) -> dict:
        """Return current circuit breaker statistics."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self._failure_count,
            "last_failure_time": self._last_failure_time,
        }
