"""
Circuit Breaker and Retry Utilities

Provides bounded exponential-backoff retry and a circuit breaker for
calls to the text-completion backend.

Usage:
    from utils.circuit_breaker import retry_with_backoff, get_circuit_breaker

    circuit = get_circuit_breaker("gemini")
    text = await retry_with_backoff(call_backend, prompt, retry_on=(CompletionRateLimitError,))
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Tuple, Type, TypeVar

from utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """
    Consecutive-failure circuit for one backend.

    CLOSED until `failure_threshold` failures in a row, then OPEN: calls are
    refused for `recovery_timeout` seconds. After that one trial call runs
    (HALF_OPEN); its outcome closes or reopens the circuit.
    """
    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 30.0

    state: CircuitState = field(default=CircuitState.CLOSED)
    failure_count: int = field(default=0)
    opened_at: Optional[float] = field(default=None)

    def can_execute(self) -> bool:
        if self.state != CircuitState.OPEN:
            return True
        if self.opened_at is not None and time.monotonic() - self.opened_at >= self.recovery_timeout:
            self.state = CircuitState.HALF_OPEN
            logger.info(f"Circuit {self.name} half-open, allowing a trial call")
            return True
        return False

    def record_success(self) -> None:
        if self.state != CircuitState.CLOSED:
            logger.info(f"Circuit {self.name} closed again")
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        trial_failed = self.state == CircuitState.HALF_OPEN
        if trial_failed or self.failure_count >= self.failure_threshold:
            if self.state != CircuitState.OPEN:
                logger.warning(
                    f"Circuit {self.name} open after {self.failure_count} failure(s)"
                    + (" (trial call failed)" if trial_failed else "")
                )
            self.state = CircuitState.OPEN
            self.opened_at = time.monotonic()

    @property
    def status(self) -> dict:
        """Snapshot for /health."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
        }


_circuit_breakers: Dict[str, CircuitBreaker] = {}


def get_circuit_breaker(name: str, **kwargs) -> CircuitBreaker:
    """Get or create a circuit breaker by name."""
    if name not in _circuit_breakers:
        _circuit_breakers[name] = CircuitBreaker(name=name, **kwargs)
    return _circuit_breakers[name]


def reset_circuit_breakers() -> None:
    """Forget all circuit breakers (used by tests)."""
    _circuit_breakers.clear()


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args,
    max_attempts: int = 3,
    initial_delay: float = 2.0,
    exponential_base: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    **kwargs
) -> T:
    """
    Await `func` and retry it with exponential backoff.

    Only exceptions listed in `retry_on` are retried; anything else
    propagates immediately. The delay before attempt n+1 is
    initial_delay * exponential_base ** n.

    Args:
        func: Async function to execute
        max_attempts: Total number of attempts, including the first
        initial_delay: Delay before the second attempt (seconds)
        exponential_base: Growth factor of the delay
        retry_on: Exception types worth retrying

    Returns:
        Result from the function

    Raises:
        Exception: Last exception if all attempts fail
    """
    for attempt in range(max_attempts):
        try:
            return await func(*args, **kwargs)
        except retry_on as e:
            if attempt == max_attempts - 1:
                logger.error(f"All {max_attempts} attempts failed: {e}")
                raise

            delay = initial_delay * (exponential_base ** attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{max_attempts} failed: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    raise RuntimeError("retry_with_backoff called with max_attempts < 1")
