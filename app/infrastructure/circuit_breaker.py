"""
Circuit breakers for outbound calls (payment gateways, travel providers).

Circuit states:
- CLOSED: normal operation, calls pass through
- OPEN: too many consecutive failures, calls fail immediately
- HALF_OPEN: reset timeout elapsed, the next call probes the service

pybreaker drives the state machine with synchronous callables, so async
calls run first and their outcome is replayed through `breaker.call`.
"""

import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from pybreaker import STATE_OPEN, CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

logger = logging.getLogger(__name__)

T = TypeVar("T")


gateway_breaker = CircuitBreaker(
    fail_max=5,
    reset_timeout=60,
    name="payment_gateway_circuit_breaker",
)

provider_breaker = CircuitBreaker(
    fail_max=5,
    reset_timeout=60,
    name="travel_provider_circuit_breaker",
)


class StateChangeLogger(CircuitBreakerListener):
    """Logs state changes and remembers when each breaker opened."""

    def __init__(self, name: str):
        self.name = name
        self.opened_at: float | None = None

    def state_change(self, cb, old_state, new_state):
        # close() on a closed breaker only resets its failure counter
        if old_state is not None and old_state.name == new_state.name:
            return
        if new_state.name == STATE_OPEN:
            self.opened_at = time.monotonic()
        logger.warning(
            "Circuit breaker state changed",
            extra={
                "breaker_name": self.name,
                "old_state": old_state.name if old_state else None,
                "new_state": new_state.name,
            },
        )


_listeners: dict[str, StateChangeLogger] = {}


def _watch(breaker: CircuitBreaker, name: str) -> None:
    listener = StateChangeLogger(name)
    breaker.add_listener(listener)
    _listeners[breaker.name] = listener


_watch(gateway_breaker, "payment_gateway")
_watch(provider_breaker, "travel_provider")


def _reject_if_open(breaker: CircuitBreaker) -> None:
    if breaker.current_state != STATE_OPEN:
        return
    listener = _listeners.get(breaker.name)
    opened_at = listener.opened_at if listener else None
    if opened_at is not None and time.monotonic() - opened_at < breaker.reset_timeout:
        raise CircuitBreakerError("Timeout not elapsed yet, circuit breaker still open")
    breaker.half_open()


async def guarded_call(
    breaker: CircuitBreaker,
    func: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Runs an async call under `breaker`.

    Raises:
        CircuitBreakerError: the circuit is open.
        Any exception raised by `func`, after it is counted as a failure.
    """
    _reject_if_open(breaker)
    error: BaseException | None = None
    result: Any = None
    try:
        result = await func(*args, **kwargs)
    except Exception as exc:
        error = exc

    def _replay():
        if error is not None:
            raise error
        return result

    return breaker.call(_replay)


def reset_breakers() -> None:
    """Closes every breaker (start-up and tests)."""
    for breaker in (gateway_breaker, provider_breaker):
        breaker.close()
        listener = _listeners.get(breaker.name)
        if listener:
            listener.opened_at = None


__all__ = [
    "gateway_breaker",
    "provider_breaker",
    "guarded_call",
    "reset_breakers",
    "CircuitBreakerError",
]
