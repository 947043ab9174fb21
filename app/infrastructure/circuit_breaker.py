"""
Circuit breakers for external service calls.

One breaker per dependency, so a failing notification service never blocks
payment order creation and vice versa.

Circuit Breaker Pattern:
- CLOSED: Normal operation, requests pass through
- OPEN: Too many failures, requests fail immediately
- HALF_OPEN: Testing if service recovered, limited requests allowed

pybreaker tracks calls synchronously, so adapters run the blocking client
call through ``breaker.call`` inside ``asyncio.to_thread``.
"""

import logging

from pybreaker import CircuitBreaker, CircuitBreakerError, CircuitBreakerListener

logger = logging.getLogger(__name__)


class StateChangeLogger(CircuitBreakerListener):
    """Logs breaker state changes; an opening circuit is worth an alert."""

    def __init__(self, name: str):
        self.name = name

    def state_change(self, cb, old_state, new_state):
        logger.warning(
            "Circuit breaker state changed",
            extra={
                "breaker_name": self.name,
                "old_state": old_state.name if old_state else None,
                "new_state": new_state.name,
            },
        )


payment_breaker = CircuitBreaker(
    fail_max=5,  # Open circuit after 5 consecutive failures
    reset_timeout=60,  # Wait 60 seconds before attempting recovery
    name="payment_gateway",
    listeners=[StateChangeLogger("payment_gateway")],
)

notification_breaker = CircuitBreaker(
    fail_max=5,
    reset_timeout=30,
    name="notification_service",
    listeners=[StateChangeLogger("notification_service")],
)


__all__ = [
    "payment_breaker",
    "notification_breaker",
    "CircuitBreakerError",
]
