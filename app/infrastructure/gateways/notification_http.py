import asyncio
import logging
from typing import Any

import httpx

from app.application.interfaces.notification_publisher import NotificationPublisher
from app.infrastructure.circuit_breaker import notification_breaker

logger = logging.getLogger(__name__)


class HttpNotificationPublisher(NotificationPublisher):
    def __init__(self, webhook_url: str, timeout_seconds: float = 5.0) -> None:
        """
        Posts booking events to the notification service.

        Args:
            webhook_url: Endpoint receiving ``{"eventType", "payload"}`` JSON
            timeout_seconds: Request timeout in seconds
        """
        self._webhook_url = webhook_url
        self._timeout = timeout_seconds

    def _post(self, event_type: str, payload: dict[str, Any]) -> httpx.Response:
        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(
                self._webhook_url,
                json={"eventType": event_type, "payload": payload},
                headers={"Idempotency-Key": f"{event_type}:{payload.get('booking_id')}"},
            )
        # Non-2xx counts as a breaker failure too.
        response.raise_for_status()
        return response

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """
        Deliver one event. Failures propagate so the outbox schedules a retry.

        Raises:
            CircuitBreakerError: When the circuit is open
            httpx.HTTPError: On timeout, transport error or non-2xx reply
        """
        try:
            await asyncio.to_thread(notification_breaker.call, self._post, event_type, payload)
        except httpx.HTTPError as exc:
            logger.warning(
                "Notification delivery failed",
                extra={"event_type": event_type, "error": str(exc)},
            )
            raise
