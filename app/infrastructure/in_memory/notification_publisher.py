import logging
from typing import Any

from app.application.interfaces.notification_publisher import NotificationPublisher

logger = logging.getLogger(__name__)


class LoggingNotificationPublisher(NotificationPublisher):
    """Used when no notification webhook is configured. Keeps what it published."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        self.published.append((event_type, payload))
        logger.info(
            "Notification published",
            extra={"event_type": event_type, "booking_id": payload.get("booking_id")},
        )
