from typing import Any


class NotificationPublisher:
    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Deliver an event to users and vendors. Raises on delivery failure."""
        raise NotImplementedError
