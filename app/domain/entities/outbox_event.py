"""Entity OutboxEvent - a message in the transactional outbox."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any


class OutboxStatus(str, Enum):
    NEW = "NEW"
    IN_PROGRESS = "IN_PROGRESS"
    RETRY = "RETRY"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class OutboxEvent:
    """
    Event written in the same transaction as the state change it announces.

    A dispatcher publishes it later, so a confirmed booking and its
    notification are never out of sync.
    """

    event_type: str
    aggregate_type: str
    aggregate_id: str
    payload: dict[str, Any] = field(default_factory=dict)
    id: int | None = None
    status: OutboxStatus = OutboxStatus.NEW
    attempts: int = 0
    next_attempt_at: datetime | None = None
    locked_by: str | None = None
    lock_expires_at: datetime | None = None
    last_error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.status = OutboxStatus(self.status)

    def is_ready(self, now: datetime) -> bool:
        """Claimable: pending, due, and not locked by a live worker."""
        if self.status not in (OutboxStatus.NEW, OutboxStatus.RETRY, OutboxStatus.IN_PROGRESS):
            return False
        if self.status == OutboxStatus.IN_PROGRESS:
            # Only reclaim when the previous worker's lock has lapsed.
            return self.lock_expires_at is not None and self.lock_expires_at <= now
        return self.next_attempt_at is None or self.next_attempt_at <= now

    @staticmethod
    def backoff(attempts: int) -> timedelta:
        """Exponential backoff: 30s, 60s, 120s, 240s, ..."""
        return timedelta(seconds=30 * (2 ** (attempts - 1)))
