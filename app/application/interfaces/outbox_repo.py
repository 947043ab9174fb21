from datetime import datetime

from app.domain.entities.outbox_event import OutboxEvent


class OutboxRepo:
    async def enqueue(self, event: OutboxEvent) -> OutboxEvent:
        raise NotImplementedError

    async def claim_batch(
        self,
        locked_by: str,
        now: datetime,
        limit: int,
        lock_ttl_seconds: int = 60,
    ) -> list[OutboxEvent]:
        raise NotImplementedError

    async def mark_done(self, event_id: int, now: datetime) -> None:
        raise NotImplementedError

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error: str,
        now: datetime,
    ) -> None:
        raise NotImplementedError

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error: str,
        now: datetime,
    ) -> None:
        raise NotImplementedError

    async def list_by_aggregate(self, aggregate_id: str) -> list[OutboxEvent]:
        raise NotImplementedError
