import copy
from datetime import datetime, timedelta

from app.application.interfaces.outbox_repo import OutboxRepo
from app.domain.entities.outbox_event import OutboxEvent, OutboxStatus
from app.infrastructure.in_memory.store import InMemoryDatabase


class InMemoryOutboxRepo(OutboxRepo):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def enqueue(self, event: OutboxEvent) -> OutboxEvent:
        stored = copy.deepcopy(event)
        stored.id = self._db.next_outbox_id
        stored.status = OutboxStatus.NEW
        stored.attempts = 0
        stored.next_attempt_at = event.created_at
        stored.updated_at = event.created_at
        self._db.before_write("outbox", stored.id)
        self._db.outbox[stored.id] = stored
        self._db.next_outbox_id += 1
        return copy.deepcopy(stored)

    async def claim_batch(
        self,
        locked_by: str,
        now: datetime,
        limit: int,
        lock_ttl_seconds: int = 60,
    ) -> list[OutboxEvent]:
        claimed = []
        for event_id in sorted(self._db.outbox):
            if len(claimed) >= limit:
                break
            event = self._db.outbox[event_id]
            if not event.is_ready(now):
                continue
            self._db.before_write("outbox", event_id)
            event.status = OutboxStatus.IN_PROGRESS
            event.locked_by = locked_by
            event.lock_expires_at = now + timedelta(seconds=lock_ttl_seconds)
            event.updated_at = now
            claimed.append(copy.deepcopy(event))
        return claimed

    def _release(self, event_id: int, now: datetime, **changes) -> None:
        event = self._db.outbox.get(event_id)
        if not event:
            return
        self._db.before_write("outbox", event_id)
        for field, value in changes.items():
            setattr(event, field, value)
        event.locked_by = None
        event.lock_expires_at = None
        event.updated_at = now

    async def mark_done(self, event_id: int, now: datetime) -> None:
        self._release(event_id, now, status=OutboxStatus.DONE)

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error: str,
        now: datetime,
    ) -> None:
        self._release(
            event_id,
            now,
            status=OutboxStatus.RETRY,
            attempts=attempts,
            next_attempt_at=next_attempt_at,
            last_error=error,
        )

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error: str,
        now: datetime,
    ) -> None:
        self._release(
            event_id, now, status=OutboxStatus.FAILED, attempts=attempts, last_error=error
        )

    async def list_by_aggregate(self, aggregate_id: str) -> list[OutboxEvent]:
        return [
            copy.deepcopy(event)
            for event in self._db.outbox.values()
            if event.aggregate_id == aggregate_id
        ]
