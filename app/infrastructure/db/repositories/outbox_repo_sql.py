import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.outbox_repo import OutboxRepo
from app.domain.entities.outbox_event import OutboxEvent, OutboxStatus
from app.infrastructure.db.tables import from_db_time, outbox_events, to_db_time

logger = logging.getLogger(__name__)


def _to_entity(data) -> OutboxEvent:
    return OutboxEvent(
        id=data["id"],
        event_type=data["event_type"],
        aggregate_type=data["aggregate_type"],
        aggregate_id=data["aggregate_id"],
        payload=data["payload"] or {},
        status=data["status"],
        attempts=data.get("attempts", 0),
        next_attempt_at=from_db_time(data.get("next_attempt_at")),
        locked_by=data.get("locked_by"),
        lock_expires_at=from_db_time(data.get("lock_expires_at")),
        last_error=data.get("last_error"),
        created_at=from_db_time(data.get("created_at")),
        updated_at=from_db_time(data.get("updated_at")),
    )


class OutboxRepoSQL(OutboxRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _claimable(self, now: datetime):
        db_now = to_db_time(now)
        return or_(
            and_(
                outbox_events.c.status.in_((OutboxStatus.NEW.value, OutboxStatus.RETRY.value)),
                or_(
                    outbox_events.c.next_attempt_at.is_(None),
                    outbox_events.c.next_attempt_at <= db_now,
                ),
            ),
            # A dispatcher that died mid-batch leaves its lock to lapse.
            and_(
                outbox_events.c.status == OutboxStatus.IN_PROGRESS.value,
                outbox_events.c.lock_expires_at <= db_now,
            ),
        )

    async def enqueue(self, event: OutboxEvent) -> OutboxEvent:
        stmt = insert(outbox_events).values(
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            payload=event.payload,
            status=OutboxStatus.NEW.value,
            attempts=0,
            next_attempt_at=to_db_time(event.created_at),
            created_at=to_db_time(event.created_at),
            updated_at=to_db_time(event.created_at),
        )
        result = await self._session.execute(stmt)
        event.id = result.inserted_primary_key[0]
        event.status = OutboxStatus.NEW
        event.next_attempt_at = event.created_at
        return event

    async def claim_batch(
        self,
        locked_by: str,
        now: datetime,
        limit: int,
        lock_ttl_seconds: int = 60,
    ) -> list[OutboxEvent]:
        candidates = await self._session.execute(
            select(outbox_events.c.id)
            .where(self._claimable(now))
            .order_by(outbox_events.c.id)
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        claimed: list[OutboxEvent] = []
        for event_id in candidates.scalars().all():
            # Conditional update: a concurrent dispatcher may have won this row.
            result = await self._session.execute(
                update(outbox_events)
                .where(outbox_events.c.id == event_id, self._claimable(now))
                .values(
                    status=OutboxStatus.IN_PROGRESS.value,
                    locked_by=locked_by,
                    lock_expires_at=to_db_time(now + timedelta(seconds=lock_ttl_seconds)),
                    updated_at=to_db_time(now),
                )
            )
            if result.rowcount != 1:
                continue
            row = await self._session.execute(
                select(outbox_events).where(outbox_events.c.id == event_id)
            )
            claimed.append(_to_entity(row.mappings().one()))
        return claimed

    async def _release(self, event_id: int, now: datetime, **values) -> None:
        """Drop the dispatcher lock and apply the outcome columns."""
        await self._session.execute(
            update(outbox_events)
            .where(outbox_events.c.id == event_id)
            .values(locked_by=None, lock_expires_at=None, updated_at=to_db_time(now), **values)
        )

    async def mark_done(self, event_id: int, now: datetime) -> None:
        await self._release(event_id, now, status=OutboxStatus.DONE.value)

    async def mark_retry(
        self,
        event_id: int,
        attempts: int,
        next_attempt_at: datetime,
        error: str,
        now: datetime,
    ) -> None:
        await self._release(
            event_id,
            now,
            status=OutboxStatus.RETRY.value,
            attempts=attempts,
            next_attempt_at=to_db_time(next_attempt_at),
            last_error=error,
        )

    async def mark_failed(
        self,
        event_id: int,
        attempts: int,
        error: str,
        now: datetime,
    ) -> None:
        await self._release(
            event_id,
            now,
            status=OutboxStatus.FAILED.value,
            attempts=attempts,
            last_error=error,
        )
        logger.warning(
            "Outbox event marked FAILED - requires manual intervention",
            extra={"event_id": event_id, "attempts": attempts, "error": error},
        )

    async def list_by_aggregate(self, aggregate_id: str) -> list[OutboxEvent]:
        result = await self._session.execute(
            select(outbox_events)
            .where(outbox_events.c.aggregate_id == aggregate_id)
            .order_by(outbox_events.c.id)
        )
        return [_to_entity(row) for row in result.mappings().all()]
