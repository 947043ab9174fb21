import logging

from app.application.dtos.payment_dto import DispatchReport
from app.application.interfaces.clock import Clock
from app.application.interfaces.notification_publisher import NotificationPublisher
from app.application.interfaces.outbox_repo import OutboxRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.outbox_event import OutboxEvent

logger = logging.getLogger(__name__)


class DispatchOutboxUseCase:
    """
    Publish pending outbox events.

    Events are claimed with a lock that expires after ``lock_ttl_seconds``,
    so a crashed dispatcher's batch is picked up again. Failed publishes are
    retried with exponential backoff until ``max_attempts``.
    """

    def __init__(
        self,
        outbox_repo: OutboxRepo,
        publisher: NotificationPublisher,
        transaction_manager: TransactionManager,
        clock: Clock,
        worker_id: str,
        batch_size: int = 10,
        max_attempts: int = 5,
        lock_ttl_seconds: int = 60,
    ) -> None:
        self._outbox_repo = outbox_repo
        self._publisher = publisher
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._worker_id = worker_id
        self._batch_size = batch_size
        self._max_attempts = max_attempts
        self._lock_ttl_seconds = lock_ttl_seconds

    async def execute(self) -> DispatchReport:
        report = DispatchReport()

        async with self._transaction_manager.start():
            events = await self._outbox_repo.claim_batch(
                locked_by=self._worker_id,
                now=self._clock.now(),
                limit=self._batch_size,
                lock_ttl_seconds=self._lock_ttl_seconds,
            )
        report.claimed = len(events)

        for event in events:
            try:
                await self._publisher.publish(event.event_type, event.payload)
            except Exception as exc:
                await self._handle_failure(event, exc, report)
                continue

            async with self._transaction_manager.start():
                await self._outbox_repo.mark_done(event.id, self._clock.now())
            report.published += 1
            logger.info(
                "Outbox event published",
                extra={"event_id": event.id, "event_type": event.event_type},
            )

        return report

    async def _handle_failure(
        self, event: OutboxEvent, exc: Exception, report: DispatchReport
    ) -> None:
        attempts = event.attempts + 1
        now = self._clock.now()
        error = f"{type(exc).__name__}: {exc}"

        async with self._transaction_manager.start():
            if attempts >= self._max_attempts:
                await self._outbox_repo.mark_failed(event.id, attempts, error, now)
            else:
                await self._outbox_repo.mark_retry(
                    event.id, attempts, now + OutboxEvent.backoff(attempts), error, now
                )

        if attempts >= self._max_attempts:
            report.failed += 1
            logger.error(
                "Outbox event exceeded max attempts",
                extra={"event_id": event.id, "attempts": attempts, "error": error},
            )
        else:
            report.retried += 1
            logger.warning(
                "Outbox publish failed, retry scheduled",
                extra={"event_id": event.id, "attempts": attempts, "error": error},
            )
