import logging

from app.application.atomic import run_atomic
from app.application.dtos.payment_dto import SweepReport
from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.use_cases.booking_ledger import BookingLedger
from app.domain.errors import InvalidStateTransitionError, TemporarilyUnavailableError

logger = logging.getLogger(__name__)


class ExpireStaleBookingsUseCase:
    """
    Expire unpaid holds whose ``expires_at`` has passed.

    Each booking is expired in its own transaction. Losing the race to a
    confirmation or to another sweeper is a skip, not an error, so any number
    of sweepers may run at once.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        ledger: BookingLedger,
        transaction_manager: TransactionManager,
        clock: Clock,
        batch_size: int = 100,
        lock_timeout_seconds: float = 3.0,
        lock_retry_attempts: int = 3,
    ) -> None:
        self._booking_repo = booking_repo
        self._ledger = ledger
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._batch_size = batch_size
        self._lock_timeout_seconds = lock_timeout_seconds
        self._lock_retry_attempts = lock_retry_attempts

    async def execute(self) -> SweepReport:
        report = SweepReport()
        now = self._clock.now()

        async with self._transaction_manager.start():
            candidates = await self._booking_repo.list_expired_holds(now, self._batch_size)

        for candidate in candidates:
            async def expire_one(booking_id: str = candidate.id):
                return await self._ledger.expire(booking_id, self._clock.now())

            try:
                await run_atomic(
                    self._transaction_manager,
                    expire_one,
                    timeout_seconds=self._lock_timeout_seconds,
                    max_attempts=self._lock_retry_attempts,
                )
                report.expired += 1
            except (InvalidStateTransitionError, TemporarilyUnavailableError):
                report.skipped += 1
            except Exception:
                logger.exception(
                    "Failed to expire booking", extra={"booking_id": candidate.id}
                )
                report.errors += 1

        if candidates:
            logger.info(
                "Expiry sweep finished",
                extra={
                    "expired": report.expired,
                    "skipped": report.skipped,
                    "errors": report.errors,
                },
            )
        return report
