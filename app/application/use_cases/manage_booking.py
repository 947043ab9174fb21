from app.application.atomic import run_atomic
from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.use_cases.booking_ledger import BookingLedger
from app.domain.entities.booking import Booking
from app.domain.errors import BookingAccessDeniedError


class GetBookingUseCase:
    def __init__(self, ledger: BookingLedger, transaction_manager: TransactionManager) -> None:
        self._ledger = ledger
        self._transaction_manager = transaction_manager

    async def execute(self, booking_id: str) -> Booking:
        async def load() -> Booking:
            return await self._ledger.get(booking_id)

        return await run_atomic(self._transaction_manager, load)


class CancelBookingUseCase:
    def __init__(
        self,
        ledger: BookingLedger,
        transaction_manager: TransactionManager,
        clock: Clock,
        lock_timeout_seconds: float = 3.0,
        lock_retry_attempts: int = 3,
    ) -> None:
        self._ledger = ledger
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._lock_timeout_seconds = lock_timeout_seconds
        self._lock_retry_attempts = lock_retry_attempts

    async def execute(self, booking_id: str, user_id: str) -> Booking:
        """Cancel on behalf of ``user_id``, who must be the booking's requester."""

        async def cancel() -> Booking:
            booking = await self._ledger.get(booking_id, for_update=True)
            if booking.user_id != user_id:
                raise BookingAccessDeniedError(booking_id, user_id)
            return await self._ledger.cancel(booking_id, self._clock.now())

        return await run_atomic(
            self._transaction_manager,
            cancel,
            timeout_seconds=self._lock_timeout_seconds,
            max_attempts=self._lock_retry_attempts,
        )


class ListUserBookingsUseCase:
    def __init__(self, booking_repo: BookingRepo, transaction_manager: TransactionManager) -> None:
        self._booking_repo = booking_repo
        self._transaction_manager = transaction_manager

    async def execute(self, user_id: str, limit: int = 50) -> list[Booking]:
        async def load() -> list[Booking]:
            return await self._booking_repo.list_by_user(user_id, limit=limit)

        return await run_atomic(self._transaction_manager, load)
