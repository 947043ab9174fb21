import logging
from datetime import datetime, timedelta

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.outbox_repo import OutboxRepo
from app.domain.constants import AGGREGATE_BOOKING, EVENT_BOOKING_CONFIRMED
from app.domain.entities.booking import Booking, BookingStatus
from app.domain.entities.outbox_event import OutboxEvent
from app.domain.errors import BookingNotFoundError, InvalidStateTransitionError

logger = logging.getLogger(__name__)


class BookingLedger:
    """
    The only writer of booking status.

    Methods assume the caller already opened a transaction. Every write is a
    compare-and-set on ``lock_version``; losing the race surfaces as
    ``InvalidStateTransitionError`` and is never retried here.
    """

    def __init__(
        self,
        booking_repo: BookingRepo,
        outbox_repo: OutboxRepo,
        payment_window_minutes: int = 30,
    ) -> None:
        self._booking_repo = booking_repo
        self._outbox_repo = outbox_repo
        self._payment_window = timedelta(minutes=payment_window_minutes)

    async def get(self, booking_id: str, for_update: bool = False) -> Booking:
        booking = await self._booking_repo.get(booking_id, for_update=for_update)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    async def _persist(self, booking: Booking, expected_lock_version: int, operation: str) -> None:
        saved = await self._booking_repo.save(booking, expected_lock_version=expected_lock_version)
        if not saved:
            current = await self._booking_repo.get(booking.id)
            current_status = current.status.value if current else "missing"
            raise InvalidStateTransitionError(booking.id, current_status, operation)

    async def create_draft(self, booking: Booking) -> Booking:
        if booking.status != BookingStatus.DRAFT:
            raise InvalidStateTransitionError(booking.id, booking.status.value, "create")
        await self._booking_repo.add(booking)
        return booking

    async def mark_awaiting_payment(
        self, booking_id: str, payment_order_id: str, now: datetime
    ) -> Booking:
        booking = await self.get(booking_id, for_update=True)
        expected = booking.lock_version
        booking.mark_awaiting_payment(
            payment_order_id, now=now, payment_deadline=now + self._payment_window
        )
        await self._persist(booking, expected, "start payment for")
        return booking

    async def confirm(
        self, booking_id: str, payment_reference: str, now: datetime
    ) -> tuple[Booking, bool]:
        """
        Confirm a paid booking.

        Returns the booking and whether this call performed the transition.
        Confirming again with the same reference is a no-op.
        """
        booking = await self.get(booking_id, for_update=True)
        if (
            booking.status == BookingStatus.CONFIRMED
            and booking.payment_reference == payment_reference
        ):
            return booking, False

        expected = booking.lock_version
        booking.confirm(payment_reference, now=now)
        await self._persist(booking, expected, "confirm")

        await self._outbox_repo.enqueue(
            OutboxEvent(
                event_type=EVENT_BOOKING_CONFIRMED,
                aggregate_type=AGGREGATE_BOOKING,
                aggregate_id=booking.id,
                payload={
                    "booking_id": booking.id,
                    "resource_id": booking.resource_id,
                    "user_id": booking.user_id,
                    "requester_email": booking.requester_email,
                    "interval_start": booking.interval_start.isoformat(),
                    "interval_end": booking.interval_end.isoformat(),
                    "final_amount": str(booking.final_amount),
                    "currency": booking.currency,
                    "payment_reference": payment_reference,
                },
                created_at=now,
            )
        )
        logger.info(
            "Booking confirmed",
            extra={"booking_id": booking.id, "payment_reference": payment_reference},
        )
        return booking, True

    async def cancel(self, booking_id: str, now: datetime) -> Booking:
        booking = await self.get(booking_id, for_update=True)
        expected = booking.lock_version
        booking.cancel(now=now)
        await self._persist(booking, expected, "cancel")
        logger.info("Booking cancelled", extra={"booking_id": booking.id})
        return booking

    async def expire(self, booking_id: str, now: datetime) -> Booking:
        booking = await self.get(booking_id, for_update=True)
        expected = booking.lock_version
        booking.expire(now=now)
        await self._persist(booking, expected, "expire")
        logger.info("Booking expired", extra={"booking_id": booking.id})
        return booking

    async def fail(self, booking_id: str, reason: str, now: datetime) -> Booking:
        booking = await self.get(booking_id, for_update=True)
        expected = booking.lock_version
        booking.fail(reason, now=now)
        await self._persist(booking, expected, "fail")
        logger.info(
            "Booking payment failed",
            extra={"booking_id": booking.id, "reason": reason},
        )
        return booking
