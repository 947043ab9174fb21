import hashlib
import hmac
import logging

from app.application.atomic import run_atomic
from app.application.dtos.payment_dto import ConfirmationResult
from app.application.interfaces.clock import Clock
from app.application.interfaces.payment_order_repo import PaymentOrderRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.use_cases.booking_ledger import BookingLedger
from app.domain.entities.booking import Booking, BookingStatus
from app.domain.entities.payment_order import PaymentOrder, PaymentOrderStatus
from app.domain.errors import (
    InvalidSignatureError,
    InvalidStateTransitionError,
    UnknownOrderError,
)

logger = logging.getLogger(__name__)


def sign_payment(secret: str, order_id: str, provider_reference: str) -> str:
    """Hex HMAC-SHA256 of ``order_id|provider_reference``, as the gateway signs it."""
    message = f"{order_id}|{provider_reference}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class ConfirmPaymentUseCase:
    """
    Reconcile gateway confirmations into bookings exactly once.

    Safe to call any number of times for the same order: once the order is
    ``paid`` every further call returns the booking unchanged.
    """

    def __init__(
        self,
        ledger: BookingLedger,
        payment_order_repo: PaymentOrderRepo,
        transaction_manager: TransactionManager,
        clock: Clock,
        signing_secret: str,
        lock_timeout_seconds: float = 3.0,
        lock_retry_attempts: int = 3,
    ) -> None:
        self._ledger = ledger
        self._payment_order_repo = payment_order_repo
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._signing_secret = signing_secret
        self._lock_timeout_seconds = lock_timeout_seconds
        self._lock_retry_attempts = lock_retry_attempts

    async def _atomic(self, work):
        return await run_atomic(
            self._transaction_manager,
            work,
            timeout_seconds=self._lock_timeout_seconds,
            max_attempts=self._lock_retry_attempts,
        )

    def verify_signature(self, order_id: str, provider_reference: str, signature: str) -> None:
        expected = sign_payment(self._signing_secret, order_id, provider_reference)
        if not hmac.compare_digest(expected, signature or ""):
            logger.warning(
                "Payment signature mismatch",
                extra={"order_id": order_id, "provider_reference": provider_reference},
            )
            raise InvalidSignatureError(order_id)

    async def _load_order(self, order_id: str) -> tuple[PaymentOrder, Booking]:
        async def load() -> tuple[PaymentOrder, Booking]:
            order = await self._payment_order_repo.get(order_id)
            if order is None:
                logger.warning("Confirmation for unknown order discarded", extra={"order_id": order_id})
                raise UnknownOrderError(order_id)
            return order, await self._ledger.get(order.booking_id)

        return await self._atomic(load)

    async def execute(
        self, order_id: str, provider_reference: str, signature: str
    ) -> ConfirmationResult:
        """Client-posted confirmation; the signature is checked before anything is read."""
        self.verify_signature(order_id, provider_reference, signature)
        return await self.settle_verified(order_id, provider_reference, signature)

    async def settle_verified(
        self,
        order_id: str,
        provider_reference: str,
        signature: str | None = None,
    ) -> ConfirmationResult:
        """Settle an order whose authenticity was already established."""
        order, booking = await self._load_order(order_id)
        if order.is_paid:
            return ConfirmationResult(booking=booking, newly_confirmed=False)

        async def settle() -> ConfirmationResult:
            now = self._clock.now()
            current = await self._payment_order_repo.get(order_id, for_update=True)
            if current.status == PaymentOrderStatus.PAID:
                return ConfirmationResult(
                    booking=await self._ledger.get(current.booking_id), newly_confirmed=False
                )
            if not await self._payment_order_repo.mark_paid(
                order_id, provider_reference, signature, now
            ):
                raise InvalidStateTransitionError(
                    current.booking_id, f"payment {current.status.value}", "confirm"
                )
            confirmed, changed = await self._ledger.confirm(
                current.booking_id, provider_reference, now
            )
            return ConfirmationResult(booking=confirmed, newly_confirmed=changed)

        try:
            result = await self._atomic(settle)
        except InvalidStateTransitionError as exc:
            logger.error(
                "Paid order could not confirm its booking",
                extra={
                    "order_id": order_id,
                    "booking_id": order.booking_id,
                    "provider_reference": provider_reference,
                    "error": exc.message,
                },
            )
            raise

        if result.newly_confirmed:
            logger.info(
                "Payment settled",
                extra={"order_id": order_id, "booking_id": result.booking.id},
            )
        return result

    async def record_failure(self, order_id: str, reason: str) -> Booking:
        """Mark the order failed and, if it is still waiting, fail the booking too."""
        order, booking = await self._load_order(order_id)
        if order.is_final:
            return booking

        async def fail() -> Booking:
            now = self._clock.now()
            if not await self._payment_order_repo.mark_failed(order_id, reason, now):
                return await self._ledger.get(order.booking_id)
            current = await self._ledger.get(order.booking_id, for_update=True)
            if current.status != BookingStatus.AWAITING_PAYMENT:
                return current
            return await self._ledger.fail(current.id, reason, now)

        failed = await self._atomic(fail)
        logger.info(
            "Payment failure recorded",
            extra={"order_id": order_id, "booking_id": failed.id, "reason": reason},
        )
        return failed
