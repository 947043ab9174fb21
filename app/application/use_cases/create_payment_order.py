import asyncio
import logging

from app.application.atomic import run_atomic
from app.application.dtos.payment_dto import PaymentOrderHandle
from app.application.interfaces.clock import Clock
from app.application.interfaces.payment_gateway import GatewayOrder, PaymentGateway
from app.application.interfaces.payment_order_repo import PaymentOrderRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.application.use_cases.booking_ledger import BookingLedger
from app.domain.entities.booking import Booking, BookingStatus
from app.domain.entities.payment_order import PaymentOrder, PaymentOrderStatus
from app.domain.errors import GatewayError, GatewayTimeoutError, InvalidStateTransitionError

logger = logging.getLogger(__name__)


def _handle(order: PaymentOrder) -> PaymentOrderHandle:
    return PaymentOrderHandle(
        order_id=order.id,
        booking_id=order.booking_id,
        client_handle=order.client_handle,
        amount=order.amount,
        currency=order.currency,
        provider=order.provider,
    )


class CreatePaymentOrderUseCase:
    """
    Hand a draft booking off to the payment gateway.

    The gateway is called between two short transactions so no lock is held
    while waiting on the network. If the call fails the booking stays
    ``draft`` and the client may retry until the hold expires.
    """

    def __init__(
        self,
        ledger: BookingLedger,
        payment_order_repo: PaymentOrderRepo,
        payment_gateway: PaymentGateway,
        transaction_manager: TransactionManager,
        clock: Clock,
        gateway_timeout_seconds: float = 10.0,
        lock_timeout_seconds: float = 3.0,
        lock_retry_attempts: int = 3,
    ) -> None:
        self._ledger = ledger
        self._payment_order_repo = payment_order_repo
        self._payment_gateway = payment_gateway
        self._transaction_manager = transaction_manager
        self._clock = clock
        self._gateway_timeout_seconds = gateway_timeout_seconds
        self._lock_timeout_seconds = lock_timeout_seconds
        self._lock_retry_attempts = lock_retry_attempts

    async def _atomic(self, work):
        return await run_atomic(
            self._transaction_manager,
            work,
            timeout_seconds=self._lock_timeout_seconds,
            max_attempts=self._lock_retry_attempts,
        )

    async def execute(self, booking_id: str) -> PaymentOrderHandle:
        async def load() -> tuple[Booking, PaymentOrder | None]:
            booking = await self._ledger.get(booking_id)
            existing = await self._payment_order_repo.get_by_booking(booking_id)
            return booking, existing

        booking, existing = await self._atomic(load)

        if existing and booking.status == BookingStatus.AWAITING_PAYMENT:
            return _handle(existing)
        if booking.status != BookingStatus.DRAFT:
            raise InvalidStateTransitionError(booking.id, booking.status.value, "start payment for")
        if booking.is_expired(self._clock.now()):
            raise InvalidStateTransitionError(booking.id, "expired hold", "start payment for")

        gateway_order = await self._call_gateway(booking)

        async def persist() -> PaymentOrder:
            now = self._clock.now()
            current = await self._ledger.get(booking_id, for_update=True)
            order = await self._payment_order_repo.get_by_booking(booking_id)
            if order and current.status == BookingStatus.AWAITING_PAYMENT:
                # A concurrent call for the same booking finished first.
                return order
            if order is None:
                order = PaymentOrder(
                    id=gateway_order.order_id,
                    booking_id=booking.id,
                    amount=booking.final_amount,
                    currency=booking.currency,
                    provider=self._payment_gateway.provider,
                    status=PaymentOrderStatus.CREATED,
                    client_handle=gateway_order.client_handle,
                    created_at=now,
                    updated_at=now,
                )
                await self._payment_order_repo.add(order)
            await self._ledger.mark_awaiting_payment(booking.id, order.id, now)
            return order

        order = await self._atomic(persist)
        logger.info(
            "Payment order created",
            extra={
                "booking_id": booking.id,
                "order_id": order.id,
                "amount": str(order.amount),
                "provider": order.provider,
            },
        )
        return _handle(order)

    async def _call_gateway(self, booking: Booking) -> GatewayOrder:
        try:
            return await asyncio.wait_for(
                self._payment_gateway.create_order(
                    amount=booking.final_amount,
                    currency=booking.currency,
                    booking_id=booking.id,
                    idempotency_key=f"booking-{booking.id}-order",
                ),
                timeout=self._gateway_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Payment gateway timed out",
                extra={"booking_id": booking.id, "timeout": self._gateway_timeout_seconds},
            )
            raise GatewayTimeoutError(self._gateway_timeout_seconds) from exc
        except GatewayError:
            logger.warning("Payment gateway rejected order", extra={"booking_id": booking.id})
            raise
