import copy
from datetime import datetime

from app.application.interfaces.payment_order_repo import PaymentOrderRepo
from app.domain.entities.payment_order import PaymentOrder, PaymentOrderStatus
from app.infrastructure.in_memory.store import InMemoryDatabase


class InMemoryPaymentOrderRepo(PaymentOrderRepo):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def add(self, order: PaymentOrder) -> None:
        if order.id in self._db.payment_orders:
            raise ValueError(f"Payment order already exists: {order.id}")
        if any(o.booking_id == order.booking_id for o in self._db.payment_orders.values()):
            raise ValueError(f"Booking already has a payment order: {order.booking_id}")
        self._db.before_write("payment_orders", order.id)
        self._db.payment_orders[order.id] = copy.copy(order)

    async def get(self, order_id: str, for_update: bool = False) -> PaymentOrder | None:
        order = self._db.payment_orders.get(order_id)
        return copy.copy(order) if order else None

    async def get_by_booking(self, booking_id: str) -> PaymentOrder | None:
        for order in self._db.payment_orders.values():
            if order.booking_id == booking_id:
                return copy.copy(order)
        return None

    async def mark_paid(
        self,
        order_id: str,
        provider_reference: str,
        signature: str | None,
        now: datetime,
    ) -> bool:
        order = self._db.payment_orders.get(order_id)
        if order is None or order.status != PaymentOrderStatus.CREATED:
            return False
        self._db.before_write("payment_orders", order_id)
        order.status = PaymentOrderStatus.PAID
        order.provider_reference = provider_reference
        order.signature = signature
        order.updated_at = now
        return True

    async def mark_failed(self, order_id: str, reason: str, now: datetime) -> bool:
        order = self._db.payment_orders.get(order_id)
        if order is None or order.status != PaymentOrderStatus.CREATED:
            return False
        self._db.before_write("payment_orders", order_id)
        order.status = PaymentOrderStatus.FAILED
        order.failure_reason = reason
        order.updated_at = now
        return True
