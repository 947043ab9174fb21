from datetime import datetime

from app.domain.entities.payment_order import PaymentOrder


class PaymentOrderRepo:
    async def add(self, order: PaymentOrder) -> None:
        raise NotImplementedError

    async def get(self, order_id: str, for_update: bool = False) -> PaymentOrder | None:
        raise NotImplementedError

    async def get_by_booking(self, booking_id: str) -> PaymentOrder | None:
        raise NotImplementedError

    async def mark_paid(
        self,
        order_id: str,
        provider_reference: str,
        signature: str | None,
        now: datetime,
    ) -> bool:
        """``created -> paid``. False if the order was already finalized."""
        raise NotImplementedError

    async def mark_failed(self, order_id: str, reason: str, now: datetime) -> bool:
        raise NotImplementedError
