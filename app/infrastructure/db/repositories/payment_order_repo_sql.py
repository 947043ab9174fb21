from datetime import datetime

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.payment_order_repo import PaymentOrderRepo
from app.domain.entities.payment_order import PaymentOrder, PaymentOrderStatus
from app.infrastructure.db.tables import from_db_time, payment_orders, to_db_time


def _to_entity(row) -> PaymentOrder:
    return PaymentOrder(
        id=row["id"],
        booking_id=row["booking_id"],
        amount=row["amount"],
        currency=row["currency"],
        provider=row["provider"],
        status=row["status"],
        client_handle=row["client_handle"],
        provider_reference=row["provider_reference"],
        signature=row["signature"],
        failure_reason=row["failure_reason"],
        created_at=from_db_time(row["created_at"]),
        updated_at=from_db_time(row["updated_at"]),
    )


class PaymentOrderRepoSQL(PaymentOrderRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, order: PaymentOrder) -> None:
        stmt = insert(payment_orders).values(
            id=order.id,
            booking_id=order.booking_id,
            amount=order.amount,
            currency=order.currency,
            provider=order.provider,
            status=order.status.value,
            client_handle=order.client_handle,
            provider_reference=order.provider_reference,
            signature=order.signature,
            failure_reason=order.failure_reason,
            created_at=to_db_time(order.created_at),
            updated_at=to_db_time(order.updated_at),
        )
        await self._session.execute(stmt)

    async def get(self, order_id: str, for_update: bool = False) -> PaymentOrder | None:
        stmt = select(payment_orders).where(payment_orders.c.id == order_id).limit(1)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def get_by_booking(self, booking_id: str) -> PaymentOrder | None:
        stmt = select(payment_orders).where(payment_orders.c.booking_id == booking_id).limit(1)
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def _finalize(self, order_id: str, values: dict) -> bool:
        stmt = (
            update(payment_orders)
            .where(
                payment_orders.c.id == order_id,
                payment_orders.c.status == PaymentOrderStatus.CREATED.value,
            )
            .values(**values)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def mark_paid(
        self,
        order_id: str,
        provider_reference: str,
        signature: str | None,
        now: datetime,
    ) -> bool:
        return await self._finalize(
            order_id,
            {
                "status": PaymentOrderStatus.PAID.value,
                "provider_reference": provider_reference,
                "signature": signature,
                "updated_at": to_db_time(now),
            },
        )

    async def mark_failed(self, order_id: str, reason: str, now: datetime) -> bool:
        return await self._finalize(
            order_id,
            {
                "status": PaymentOrderStatus.FAILED.value,
                "failure_reason": reason[:500],
                "updated_at": to_db_time(now),
            },
        )
