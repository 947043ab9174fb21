from datetime import datetime
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import ACTIVE_STATUSES, EXPIRABLE_STATUSES, Booking
from app.domain.value_objects.booking_interval import BookingInterval
from app.infrastructure.db.tables import bookings, from_db_time, to_db_time

_MUTABLE_COLUMNS = (
    "status",
    "payment_order_id",
    "payment_reference",
    "failure_reason",
    "lock_version",
    "expires_at",
    "updated_at",
)


def _values(booking: Booking) -> dict[str, Any]:
    return {
        "id": booking.id,
        "resource_id": booking.resource_id,
        "category": booking.category,
        "user_id": booking.user_id,
        "requester_name": booking.requester_name,
        "requester_email": booking.requester_email,
        "requester_phone": booking.requester_phone,
        "interval_start": to_db_time(booking.interval_start),
        "interval_end": to_db_time(booking.interval_end),
        "party_size": booking.party_size,
        "units": booking.units,
        "currency": booking.currency,
        "base_amount": booking.base_amount,
        "discount_amount": booking.discount_amount,
        "final_amount": booking.final_amount,
        "coupon_code": booking.coupon_code,
        "status": booking.status.value,
        "payment_order_id": booking.payment_order_id,
        "payment_reference": booking.payment_reference,
        "failure_reason": booking.failure_reason,
        "lock_version": booking.lock_version,
        "created_at": to_db_time(booking.created_at),
        "expires_at": to_db_time(booking.expires_at),
        "updated_at": to_db_time(booking.updated_at),
    }


def _to_entity(row) -> Booking:
    return Booking(
        id=row["id"],
        resource_id=row["resource_id"],
        category=row["category"],
        user_id=row["user_id"],
        requester_name=row["requester_name"],
        requester_email=row["requester_email"],
        requester_phone=row["requester_phone"],
        interval_start=from_db_time(row["interval_start"]),
        interval_end=from_db_time(row["interval_end"]),
        party_size=row["party_size"],
        units=row["units"],
        currency=row["currency"],
        base_amount=row["base_amount"],
        discount_amount=row["discount_amount"],
        final_amount=row["final_amount"],
        coupon_code=row["coupon_code"],
        status=row["status"],
        payment_order_id=row["payment_order_id"],
        payment_reference=row["payment_reference"],
        failure_reason=row["failure_reason"],
        lock_version=row["lock_version"],
        created_at=from_db_time(row["created_at"]),
        expires_at=from_db_time(row["expires_at"]),
        updated_at=from_db_time(row["updated_at"]),
    )


class BookingRepoSQL(BookingRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, booking: Booking) -> None:
        await self._session.execute(insert(bookings).values(_values(booking)))

    async def get(self, booking_id: str, for_update: bool = False) -> Booking | None:
        stmt = select(bookings).where(bookings.c.id == booking_id).limit(1)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        return _to_entity(row) if row else None

    async def save(self, booking: Booking, expected_lock_version: int) -> bool:
        values = _values(booking)
        stmt = (
            update(bookings)
            .where(
                bookings.c.id == booking.id,
                bookings.c.lock_version == expected_lock_version,
            )
            .values({column: values[column] for column in _MUTABLE_COLUMNS})
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def list_active_overlapping(
        self,
        resource_id: str,
        interval: BookingInterval,
    ) -> list[Booking]:
        stmt = select(bookings).where(
            bookings.c.resource_id == resource_id,
            bookings.c.status.in_([status.value for status in ACTIVE_STATUSES]),
            bookings.c.interval_start < to_db_time(interval.end),
            bookings.c.interval_end > to_db_time(interval.start),
        )
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def list_expired_holds(self, now: datetime, limit: int) -> list[Booking]:
        stmt = (
            select(bookings)
            .where(
                bookings.c.status.in_([status.value for status in EXPIRABLE_STATUSES]),
                bookings.c.expires_at.is_not(None),
                bookings.c.expires_at < to_db_time(now),
            )
            .order_by(bookings.c.expires_at)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]

    async def list_by_user(self, user_id: str, limit: int = 50) -> list[Booking]:
        stmt = (
            select(bookings)
            .where(bookings.c.user_id == user_id)
            .order_by(bookings.c.created_at.desc(), bookings.c.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [_to_entity(row) for row in result.mappings().all()]
