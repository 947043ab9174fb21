import copy
from datetime import datetime

from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import Booking
from app.domain.value_objects.booking_interval import BookingInterval
from app.infrastructure.in_memory.store import InMemoryDatabase


class InMemoryBookingRepo(BookingRepo):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def add(self, booking: Booking) -> None:
        if booking.id in self._db.bookings:
            raise ValueError(f"Booking id already exists: {booking.id}")
        self._db.before_write("bookings", booking.id)
        self._db.bookings[booking.id] = copy.copy(booking)

    async def get(self, booking_id: str, for_update: bool = False) -> Booking | None:
        booking = self._db.bookings.get(booking_id)
        return copy.copy(booking) if booking else None

    async def save(self, booking: Booking, expected_lock_version: int) -> bool:
        stored = self._db.bookings.get(booking.id)
        if stored is None or stored.lock_version != expected_lock_version:
            return False
        self._db.before_write("bookings", booking.id)
        self._db.bookings[booking.id] = copy.copy(booking)
        return True

    async def list_active_overlapping(
        self,
        resource_id: str,
        interval: BookingInterval,
    ) -> list[Booking]:
        return [
            copy.copy(booking)
            for booking in self._db.bookings.values()
            if booking.resource_id == resource_id
            and booking.is_active
            and booking.interval.overlaps_with(interval)
        ]

    async def list_expired_holds(self, now: datetime, limit: int) -> list[Booking]:
        expired = [
            booking for booking in self._db.bookings.values() if booking.is_expired(now)
        ]
        expired.sort(key=lambda booking: booking.expires_at)
        return [copy.copy(booking) for booking in expired[:limit]]

    async def list_by_user(self, user_id: str, limit: int = 50) -> list[Booking]:
        owned = [booking for booking in self._db.bookings.values() if booking.user_id == user_id]
        owned.sort(key=lambda booking: (booking.created_at, booking.id), reverse=True)
        return [copy.copy(booking) for booking in owned[:limit]]
