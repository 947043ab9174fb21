from datetime import datetime

from app.domain.entities.booking import Booking
from app.domain.value_objects.booking_interval import BookingInterval


class BookingRepo:
    async def add(self, booking: Booking) -> None:
        raise NotImplementedError

    async def get(self, booking_id: str, for_update: bool = False) -> Booking | None:
        raise NotImplementedError

    async def save(self, booking: Booking, expected_lock_version: int) -> bool:
        """
        Persist a transitioned booking.

        Compare-and-set on ``lock_version``: returns False when another writer
        got there first.
        """
        raise NotImplementedError

    async def list_active_overlapping(
        self,
        resource_id: str,
        interval: BookingInterval,
    ) -> list[Booking]:
        """Bookings in an active status whose interval overlaps ``interval``."""
        raise NotImplementedError

    async def list_expired_holds(self, now: datetime, limit: int) -> list[Booking]:
        raise NotImplementedError

    async def list_by_user(self, user_id: str, limit: int = 50) -> list[Booking]:
        """A user's bookings, newest first."""
        raise NotImplementedError
