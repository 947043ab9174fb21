"""Value Object BookingInterval - the half-open window a booking occupies."""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to timezone-aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class BookingInterval:
    """
    Immutable half-open interval ``[start, end)``.

    Lodging bookings use it as a check-in/check-out date range, dining and
    transport bookings as a timestamp plus duration.

    Attributes:
        start: Inclusive start (UTC).
        end: Exclusive end (UTC).
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.start >= self.end:
            raise ValueError(f"start must be before end: {self.start} >= {self.end}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def nights(self) -> int:
        """
        Billable nights.

        Business rule: any fraction of a day counts as a full night.
        Example: 25 hours = 2 nights.
        """
        total_hours = self.duration.total_seconds() / 3600
        nights = int(total_hours // 24)
        if total_hours % 24 > 0:
            nights += 1
        return max(1, nights)

    @property
    def hours(self) -> int:
        """Billable hours; a started hour counts as a full hour."""
        return max(1, math.ceil(self.duration.total_seconds() / 3600))

    def slots(self, slot_minutes: int) -> int:
        """Number of ``slot_minutes`` slots needed to cover the interval."""
        return max(1, math.ceil(self.duration.total_seconds() / (slot_minutes * 60)))

    def overlaps_with(self, other: "BookingInterval") -> bool:
        """Half-open overlap: touching intervals do not overlap."""
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"
