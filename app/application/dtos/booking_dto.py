"""DTOs for booking creation and availability."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from app.domain.entities.booking import Booking


@dataclass
class CreateBookingCommand:
    """Validated input for a new draft booking."""

    resource_id: str
    interval_start: datetime
    interval_end: datetime
    party_size: int
    user_id: str
    requester_name: str
    requester_email: str
    requester_phone: str | None = None
    coupon_code: str | None = None

    def fingerprint(self) -> dict:
        """Fields that identify the request for idempotency hashing."""
        return {
            "resource_id": self.resource_id,
            "interval_start": self.interval_start.isoformat(),
            "interval_end": self.interval_end.isoformat(),
            "party_size": self.party_size,
            "user_id": self.user_id,
            "coupon_code": (self.coupon_code or "").strip().upper() or None,
        }


@dataclass
class CreateBookingResult:
    """
    Outcome of a create request.

    ``response`` is the body first returned for the request; a replayed
    ``Idempotency-Key`` gets the stored one back even if ``booking`` has moved on.
    """

    booking: Booking
    response: dict[str, Any]
    http_status: int = 201
    replayed: bool = False


@dataclass
class AvailabilityResult:
    resource_id: str
    available: bool
    remaining_capacity: int
    total_capacity: int
    # Unpaid holds that overlap but whose expires_at already passed.
    lapsed_holds: list[Booking] = field(default_factory=list)


@dataclass
class CandidateBooking:
    """What the coupon engine needs to price a booking that may not exist yet."""

    category: str
    base_amount: Decimal


@dataclass
class CouponQuote:
    code: str
    discount_amount: Decimal
    final_amount: Decimal
