"""DTOs for the payment flow and background workers."""

from dataclasses import dataclass
from decimal import Decimal

from app.domain.entities.booking import Booking


@dataclass
class PaymentOrderHandle:
    order_id: str
    booking_id: str
    client_handle: str | None
    amount: Decimal
    currency: str
    provider: str


@dataclass
class ConfirmationResult:
    booking: Booking
    # False when the order had already been settled by an earlier call.
    newly_confirmed: bool


@dataclass
class SweepReport:
    expired: int = 0
    skipped: int = 0
    errors: int = 0


@dataclass
class DispatchReport:
    claimed: int = 0
    published: int = 0
    retried: int = 0
    failed: int = 0
