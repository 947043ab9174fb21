"""Entity Booking - aggregate root of the booking ledger."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.domain.errors import InvalidStateTransitionError
from app.domain.value_objects.booking_interval import BookingInterval


class BookingStatus(str, Enum):
    """Lifecycle states of a booking."""

    DRAFT = "draft"
    AWAITING_PAYMENT = "awaiting_payment"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    FAILED = "failed"


# Statuses that hold capacity on a resource.
ACTIVE_STATUSES = (
    BookingStatus.DRAFT,
    BookingStatus.AWAITING_PAYMENT,
    BookingStatus.CONFIRMED,
)

EXPIRABLE_STATUSES = (
    BookingStatus.DRAFT,
    BookingStatus.AWAITING_PAYMENT,
)

_ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.DRAFT: frozenset(
        {BookingStatus.AWAITING_PAYMENT, BookingStatus.CANCELLED, BookingStatus.EXPIRED}
    ),
    BookingStatus.AWAITING_PAYMENT: frozenset(
        {
            BookingStatus.CONFIRMED,
            BookingStatus.CANCELLED,
            BookingStatus.EXPIRED,
            BookingStatus.FAILED,
        }
    ),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in _ALLOWED_TRANSITIONS.get(BookingStatus(current), frozenset())


@dataclass
class Booking:
    """
    A reservation of a resource interval.

    Status changes only through the transition methods below, each of which
    bumps ``lock_version`` so repositories can persist with compare-and-set.
    """

    id: str
    resource_id: str
    category: str
    user_id: str
    interval_start: datetime
    interval_end: datetime
    party_size: int
    units: int
    currency: str
    base_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    status: BookingStatus = BookingStatus.DRAFT
    coupon_code: str | None = None
    requester_name: str | None = None
    requester_email: str | None = None
    requester_phone: str | None = None
    payment_order_id: str | None = None
    payment_reference: str | None = None
    failure_reason: str | None = None
    lock_version: int = 0
    created_at: datetime | None = None
    expires_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.status = BookingStatus(self.status)
        if self.discount_amount < 0:
            raise ValueError("discount_amount cannot be negative")
        if self.final_amount < 0:
            raise ValueError("final_amount cannot be negative")
        if self.final_amount != self.base_amount - self.discount_amount:
            raise ValueError("final_amount must equal base_amount - discount_amount")

    # === Computed properties ===

    @property
    def interval(self) -> BookingInterval:
        return BookingInterval(start=self.interval_start, end=self.interval_end)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def is_expired(self, now: datetime) -> bool:
        """True when the unpaid hold has lapsed."""
        return (
            self.status in EXPIRABLE_STATUSES
            and self.expires_at is not None
            and self.expires_at <= now
        )

    # === Transitions ===

    def _transition(self, target: BookingStatus, operation: str, now: datetime) -> None:
        if not can_transition(self.status, target):
            raise InvalidStateTransitionError(self.id, self.status.value, operation)
        self.status = target
        self.updated_at = now
        self.lock_version += 1

    def mark_awaiting_payment(
        self, payment_order_id: str, now: datetime, payment_deadline: datetime
    ) -> None:
        if self.is_expired(now):
            raise InvalidStateTransitionError(self.id, "expired hold", "start payment for")
        self._transition(BookingStatus.AWAITING_PAYMENT, "start payment for", now)
        self.payment_order_id = payment_order_id
        self.expires_at = payment_deadline

    def confirm(self, payment_reference: str, now: datetime) -> None:
        self._transition(BookingStatus.CONFIRMED, "confirm", now)
        self.payment_reference = payment_reference
        self.expires_at = None

    def cancel(self, now: datetime) -> None:
        self._transition(BookingStatus.CANCELLED, "cancel", now)
        self.expires_at = None

    def expire(self, now: datetime) -> None:
        self._transition(BookingStatus.EXPIRED, "expire", now)
        self.expires_at = None

    def fail(self, reason: str, now: datetime) -> None:
        self._transition(BookingStatus.FAILED, "fail", now)
        self.failure_reason = reason
        self.expires_at = None
