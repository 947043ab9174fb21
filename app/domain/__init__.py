"""
Domain layer - booking and payment settlement.

Pure business logic with no framework dependencies.

Structure:
- entities/: Booking, PaymentOrder, Coupon, ReservableResource, OutboxEvent
- value_objects/: BookingInterval, Money
- errors.py: domain exceptions (their ``code`` is the API ``errorKind``)
- constants.py: event names and idempotency scopes
- subscription_pricing.py: vendor plan pricing (stateless)
"""

from app.domain.entities import (
    Booking,
    BookingStatus,
    Coupon,
    CouponRedemption,
    OutboxEvent,
    PaymentOrder,
    PaymentOrderStatus,
    ReservableResource,
)
from app.domain.errors import DomainError

__all__ = [
    "Booking",
    "BookingStatus",
    "Coupon",
    "CouponRedemption",
    "OutboxEvent",
    "PaymentOrder",
    "PaymentOrderStatus",
    "ReservableResource",
    "DomainError",
]
