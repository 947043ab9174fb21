"""Domain entities."""

from app.domain.entities.booking import (
    ACTIVE_STATUSES,
    EXPIRABLE_STATUSES,
    Booking,
    BookingStatus,
    can_transition,
)
from app.domain.entities.coupon import Coupon, CouponRedemption, DiscountKind, normalize_code
from app.domain.entities.outbox_event import OutboxEvent, OutboxStatus
from app.domain.entities.payment_order import PaymentOrder, PaymentOrderStatus
from app.domain.entities.resource import CapacityUnit, ReservableResource, ResourceCategory

__all__ = [
    "ACTIVE_STATUSES",
    "EXPIRABLE_STATUSES",
    "Booking",
    "BookingStatus",
    "can_transition",
    "Coupon",
    "CouponRedemption",
    "DiscountKind",
    "normalize_code",
    "OutboxEvent",
    "OutboxStatus",
    "PaymentOrder",
    "PaymentOrderStatus",
    "CapacityUnit",
    "ReservableResource",
    "ResourceCategory",
]
