"""DTOs (Data Transfer Objects) of the application layer."""

from app.application.dtos.booking_dto import (
    AvailabilityResult,
    CandidateBooking,
    CouponQuote,
    CreateBookingCommand,
)
from app.application.dtos.payment_dto import (
    ConfirmationResult,
    DispatchReport,
    PaymentOrderHandle,
    SweepReport,
)

__all__ = [
    # Booking DTOs
    "AvailabilityResult",
    "CandidateBooking",
    "CouponQuote",
    "CreateBookingCommand",
    # Payment / worker DTOs
    "ConfirmationResult",
    "DispatchReport",
    "PaymentOrderHandle",
    "SweepReport",
]
