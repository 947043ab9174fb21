"""
Application layer - booking and payment settlement.

Holds the use cases, DTOs and interfaces (ports). Orchestrates the domain
and defines the contracts infrastructure adapters implement.

Structure:
- use_cases/: one class per operation, plus the BookingLedger and CouponEngine
- dtos/: commands and results passed across the API boundary
- interfaces/: ports (repositories, gateways, clock, ids, transactions)
- atomic.py: bounded retries of a unit of work under lock contention
"""

from app.application.atomic import LockContentionError, run_atomic
from app.application.dtos import (
    AvailabilityResult,
    CandidateBooking,
    ConfirmationResult,
    CouponQuote,
    CreateBookingCommand,
    DispatchReport,
    PaymentOrderHandle,
    SweepReport,
)

__all__ = [
    "LockContentionError",
    "run_atomic",
    "AvailabilityResult",
    "CandidateBooking",
    "ConfirmationResult",
    "CouponQuote",
    "CreateBookingCommand",
    "DispatchReport",
    "PaymentOrderHandle",
    "SweepReport",
]
