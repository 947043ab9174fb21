from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, EmailStr, Field, constr
from pydantic.alias_generators import to_camel

from app.api.schemas.base import CamelModel
from app.domain.entities.booking import Booking


class RequesterContact(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    email: EmailStr
    phone: constr(strip_whitespace=True, max_length=50) | None = None


class CreateBookingRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    resource_id: constr(strip_whitespace=True, min_length=1, max_length=64)
    interval_start: datetime
    interval_end: datetime
    party_size: int = Field(ge=1)
    user_id: constr(strip_whitespace=True, min_length=1, max_length=64)
    requester_contact: RequesterContact
    coupon_code: constr(strip_whitespace=True, max_length=50) | None = None


class CancelBookingRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    user_id: constr(strip_whitespace=True, min_length=1, max_length=64)


class CreateBookingResponse(CamelModel):
    booking_id: str
    status: str
    base_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    currency: str
    expires_at: datetime | None = None


class BookingView(CamelModel):
    booking_id: str
    resource_id: str
    category: str
    user_id: str
    status: str
    interval_start: datetime
    interval_end: datetime
    party_size: int
    units: int
    currency: str
    base_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    coupon_code: str | None = None
    payment_order_id: str | None = None
    payment_reference: str | None = None
    failure_reason: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_entity(cls, booking: Booking) -> "BookingView":
        return cls(
            booking_id=booking.id,
            resource_id=booking.resource_id,
            category=booking.category,
            user_id=booking.user_id,
            status=booking.status.value,
            interval_start=booking.interval_start,
            interval_end=booking.interval_end,
            party_size=booking.party_size,
            units=booking.units,
            currency=booking.currency,
            base_amount=booking.base_amount,
            discount_amount=booking.discount_amount,
            final_amount=booking.final_amount,
            coupon_code=booking.coupon_code,
            payment_order_id=booking.payment_order_id,
            payment_reference=booking.payment_reference,
            failure_reason=booking.failure_reason,
            created_at=booking.created_at,
            expires_at=booking.expires_at,
            updated_at=booking.updated_at,
        )


class AvailabilityResponse(CamelModel):
    resource_id: str
    available: bool
    remaining_capacity: int
    total_capacity: int
