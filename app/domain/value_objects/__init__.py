"""Domain value objects."""

from app.domain.value_objects.booking_interval import BookingInterval, as_utc
from app.domain.value_objects.money import Money, quantize

__all__ = [
    "BookingInterval",
    "Money",
    "as_utc",
    "quantize",
]
