"""Vendor subscription plan pricing.

Pure functions of a date against a fixed launch window. Nothing here is
persisted and none of it participates in booking transactions.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

LAUNCH_START_DATE = date(2024, 12, 1)
LAUNCH_END_DATE = date(2025, 2, 28)
LAUNCH_PRICE = Decimal("99.00")
REGULAR_PRICE = Decimal("199.00")

MONTHLY_FEATURES = (
    "List your business on the platform",
    "Receive unlimited bookings",
    "Customer management dashboard",
    "Analytics and insights",
    "WhatsApp & SMS notifications",
    "Payment gateway integration",
    "Customer support",
)


@dataclass(frozen=True)
class SubscriptionPlan:
    id: str
    name: str
    price: Decimal
    billing_cycle: str
    is_launch_offer: bool
    original_price: Decimal | None = None
    valid_until: date | None = None
    features: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class VendorPricing:
    current_price: Decimal
    next_price: Decimal
    is_launch_subscriber: bool


def is_launch_window(today: date) -> bool:
    return LAUNCH_START_DATE <= today <= LAUNCH_END_DATE


def available_plans(today: date) -> list[SubscriptionPlan]:
    """Plans offered on ``today``."""
    launch = is_launch_window(today)
    return [
        SubscriptionPlan(
            id="vendor-monthly",
            name="Launch Special - Monthly" if launch else "Vendor Monthly Plan",
            price=LAUNCH_PRICE if launch else REGULAR_PRICE,
            original_price=REGULAR_PRICE if launch else None,
            billing_cycle="monthly",
            is_launch_offer=launch,
            valid_until=LAUNCH_END_DATE if launch else None,
            features=MONTHLY_FEATURES,
        )
    ]


def vendor_pricing(registered_on: date) -> VendorPricing:
    """Tier a vendor registering on ``registered_on`` is billed at."""
    if is_launch_window(registered_on):
        return VendorPricing(
            current_price=LAUNCH_PRICE,
            next_price=REGULAR_PRICE,
            is_launch_subscriber=True,
        )
    return VendorPricing(
        current_price=REGULAR_PRICE,
        next_price=REGULAR_PRICE,
        is_launch_subscriber=False,
    )
