from datetime import date
from decimal import Decimal

from app.api.schemas.base import CamelModel


class PlanResponse(CamelModel):
    id: str
    name: str
    price: Decimal
    original_price: Decimal | None = None
    billing_cycle: str
    is_launch_offer: bool
    valid_until: date | None = None
    features: list[str]


class VendorPricingResponse(CamelModel):
    registered_on: date
    current_price: Decimal
    next_price: Decimal
    is_launch_subscriber: bool


class SubscriptionPlansResponse(CamelModel):
    launch_window_active: bool
    plans: list[PlanResponse]
    vendor_pricing: VendorPricingResponse | None = None
