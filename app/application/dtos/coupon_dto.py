"""DTOs for coupon administration."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass
class CreateCouponCommand:
    code: str
    discount_kind: str
    discount_value: Decimal
    valid_from: datetime
    valid_until: datetime
    max_discount: Decimal | None = None
    min_order_amount: Decimal = Decimal("0")
    usage_limit: int | None = None
    per_user_limit: int = 1
    applicable_categories: list[str] = field(default_factory=list)
