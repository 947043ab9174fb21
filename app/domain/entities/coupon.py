"""Entities Coupon and CouponRedemption."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.domain.errors import (
    CouponExpiredError,
    CouponLimitReachedError,
    CouponNotApplicableError,
    MinimumAmountNotMetError,
)
from app.domain.value_objects.money import quantize


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


def normalize_code(code: str) -> str:
    return code.strip().upper()


@dataclass
class Coupon:
    """
    Discount code with usage limits.

    ``discount_value`` is a percentage (``10`` = 10%) for percentage coupons
    and an amount for fixed coupons. An empty ``applicable_categories`` means
    every category. ``usage_limit`` of ``None`` means unlimited.
    """

    code: str
    discount_kind: DiscountKind
    discount_value: Decimal
    valid_from: datetime
    valid_until: datetime
    max_discount: Decimal | None = None
    min_order_amount: Decimal = Decimal("0")
    usage_limit: int | None = None
    usage_count: int = 0
    per_user_limit: int = 1
    applicable_categories: frozenset[str] = field(default_factory=frozenset)
    is_active: bool = True

    def __post_init__(self) -> None:
        self.code = normalize_code(self.code)
        self.discount_kind = DiscountKind(self.discount_kind)
        self.applicable_categories = frozenset(self.applicable_categories)

    # === Rule checks, in evaluation order ===

    def check_validity_window(self, now: datetime) -> None:
        if not (self.valid_from <= now <= self.valid_until):
            raise CouponExpiredError(self.code)

    def check_applicable(self, category: str) -> None:
        if self.applicable_categories and category not in self.applicable_categories:
            raise CouponNotApplicableError(self.code, category)

    def check_minimum(self, base_amount: Decimal) -> None:
        if base_amount < self.min_order_amount:
            raise MinimumAmountNotMetError(self.code, self.min_order_amount)

    def check_global_usage(self) -> None:
        if self.usage_limit is not None and self.usage_count >= self.usage_limit:
            raise CouponLimitReachedError(self.code)

    def check_user_usage(self, user_redemptions: int) -> None:
        if user_redemptions >= self.per_user_limit:
            raise CouponLimitReachedError(self.code, per_user=True)

    def discount_for(self, base_amount: Decimal) -> Decimal:
        """Discount for ``base_amount``, capped and clamped to ``[0, base_amount]``."""
        if self.discount_kind == DiscountKind.PERCENTAGE:
            discount = base_amount * self.discount_value / Decimal("100")
            if self.max_discount is not None:
                discount = min(discount, self.max_discount)
        else:
            discount = self.discount_value
        discount = max(Decimal("0"), min(discount, base_amount))
        return quantize(discount)


@dataclass
class CouponRedemption:
    """Append-only record of a coupon use against a booking."""

    coupon_code: str
    booking_id: str
    user_id: str
    discount_amount: Decimal
    redeemed_at: datetime
