from datetime import datetime
from decimal import Decimal

from pydantic import ConfigDict, Field, constr
from pydantic.alias_generators import to_camel

from app.api.schemas.base import CamelModel
from app.domain.entities.coupon import Coupon, CouponRedemption, DiscountKind


class ValidateCouponRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    code: constr(strip_whitespace=True, min_length=1, max_length=50)
    resource_id: constr(strip_whitespace=True, min_length=1)
    base_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    user_id: constr(strip_whitespace=True, min_length=1)


class CouponValidationResponse(CamelModel):
    code: str
    discount_amount: Decimal
    final_amount: Decimal


class CreateCouponRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    code: constr(strip_whitespace=True, min_length=1, max_length=50)
    discount_kind: DiscountKind
    discount_value: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    valid_from: datetime
    valid_until: datetime
    max_discount: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    min_order_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    usage_limit: int | None = Field(default=None, ge=1)
    per_user_limit: int = Field(default=1, ge=1)
    applicable_categories: list[str] = Field(default_factory=list)


class CouponView(CamelModel):
    code: str
    discount_kind: str
    discount_value: Decimal
    max_discount: Decimal | None = None
    min_order_amount: Decimal
    usage_limit: int | None = None
    usage_count: int
    per_user_limit: int
    applicable_categories: list[str]
    valid_from: datetime
    valid_until: datetime

    @classmethod
    def from_entity(cls, coupon: Coupon) -> "CouponView":
        return cls(
            code=coupon.code,
            discount_kind=coupon.discount_kind.value,
            discount_value=coupon.discount_value,
            max_discount=coupon.max_discount,
            min_order_amount=coupon.min_order_amount,
            usage_limit=coupon.usage_limit,
            usage_count=coupon.usage_count,
            per_user_limit=coupon.per_user_limit,
            applicable_categories=sorted(coupon.applicable_categories),
            valid_from=coupon.valid_from,
            valid_until=coupon.valid_until,
        )


class CouponRedemptionView(CamelModel):
    coupon_code: str
    booking_id: str
    user_id: str
    discount_amount: Decimal
    redeemed_at: datetime

    @classmethod
    def from_entity(cls, redemption: CouponRedemption) -> "CouponRedemptionView":
        return cls(
            coupon_code=redemption.coupon_code,
            booking_id=redemption.booking_id,
            user_id=redemption.user_id,
            discount_amount=redemption.discount_amount,
            redeemed_at=redemption.redeemed_at,
        )
