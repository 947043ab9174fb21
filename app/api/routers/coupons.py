from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_use_cases
from app.api.schemas.coupons import (
    CouponRedemptionView,
    CouponValidationResponse,
    CouponView,
    CreateCouponRequest,
    ValidateCouponRequest,
)
from app.application.dtos.coupon_dto import CreateCouponCommand

router = APIRouter()


@router.get("/coupons", response_model=list[CouponView])
async def list_active_coupons(use_cases=Depends(get_use_cases)) -> list[CouponView]:
    """Coupons that are active and inside their validity window."""
    coupons = await use_cases["list_active_coupons"].execute()
    return [CouponView.from_entity(coupon) for coupon in coupons]


@router.post("/coupons", response_model=CouponView, status_code=status.HTTP_201_CREATED)
async def create_coupon(
    payload: CreateCouponRequest,
    use_cases=Depends(get_use_cases),
) -> CouponView:
    coupon = await use_cases["create_coupon"].execute(
        CreateCouponCommand(
            code=payload.code,
            discount_kind=payload.discount_kind.value,
            discount_value=payload.discount_value,
            valid_from=payload.valid_from,
            valid_until=payload.valid_until,
            max_discount=payload.max_discount,
            min_order_amount=payload.min_order_amount,
            usage_limit=payload.usage_limit,
            per_user_limit=payload.per_user_limit,
            applicable_categories=payload.applicable_categories,
        )
    )
    return CouponView.from_entity(coupon)


@router.post("/coupons/validate", response_model=CouponValidationResponse)
async def validate_coupon(
    payload: ValidateCouponRequest,
    use_cases=Depends(get_use_cases),
) -> CouponValidationResponse:
    """Quote a coupon without consuming it."""
    quote = await use_cases["preview_coupon"].execute(
        code=payload.code,
        resource_id=payload.resource_id,
        base_amount=payload.base_amount,
        user_id=payload.user_id,
    )
    return CouponValidationResponse(
        code=quote.code,
        discount_amount=quote.discount_amount,
        final_amount=quote.final_amount,
    )


@router.get("/coupons/{code}/redemptions", response_model=list[CouponRedemptionView])
async def list_coupon_redemptions(
    code: str,
    limit: int = Query(default=50, ge=1, le=500),
    use_cases=Depends(get_use_cases),
) -> list[CouponRedemptionView]:
    redemptions = await use_cases["list_coupon_redemptions"].execute(code, limit=limit)
    return [CouponRedemptionView.from_entity(redemption) for redemption in redemptions]
