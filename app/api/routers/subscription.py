from datetime import date

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_use_cases
from app.api.schemas.subscription import (
    PlanResponse,
    SubscriptionPlansResponse,
    VendorPricingResponse,
)
from app.domain.subscription_pricing import available_plans, is_launch_window, vendor_pricing

router = APIRouter()


@router.get("/subscription/plans", response_model=SubscriptionPlansResponse)
async def list_plans(
    registered_on: date | None = Query(default=None, alias="registeredOn"),
    use_cases=Depends(get_use_cases),
) -> SubscriptionPlansResponse:
    """Vendor plans on offer today, plus the tier for a registration date if given."""
    today = use_cases["clock"].today()
    plans = [
        PlanResponse(
            id=plan.id,
            name=plan.name,
            price=plan.price,
            original_price=plan.original_price,
            billing_cycle=plan.billing_cycle,
            is_launch_offer=plan.is_launch_offer,
            valid_until=plan.valid_until,
            features=list(plan.features),
        )
        for plan in available_plans(today)
    ]

    pricing = None
    if registered_on is not None:
        tier = vendor_pricing(registered_on)
        pricing = VendorPricingResponse(
            registered_on=registered_on,
            current_price=tier.current_price,
            next_price=tier.next_price,
            is_launch_subscriber=tier.is_launch_subscriber,
        )

    return SubscriptionPlansResponse(
        launch_window_active=is_launch_window(today),
        plans=plans,
        vendor_pricing=pricing,
    )
