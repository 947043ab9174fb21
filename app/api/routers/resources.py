from datetime import datetime

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_use_cases
from app.api.schemas.bookings import AvailabilityResponse
from app.application.atomic import run_atomic
from app.application.use_cases.check_availability import make_interval

router = APIRouter()


@router.get("/resources/{resource_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    resource_id: str,
    start: datetime,
    end: datetime,
    party_size: int = Query(default=1, ge=1, alias="partySize"),
    use_cases=Depends(get_use_cases),
) -> AvailabilityResponse:
    interval = make_interval(start, end)
    clock = use_cases["clock"]

    async def check():
        return await use_cases["check_availability"].execute(
            resource_id, interval, party_size, clock.now()
        )

    result = await run_atomic(use_cases["repos"].tx_manager, check)
    return AvailabilityResponse(
        resource_id=result.resource_id,
        available=result.available,
        remaining_capacity=result.remaining_capacity,
        total_capacity=result.total_capacity,
    )
